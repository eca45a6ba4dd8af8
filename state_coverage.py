"""Check that a description declares every non-mutating ABI function."""
from __future__ import annotations

from typing import Iterable, List

from state_abi import AbiDocument, non_mutating_names

__all__ = ["missing_coverage", "format_coverage_report"]


def missing_coverage(abi: AbiDocument, declared: Iterable[str]) -> List[str]:
    """
    Return non-mutating function names present in `abi` but absent from
    `declared`, in ABI order and without duplicates (overloads share a name).
    """
    declared_set = set(declared)
    missing: List[str] = []
    for name in non_mutating_names(abi):
        if name not in declared_set and name not in missing:
            missing.append(name)
    return missing


def format_coverage_report(alias: str, name: str, missing: List[str]) -> str:
    lines = [f"❌ ABI coverage failed for {alias} ({name}): {len(missing)} view function(s) without checks"]
    lines.extend(f"   - {fn}" for fn in missing)
    lines.append("   Declare each of them under `checks` (use null to skip a function explicitly).")
    return "\n".join(lines)
