"""Load contract interfaces (ABIs) from a directory of JSON files."""
from __future__ import annotations

import json
import os
from typing import Any, Dict, Iterator, List

from state_errors import AbiMalformed, AbiNotFound

AbiEntry = Dict[str, Any]
AbiDocument = List[AbiEntry]

ABI_EXTENSION = ".json"
MUTATING = ("payable", "nonpayable")

__all__ = [
    "AbiDocument",
    "AbiLoader",
    "is_non_mutating",
    "non_mutating_names",
]


def is_non_mutating(entry: AbiEntry) -> bool:
    """True for functions whose stateMutability is neither payable nor nonpayable.

    Legacy ABIs without stateMutability fall back to the `constant` flag.
    """
    if entry.get("type") != "function":
        return False
    mutability = entry.get("stateMutability")
    if mutability is None and "constant" in entry:
        return bool(entry["constant"])
    return mutability not in MUTATING


def non_mutating_names(abi: AbiDocument) -> Iterator[str]:
    for entry in abi:
        name = entry.get("name")
        if isinstance(name, str) and is_non_mutating(entry):
            yield name


class AbiLoader:
    """Reads `<name>.json` from a fixed directory. Parsed ABIs are cached per name."""

    def __init__(self, directory: str) -> None:
        self.directory = directory
        self._cache: Dict[str, AbiDocument] = {}

    def path_for(self, name: str) -> str:
        return os.path.join(self.directory, f"{name}{ABI_EXTENSION}")

    def load(self, name: str) -> AbiDocument:
        if name not in self._cache:
            self._cache[name] = self._read(name)
        return self._cache[name]

    def _read(self, name: str) -> AbiDocument:
        path = self.path_for(name)
        if not os.path.isfile(path):
            raise AbiNotFound(name, path)
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise AbiMalformed(name, path, str(e)) from e

        # Hardhat/Truffle artifacts wrap the array as {"abi": [...]}.
        if isinstance(data, dict) and isinstance(data.get("abi"), list):
            data = data["abi"]
        if not isinstance(data, list):
            raise AbiMalformed(name, path, "expected a JSON array of entries or an artifact with an 'abi' array")
        for i, entry in enumerate(data):
            if not isinstance(entry, dict):
                raise AbiMalformed(name, path, f"entry #{i} is not an object")
        return data
