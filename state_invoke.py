"""Run read-only view calls and ACL role queries, and classify their outcomes."""
from __future__ import annotations

import re
from typing import Any, Dict, List, Optional, Sequence

from eth_utils import to_checksum_address

from state_description import CallExpectation, CallList, CheckSet, CheckValue, ScalarCheck, Skip
from state_report import CheckResult, Outcome, Reporter
from state_rpc import is_address

ROLE_QUERY = "hasRole"
_DECIMAL = re.compile(r"[+-]?\d+")
_HEX = re.compile(r"0[xX][0-9a-fA-F]+")
_INTEGER = re.compile(r"u?int\d*")
_ARRAY = re.compile(r"(.+)\[\d*\]")

__all__ = [
    "values_equal",
    "format_value",
    "describe_call",
    "normalize_args",
    "call_view",
    "invoke_view",
    "run_check_set",
    "check_acl",
]


# --- comparison ------------------------------------------------------------


def _hex(data: bytes) -> str:
    return "0x" + bytes(data).hex()


def _normalize_hex(text: str) -> str:
    low = text.lower()
    return low if low.startswith("0x") else "0x" + low


def values_equal(actual: Any, expected: Any) -> bool:
    """
    Compare an RPC return value against a description value.

    Addresses compare checksum-normalized, integers numerically, bytes as
    hex text, sequences element-wise. Booleans only ever equal booleans.
    """
    if isinstance(expected, bool) or isinstance(actual, bool):
        return isinstance(expected, bool) and isinstance(actual, bool) and actual == expected
    if isinstance(expected, str) and is_address(expected):
        return is_address(actual) and to_checksum_address(actual) == to_checksum_address(expected)
    if isinstance(actual, int):
        if isinstance(expected, int):
            return actual == expected
        if isinstance(expected, str) and _DECIMAL.fullmatch(expected.strip()):
            return actual == int(expected)
        return False
    if isinstance(actual, (bytes, bytearray)):
        return isinstance(expected, str) and _hex(actual) == _normalize_hex(expected)
    if isinstance(actual, (list, tuple)):
        if not isinstance(expected, (list, tuple)) or len(actual) != len(expected):
            return False
        return all(values_equal(a, e) for a, e in zip(actual, expected))
    return type(actual) is type(expected) and actual == expected


def format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (bytes, bytearray)):
        return _hex(value)
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(format_value(v) for v in value) + "]"
    if value is None:
        return "null"
    return str(value)


def _normalize_arg(arg: Any, abi_type: Optional[str] = None) -> Any:
    """Checksum addresses; turn decimal or hex strings into ints for (u)int inputs."""
    if abi_type is not None:
        array = _ARRAY.fullmatch(abi_type)
        if array and isinstance(arg, list):
            return [_normalize_arg(a, array.group(1)) for a in arg]
        if _INTEGER.fullmatch(abi_type) and isinstance(arg, str):
            text = arg.strip()
            if _DECIMAL.fullmatch(text):
                return int(text)
            if _HEX.fullmatch(text):
                return int(text, 16)
    if is_address(arg):
        return to_checksum_address(arg)
    if isinstance(arg, list):
        return [_normalize_arg(a) for a in arg]
    return arg


def _input_types(contract: Any, method: str, arity: int) -> List[Optional[str]]:
    """ABI input types of the overload of `method` taking `arity` arguments, if unambiguous."""
    candidates = [
        entry.get("inputs") or []
        for entry in getattr(contract, "abi", None) or []
        if entry.get("type") == "function" and entry.get("name") == method and len(entry.get("inputs") or []) == arity
    ]
    if len(candidates) != 1:
        return [None] * arity
    return [inp.get("type") for inp in candidates[0]]


def normalize_args(contract: Any, method: str, args: Sequence[Any]) -> List[Any]:
    types = _input_types(contract, method, len(args))
    return [_normalize_arg(arg, abi_type) for arg, abi_type in zip(args, types)]


def _error_text(e: Exception) -> str:
    text = str(e).strip()
    return text or type(e).__name__


# --- view invoker ----------------------------------------------------------


def describe_call(method: str, args: Sequence[Any] = ()) -> str:
    if args:
        return f".{method}({', '.join(format_value(a) for a in args)})"
    return f".{method}"


def call_view(contract: Any, method: str, call: CallExpectation, report: Reporter, block: Any = "latest") -> CheckResult:
    description = describe_call(method, call.args)
    report.pending(description)
    try:
        fn = contract.functions[method]
        actual = fn(*normalize_args(contract, method, call.args)).call(block_identifier=block)
    except Exception as e:
        # Transport errors and timeouts land here too and count as reverts.
        detail = f"REVERTED with: {_error_text(e)}"
        outcome = Outcome.EXPECTED_REVERT if call.must_revert else Outcome.UNEXPECTED_REVERT
        return report.record(CheckResult(description, outcome, detail))

    shown = format_value(actual)
    if call.must_revert:
        return report.record(CheckResult(description, Outcome.UNEXPECTED_SUCCESS, f"{shown} (expected revert)"))
    if values_equal(actual, call.result):
        return report.record(CheckResult(description, Outcome.MATCH, shown))
    return report.record(
        CheckResult(description, Outcome.MISMATCH, f"{shown} (expected {format_value(call.result)})")
    )


def invoke_view(contract: Any, method: str, value: CheckValue, report: Reporter, block: Any = "latest") -> List[CheckResult]:
    if isinstance(value, Skip):
        return [report.record(CheckResult(describe_call(method), Outcome.SKIPPED, "skipped"))]
    if isinstance(value, ScalarCheck):
        return [call_view(contract, method, CallExpectation(result=value.expected), report, block)]
    if isinstance(value, CallExpectation):
        return [call_view(contract, method, value, report, block)]
    if isinstance(value, CallList):
        return [call_view(contract, method, call, report, block) for call in value.calls]
    raise TypeError(f"Unsupported check value for {method}: {value!r}")


def run_check_set(contract: Any, checks: CheckSet, report: Reporter, block: Any = "latest") -> List[CheckResult]:
    results: List[CheckResult] = []
    for method, value in checks.items():
        results.extend(invoke_view(contract, method, value, report, block))
    return results


# --- ACL invoker -----------------------------------------------------------


def check_acl(contract: Any, acl: Dict[Any, List[Any]], report: Reporter, block: Any = "latest") -> List[CheckResult]:
    """Every declared holder must be reported as holding its role."""
    results: List[CheckResult] = []
    for role, holders in acl.items():
        for holder in holders:
            description = describe_call(ROLE_QUERY, (role, holder))
            if not is_address(holder):
                results.append(
                    report.record(CheckResult(description, Outcome.INVALID_ADDRESS, f"invalid holder address {holder!r}"))
                )
                continue
            report.pending(description)
            try:
                has_role = contract.functions[ROLE_QUERY](role, to_checksum_address(holder)).call(block_identifier=block)
            except Exception as e:
                results.append(
                    report.record(CheckResult(description, Outcome.UNEXPECTED_REVERT, f"REVERTED with: {_error_text(e)}"))
                )
                continue
            if has_role:
                result = CheckResult(description, Outcome.MATCH, format_value(has_role))
            else:
                result = CheckResult(description, Outcome.MISMATCH, f"{format_value(has_role)} (expected true)")
            results.append(report.record(result))
    return results
