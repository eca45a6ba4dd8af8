"""
Parse a deployment description (YAML) into typed records.

Shape of the document:

    l1:
      rpcUrl: L1_RPC_URL           # URL or environment variable name
      contracts:
        lido:
          address: "0x..."
          name: Lido
          proxyName: AppProxyUpgradeable
          implementation: "0x..."
          checks: {...}
          proxyChecks: {...}
          implementationChecks: {...}
          ozNonEnumerableAcl:
            "0x<role>": ["0x<holder>", ...]
    l2: ...

A check value is one of: null (skip), a scalar, a call object
{args, result, mustRevert}, or a list of call objects.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml

from state_errors import ConfigError

SECTION_KEYS = ("l1", "l2")
CALL_KEYS = frozenset(("args", "result", "mustRevert"))
PROXY_KEYS = ("proxyName", "implementation", "proxyChecks", "implementationChecks")

Scalar = Union[str, bool, int]
Expected = Union[Scalar, List[Any]]

_INT_TAG = "tag:yaml.org,2002:int"
_BOOL_TAG = "tag:yaml.org,2002:bool"


class DescriptionLoader(yaml.SafeLoader):
    """
    SafeLoader with YAML 1.2 style ints and booleans.

    Unquoted `0x...` addresses and role ids stay strings, only decimal
    literals become ints, and only true/false become booleans.
    """


DescriptionLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag not in (_INT_TAG, _BOOL_TAG)]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}
DescriptionLoader.add_implicit_resolver(
    _INT_TAG, re.compile(r"^[-+]?(?:0|[1-9][0-9_]*)$"), list("-+0123456789")
)
DescriptionLoader.add_implicit_resolver(
    _BOOL_TAG, re.compile(r"^(?:true|True|TRUE|false|False|FALSE)$"), list("tTfF")
)

__all__ = [
    "Skip",
    "ScalarCheck",
    "CallExpectation",
    "CallList",
    "CheckValue",
    "CheckSet",
    "ProxyScope",
    "ContractEntry",
    "NetworkSection",
    "Description",
    "parse_check_value",
    "parse_description",
    "load_description",
    "DescriptionLoader",
]


# --- check values ----------------------------------------------------------


@dataclass(frozen=True)
class Skip:
    """Declared but not called; still counts toward ABI coverage."""


@dataclass(frozen=True)
class ScalarCheck:
    expected: Expected


@dataclass(frozen=True)
class CallExpectation:
    args: Tuple[Any, ...] = ()
    result: Expected = None
    must_revert: bool = False


@dataclass(frozen=True)
class CallList:
    calls: Tuple[CallExpectation, ...]


CheckValue = Union[Skip, ScalarCheck, CallExpectation, CallList]
CheckSet = Dict[str, CheckValue]


# --- document records ------------------------------------------------------


@dataclass(frozen=True)
class ProxyScope:
    proxy_name: str
    implementation: Any
    proxy_checks: CheckSet
    implementation_checks: CheckSet


@dataclass(frozen=True)
class ContractEntry:
    alias: str
    address: Any
    name: str
    checks: CheckSet
    proxy: Optional[ProxyScope] = None
    acl: Dict[Any, List[Any]] = field(default_factory=dict)


@dataclass(frozen=True)
class NetworkSection:
    label: str
    rpc_url: str
    contracts: Dict[str, ContractEntry]


@dataclass(frozen=True)
class Description:
    sections: Dict[str, NetworkSection]
    source: str = ""


# --- parsing ---------------------------------------------------------------


def _is_scalar(value: Any) -> bool:
    return isinstance(value, (str, bool, int))


def _parse_expected(value: Any, where: str) -> Expected:
    if _is_scalar(value):
        return value
    if isinstance(value, list) and all(_is_scalar(v) or isinstance(v, list) for v in value):
        return value
    raise ConfigError(f"{where}: unsupported expected value {value!r}")


def _parse_call(obj: Dict[str, Any], where: str) -> CallExpectation:
    unknown = set(obj) - CALL_KEYS
    if unknown:
        raise ConfigError(f"{where}: unknown keys in call expectation: {', '.join(sorted(map(str, unknown)))}")
    must_revert = obj.get("mustRevert", False)
    if not isinstance(must_revert, bool):
        raise ConfigError(f"{where}: mustRevert must be true or false")
    if "result" not in obj and not must_revert:
        raise ConfigError(f"{where}: call expectation needs a result")
    args = obj.get("args")
    if args is None:
        args = []
    if not isinstance(args, list):
        raise ConfigError(f"{where}: args must be a list")
    result = obj.get("result")
    if result is not None:
        result = _parse_expected(result, where)
    return CallExpectation(args=tuple(args), result=result, must_revert=must_revert)


def parse_check_value(value: Any, where: str = "check") -> CheckValue:
    if value is None:
        return Skip()
    if isinstance(value, dict):
        return _parse_call(value, where)
    if isinstance(value, list):
        if all(isinstance(v, dict) for v in value):
            return CallList(tuple(_parse_call(v, f"{where}[{i}]") for i, v in enumerate(value)))
        if any(isinstance(v, dict) for v in value):
            raise ConfigError(f"{where}: a list must contain only call expectations or only values")
        # A plain list is the expected return of an array/tuple view.
        return ScalarCheck(_parse_expected(value, where))
    return ScalarCheck(_parse_expected(value, where))


def _parse_check_set(raw: Any, where: str) -> CheckSet:
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigError(f"{where} must be a mapping of function name to expectation")
    checks: CheckSet = {}
    for method, value in raw.items():
        if not isinstance(method, str):
            raise ConfigError(f"{where}: function name {method!r} is not a string")
        checks[method] = parse_check_value(value, f"{where}.{method}")
    return checks


def _parse_acl(raw: Any, where: str) -> Dict[Any, List[Any]]:
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigError(f"{where} must be a mapping of role to holder list")
    acl: Dict[Any, List[Any]] = {}
    for role, holders in raw.items():
        if holders is None:
            holders = []
        if not isinstance(holders, list):
            raise ConfigError(f"{where}.{role}: holders must be a list")
        acl[role] = list(holders)
    return acl


def _parse_entry(alias: str, raw: Any, where: str) -> ContractEntry:
    if not isinstance(raw, dict):
        raise ConfigError(f"{where} must be a mapping")
    name = raw.get("name")
    if not isinstance(name, str) or not name:
        raise ConfigError(f"{where}.name must be a non-empty string")
    if "address" not in raw:
        raise ConfigError(f"{where}.address is required")

    present = [k for k in PROXY_KEYS if k in raw]
    proxy = None
    if present and len(present) != len(PROXY_KEYS):
        missing = [k for k in PROXY_KEYS if k not in raw]
        raise ConfigError(f"{where}: proxy fields must be given together, missing {', '.join(missing)}")
    if present:
        proxy_name = raw["proxyName"]
        if not isinstance(proxy_name, str) or not proxy_name:
            raise ConfigError(f"{where}.proxyName must be a non-empty string")
        proxy = ProxyScope(
            proxy_name=proxy_name,
            implementation=raw["implementation"],
            proxy_checks=_parse_check_set(raw["proxyChecks"], f"{where}.proxyChecks"),
            implementation_checks=_parse_check_set(raw["implementationChecks"], f"{where}.implementationChecks"),
        )

    return ContractEntry(
        alias=alias,
        address=raw["address"],
        name=name,
        checks=_parse_check_set(raw.get("checks"), f"{where}.checks"),
        proxy=proxy,
        acl=_parse_acl(raw.get("ozNonEnumerableAcl"), f"{where}.ozNonEnumerableAcl"),
    )


def _parse_section(label: str, raw: Any) -> NetworkSection:
    if not isinstance(raw, dict):
        raise ConfigError(f"Section {label} must be a mapping")
    rpc_url = raw.get("rpcUrl")
    if not isinstance(rpc_url, str) or not rpc_url:
        raise ConfigError(f"{label}.rpcUrl must be a URL or an environment variable name")
    contracts_raw = raw.get("contracts")
    if contracts_raw is None:
        contracts_raw = {}
    if not isinstance(contracts_raw, dict):
        raise ConfigError(f"{label}.contracts must be a mapping")
    contracts = {
        str(alias): _parse_entry(str(alias), entry, f"{label}.contracts.{alias}")
        for alias, entry in contracts_raw.items()
    }
    return NetworkSection(label=label, rpc_url=rpc_url, contracts=contracts)


def parse_description(doc: Any, source: str = "") -> Description:
    if not isinstance(doc, dict):
        raise ConfigError("Description must be a mapping with an l1 and/or l2 section")
    sections = {label: _parse_section(label, doc[label]) for label in SECTION_KEYS if label in doc}
    if not sections:
        raise ConfigError("Description declares neither an l1 nor an l2 section")
    return Description(sections=sections, source=source)


def load_description(path: str) -> Description:
    try:
        with open(path, "r", encoding="utf-8") as f:
            text = f.read()
    except OSError as e:
        raise ConfigError(f"Cannot read description {path}: {e}") from e
    try:
        doc = yaml.load(text, Loader=DescriptionLoader)
    except yaml.YAMLError as e:
        raise ConfigError(f"Cannot parse description {path}: {e}") from e
    return parse_description(doc, source=text)
