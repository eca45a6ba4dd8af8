"""Exceptions raised by the state checker.

Fatal errors derive from StateCheckerError and abort the run. Per-check
failures are never raised; they travel as CheckResult records.
"""
from __future__ import annotations

from typing import Iterable, List

__all__ = [
    "StateCheckerError",
    "ConfigError",
    "EndpointUnresolved",
    "AbiError",
    "AbiNotFound",
    "AbiMalformed",
    "CoverageError",
    "AddressError",
]


class StateCheckerError(Exception):
    pass


class ConfigError(StateCheckerError):
    """CLI arguments or the description document are unusable."""


class EndpointUnresolved(ConfigError):
    def __init__(self, endpoint: str, reason: str = "not a URL and no such environment variable") -> None:
        super().__init__(f"Cannot resolve rpcUrl {endpoint!r}: {reason}")
        self.endpoint = endpoint


class AbiError(StateCheckerError):
    pass


class AbiNotFound(AbiError):
    def __init__(self, name: str, path: str) -> None:
        super().__init__(f"ABI for {name!r} not found at {path}")
        self.name = name
        self.path = path


class AbiMalformed(AbiError):
    def __init__(self, name: str, path: str, reason: str) -> None:
        super().__init__(f"ABI for {name!r} at {path} is malformed: {reason}")
        self.name = name
        self.path = path


class CoverageError(StateCheckerError):
    """A contract's checks omit non-mutating functions of its ABI."""

    def __init__(self, alias: str, name: str, missing: Iterable[str]) -> None:
        self.alias = alias
        self.name = name
        self.missing: List[str] = list(missing)
        super().__init__(
            f"Contract {alias!r} ({name}) has no checks for non-mutating functions: "
            + ", ".join(self.missing)
        )


class AddressError(StateCheckerError):
    def __init__(self, field: str, value: object) -> None:
        super().__init__(f"Invalid address in {field}: {value!r}")
        self.field = field
        self.value = value
