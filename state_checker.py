"""Drive a description against live chains: sections, entries, scopes."""
from __future__ import annotations

import sys
from typing import Any, Iterable, List, Optional

from web3 import Web3

from state_abi import AbiLoader
from state_coverage import missing_coverage
from state_description import ContractEntry, Description, NetworkSection
from state_errors import AddressError, CoverageError
from state_invoke import check_acl, run_check_set
from state_report import CheckResult, Outcome, Reporter
from state_rpc import RPC_TIMEOUT, checksum, network_name, open_client

__all__ = [
    "check_coverage",
    "resolve_entry",
    "check_network_section",
    "run_description",
]


def _bind(w3: Web3, abi_loader: AbiLoader, name: str, address: str) -> Any:
    return w3.eth.contract(address=address, abi=abi_loader.load(name))


def _resolve_address(value: Any, field: str, report: Reporter) -> Optional[str]:
    try:
        return checksum(value, field)
    except AddressError as e:
        report.record(CheckResult(field, Outcome.INVALID_ADDRESS, str(e)))
        return None


def check_coverage(section: NetworkSection, abi_loader: AbiLoader) -> None:
    """
    Fail before any RPC call if an entry leaves a view function undeclared.

    Proxy interfaces are loaded here as well so that a missing one is
    reported up front.
    """
    for alias, entry in section.contracts.items():
        missing = missing_coverage(abi_loader.load(entry.name), entry.checks.keys())
        if missing:
            raise CoverageError(alias, entry.name, missing)
        if entry.proxy is not None:
            abi_loader.load(entry.proxy.proxy_name)


def resolve_entry(
    w3: Web3,
    entry: ContractEntry,
    abi_loader: AbiLoader,
    report: Reporter,
    block: Any = "latest",
) -> List[CheckResult]:
    """Base scope (checks + ACL), then proxy scope, then implementation scope."""
    start = len(report.results)
    address = _resolve_address(entry.address, f"{entry.alias}.address", report)

    if address is not None:
        contract = _bind(w3, abi_loader, entry.name, address)
        run_check_set(contract, entry.checks, report, block)
        check_acl(contract, entry.acl, report, block)

    proxy = entry.proxy
    if proxy is not None:
        if address is not None:
            report.header(f"Proxy checks ({proxy.proxy_name})", fill="-")
            proxy_contract = _bind(w3, abi_loader, proxy.proxy_name, address)
            run_check_set(proxy_contract, proxy.proxy_checks, report, block)

        implementation = _resolve_address(proxy.implementation, f"{entry.alias}.implementation", report)
        if implementation is not None:
            report.header(f"Implementation checks ({entry.name} @ {implementation})", fill="-")
            impl_contract = _bind(w3, abi_loader, entry.name, implementation)
            run_check_set(impl_contract, proxy.implementation_checks, report, block)

    return report.results[start:]


def check_network_section(
    section: NetworkSection,
    abi_loader: AbiLoader,
    report: Reporter,
    block: Any = "latest",
    timeout: float = RPC_TIMEOUT,
) -> List[CheckResult]:
    check_coverage(section, abi_loader)
    w3 = open_client(section.rpc_url, timeout=timeout)
    try:
        chain_id = int(w3.eth.chain_id)
        report.print(f"🌐 chainId={chain_id} ({network_name(chain_id)})")
    except Exception as e:
        print(f"⚠️  Could not fetch chainId for {section.label}: {e}", file=sys.stderr)

    start = len(report.results)
    for alias, entry in section.contracts.items():
        report.header(f"Contract: {alias} - ({entry.name}) @ {entry.address}")
        resolve_entry(w3, entry, abi_loader, report, block)
    return report.results[start:]


def run_description(
    description: Description,
    abi_loader: AbiLoader,
    report: Reporter,
    block: Any = "latest",
    timeout: float = RPC_TIMEOUT,
    only: Optional[Iterable[str]] = None,
) -> bool:
    """Run every selected section in declaration order. True iff all checks passed."""
    selected = set(only) if only else None
    for label, section in description.sections.items():
        if selected is not None and label not in selected:
            continue
        report.banner(label.upper())
        check_network_section(section, abi_loader, report, block=block, timeout=timeout)
    return report.ok
