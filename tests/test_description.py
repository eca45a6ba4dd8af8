from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from state_description import (
    CallExpectation,
    CallList,
    DescriptionLoader,
    ScalarCheck,
    Skip,
    load_description,
    parse_check_value,
    parse_description,
)
from state_errors import ConfigError

DESCRIPTION = """
l1:
  rpcUrl: L1_RPC_URL
  contracts:
    stETH:
      address: "0xae7ab96520DE3A18E5e111B5EaAb095312D7fE84"
      name: StETH
      proxyName: OssifiableProxy
      implementation: "0x17144556fd3424EDC8Fc8A4C940B2D04936d17eb"
      checks:
        symbol: stETH
        decimals: 18
        getContractVersion: null
        hasRole:
          - args: ["0xab", "0xcd"]
            result: true
      proxyChecks:
        proxy__getAdmin: "0x3e40D73EB977Dc6a537aF587D48316feE66E9C8c"
      implementationChecks:
        initialize:
          args: []
          mustRevert: true
      ozNonEnumerableAcl:
        "0xab": ["0x70997970C51812dc3A010C7d01b50e0d17dc79C8"]
l2:
  rpcUrl: https://l2.example.org
  contracts: {}
"""


def test_parse_full_document(tmp_path: Path) -> None:
    path = tmp_path / "deployed.yaml"
    path.write_text(DESCRIPTION, encoding="utf-8")

    description = load_description(str(path))

    assert list(description.sections) == ["l1", "l2"]
    assert description.source == DESCRIPTION
    l1 = description.sections["l1"]
    assert l1.rpc_url == "L1_RPC_URL"
    entry = l1.contracts["stETH"]
    assert entry.alias == "stETH"
    assert entry.name == "StETH"
    assert list(entry.checks) == ["symbol", "decimals", "getContractVersion", "hasRole"]
    assert entry.checks["symbol"] == ScalarCheck("stETH")
    assert entry.checks["decimals"] == ScalarCheck(18)
    assert entry.checks["getContractVersion"] == Skip()
    assert entry.checks["hasRole"] == CallList((CallExpectation(args=("0xab", "0xcd"), result=True),))
    assert entry.proxy is not None
    assert entry.proxy.proxy_name == "OssifiableProxy"
    assert entry.proxy.implementation_checks["initialize"] == CallExpectation(args=(), result=None, must_revert=True)
    assert entry.acl == {"0xab": ["0x70997970C51812dc3A010C7d01b50e0d17dc79C8"]}
    assert description.sections["l2"].contracts == {}


def test_single_section_is_enough() -> None:
    description = parse_description({"l2": {"rpcUrl": "https://x.org", "contracts": {}}})
    assert list(description.sections) == ["l2"]


@pytest.mark.parametrize(
    "doc",
    [
        None,
        [],
        {"l3": {"rpcUrl": "https://x.org", "contracts": {}}},
        {"l1": {"contracts": {}}},
        {"l1": {"rpcUrl": "https://x.org", "contracts": []}},
        {"l1": {"rpcUrl": "https://x.org", "contracts": {"a": {"name": "A"}}}},
        {"l1": {"rpcUrl": "https://x.org", "contracts": {"a": {"address": "0x1"}}}},
        {"l1": {"rpcUrl": "https://x.org", "contracts": {"a": {"address": "0x1", "name": "A", "checks": []}}}},
    ],
)
def test_invalid_documents(doc: object) -> None:
    with pytest.raises(ConfigError):
        parse_description(doc)


def test_partial_proxy_fields_rejected() -> None:
    doc = {
        "l1": {
            "rpcUrl": "https://x.org",
            "contracts": {"a": {"address": "0x1", "name": "A", "checks": {}, "proxyName": "P"}},
        }
    }
    with pytest.raises(ConfigError, match="implementation"):
        parse_description(doc)


def test_empty_checks_value_is_empty_mapping() -> None:
    doc = yaml.safe_load("l1:\n  rpcUrl: X\n  contracts:\n    a:\n      address: '0x1'\n      name: A\n      checks:\n")
    assert parse_description(doc).sections["l1"].contracts["a"].checks == {}


def test_check_value_variants() -> None:
    assert parse_check_value(None) == Skip()
    assert parse_check_value(True) == ScalarCheck(True)
    assert parse_check_value({"args": [1], "result": 2}) == CallExpectation(args=(1,), result=2)
    assert parse_check_value([]) == CallList(())
    assert parse_check_value(["0xa", "0xb"]) == ScalarCheck(["0xa", "0xb"])


@pytest.mark.parametrize(
    "value",
    [
        [{"args": [], "result": 1}, 2],
        {"args": [], "result": 1, "extra": 3},
        {"args": "notalist", "result": 1},
        {"args": []},
        {"args": [], "result": 1, "mustRevert": "yes"},
        1.5,
    ],
)
def test_check_value_rejects(value: object) -> None:
    with pytest.raises(ConfigError):
        parse_check_value(value)


def test_unreadable_and_malformed_files(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="Cannot read"):
        load_description(str(tmp_path / "missing.yaml"))
    bad = tmp_path / "bad.yaml"
    bad.write_text("l1: [unclosed", encoding="utf-8")
    with pytest.raises(ConfigError, match="Cannot parse"):
        load_description(str(bad))


def test_unquoted_hex_stays_text(tmp_path: Path) -> None:
    path = tmp_path / "deployed.yaml"
    path.write_text(
        "l1:\n"
        "  rpcUrl: L1_RPC_URL\n"
        "  contracts:\n"
        "    stETH:\n"
        "      address: 0xae7ab96520DE3A18E5e111B5EaAb095312D7fE84\n"
        "      name: StETH\n"
        "      checks:\n"
        "        getOracle: 0x442af784A788A5bd6F42A01Ebe9F287a871243fb\n"
        "        decimals: 18\n"
        "        isStakingPaused: false\n"
        "        symbol: yes\n"
        "        version: 0755\n"
        "      ozNonEnumerableAcl:\n"
        "        0x0000000000000000000000000000000000000000000000000000000000000000:\n"
        "          - 0x70997970C51812dc3A010C7d01b50e0d17dc79C8\n",
        encoding="utf-8",
    )

    entry = load_description(str(path)).sections["l1"].contracts["stETH"]

    assert entry.address == "0xae7ab96520DE3A18E5e111B5EaAb095312D7fE84"
    assert entry.checks["getOracle"] == ScalarCheck("0x442af784A788A5bd6F42A01Ebe9F287a871243fb")
    assert entry.checks["decimals"] == ScalarCheck(18)
    assert entry.checks["isStakingPaused"] == ScalarCheck(False)
    assert entry.checks["symbol"] == ScalarCheck("yes")
    assert entry.checks["version"] == ScalarCheck("0755")
    assert entry.acl == {"0x" + "00" * 32: ["0x70997970C51812dc3A010C7d01b50e0d17dc79C8"]}


def test_description_loader_leaves_safe_loader_untouched() -> None:
    assert isinstance(yaml.safe_load("a: 0x10"), dict)
    assert yaml.safe_load("a: 0x10") == {"a": 16}
    assert yaml.load("a: 0x10", Loader=DescriptionLoader) == {"a": "0x10"}
