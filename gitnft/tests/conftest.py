# -*- coding: utf-8 -*-
"""
gitnft.tests.conftest
=====================

Shared fixtures:

- `clean_env`: strips every variable the tooling reads, so tests start from
  defaults regardless of the developer's shell or .env.
- `project_dir`: a temporary project root (has pyproject.toml) set as CWD, so
  registries and artifacts land under tmp_path.
- `fake_solc`: replaces py-solc-x's compiler entry points with a recorder.
- `offline_minter`: a fresh eth-account key pair.
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest
import solcx
from eth_account import Account

_TOOL_ENV = (
    "PRIVATE_KEY",
    "MAINNET_API_URL",
    "RINKEBY_API_URL",
    "GITNFT_RPC_URL",
    "MINTER_ADDRESS",
    "MINTER_PRIVATE_KEY",
    "GITNFT_SOLC_VERSION",
    "GITNFT_ARTIFACT",
    "ENV_FILE",
)


@pytest.fixture
def clean_env(monkeypatch):
    # setenv first so teardown also removes values written by load_dotenv()
    for name in _TOOL_ENV:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    return monkeypatch


@pytest.fixture
def project_dir(tmp_path: Path, clean_env) -> Path:
    (tmp_path / "pyproject.toml").write_text("[project]\nname = 'scratch'\n", encoding="utf-8")
    clean_env.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def offline_minter():
    return Account.create()


class FakeSolc:
    """Records compile_standard calls and answers with a canned output."""

    def __init__(self, installed: List[str]):
        self.installed = list(installed)
        self.inputs: List[Dict[str, Any]] = []
        self.kwargs: List[Dict[str, Any]] = []
        self.output: Optional[Dict[str, Any]] = None

    def compile_standard(self, input_data: Dict[str, Any], **kwargs: Any) -> Dict[str, Any]:
        # deep copy so later mutation by the caller doesn't rewrite history
        self.inputs.append(json.loads(json.dumps(input_data)))
        self.kwargs.append(kwargs)
        if self.output is not None:
            return self.output
        contracts: Dict[str, Any] = {}
        for key in input_data["sources"]:
            name = Path(key).stem
            contracts[key] = {
                name: {
                    "abi": [{"type": "constructor", "inputs": []}],
                    "evm": {
                        "bytecode": {"object": "6080"},
                        "deployedBytecode": {"object": "6081"},
                    },
                }
            }
        return {"contracts": contracts, "sources": {}}

    def get_installed_solc_versions(self) -> List[str]:
        return list(self.installed)

    def install_solc(self, version: str) -> None:
        self.installed.append(version)


@pytest.fixture
def fake_solc(monkeypatch) -> FakeSolc:
    fake = FakeSolc(installed=["0.8.4"])
    monkeypatch.setattr(solcx, "compile_standard", fake.compile_standard)
    monkeypatch.setattr(solcx, "get_installed_solc_versions", fake.get_installed_solc_versions)
    monkeypatch.setattr(solcx, "install_solc", fake.install_solc)
    return fake


# ---------------------------------------------------------------------------
# In-process chain with a stand-in contract
# ---------------------------------------------------------------------------

# init code copies the 10-byte runtime out; the runtime answers every call with
# the 32-byte word 42 (PUSH1 2a PUSH1 0 MSTORE PUSH1 20 PUSH1 0 RETURN)
STUB_BYTECODE = "0x600a600c600039600a6000f3" + "602a60005260206000f3"


def _fn(name: str, inputs: List[str], outputs: Optional[List[str]] = None) -> Dict[str, Any]:
    return {
        "type": "function",
        "name": name,
        "inputs": [{"name": f"a{i}", "type": t} for i, t in enumerate(inputs)],
        "outputs": [{"name": "", "type": t} for t in (outputs or [])],
        "stateMutability": "view" if outputs else "nonpayable",
    }


STUB_ABI = [
    _fn("owner", [], ["address"]),
    _fn("ownerOf", ["uint256"], ["address"]),
    _fn("MINTER_ROLE", [], ["bytes32"]),
    _fn("OPERATOR_ROLE", [], ["bytes32"]),
    _fn("mint", ["address", "uint256", "bytes"]),
    _fn("burn", ["uint256"]),
    _fn("pause", []),
    _fn("unpause", []),
    _fn("setTokenCID", ["uint256", "bytes"]),
    _fn("setContractCID", ["bytes"]),
    _fn("setBaseURI", ["string"]),
    _fn("grantRole", ["bytes32", "address"]),
]


@pytest.fixture
def stub_artifact():
    from gitnft.artifacts import Artifact

    return Artifact(contract_name="GitNFT", abi=STUB_ABI, bytecode=STUB_BYTECODE)


@pytest.fixture
def tester_w3():
    pytest.importorskip("eth_tester")
    from gitnft.chain import connect_tester

    return connect_tester()


@pytest.fixture
def funded_account(tester_w3):
    """Fresh key holding 10 ether, so it can pay for its own signed transactions."""
    acct = Account.create()
    tx = tester_w3.eth.send_transaction(
        {"from": tester_w3.eth.accounts[0], "to": acct.address, "value": 10**19}
    )
    tester_w3.eth.wait_for_transaction_receipt(tx)
    return acct
