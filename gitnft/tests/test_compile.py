# -*- coding: utf-8 -*-
"""
Compiler wrapper: working-directory scrubbing and artifact emission.

solcx is replaced by the `fake_solc` recorder, so these run without a solc
binary or network access.
"""
from __future__ import annotations

import json

import pytest

from gitnft.artifacts import Artifact
from gitnft.compile import (
    build_standard_input,
    compile_contracts,
    compile_standard_json,
    scrub_working_directory,
)
from gitnft.config import CompilerSettings
from gitnft.errors import CompileError

WD = "/home/dev/gitnft"


def test_scrub_rewrites_keys_only():
    obj = {
        f"{WD}/contracts/GitNFT.sol": {"content": f"// {WD}/contracts/GitNFT.sol"},
        "@openzeppelin/contracts/token/ERC721/ERC721.sol": {"content": "x"},
    }
    out = scrub_working_directory(obj, WD)
    assert out == {
        "./contracts/GitNFT.sol": {"content": f"// {WD}/contracts/GitNFT.sol"},
        "@openzeppelin/contracts/token/ERC721/ERC721.sol": {"content": "x"},
    }
    # input untouched
    assert f"{WD}/contracts/GitNFT.sol" in obj


def test_scrub_replaces_first_occurrence_only():
    key = f"{WD}/vendor{WD}/A.sol"
    assert scrub_working_directory({key: 1}, WD) == {f"./vendor{WD}/A.sol": 1}


def test_compile_standard_json_scrubs_sources_and_output_selection(fake_solc, tmp_path):
    src = str(tmp_path / "contracts" / "GitNFT.sol")
    std_input = {
        "language": "Solidity",
        "sources": {src: {"content": "contract GitNFT {}"}},
        "settings": {
            "optimizer": {"enabled": True, "runs": 200},
            "outputSelection": {src: {"*": ["abi"]}},
        },
    }
    out = json.loads(compile_standard_json(json.dumps(std_input), working_directory=tmp_path))

    sent = fake_solc.inputs[-1]
    assert list(sent["sources"]) == ["./contracts/GitNFT.sol"]
    assert list(sent["settings"]["outputSelection"]) == ["./contracts/GitNFT.sol"]
    assert sent["settings"]["optimizer"] == {"enabled": True, "runs": 200}
    assert fake_solc.kwargs[-1]["solc_version"] == "0.8.4"
    assert fake_solc.kwargs[-1]["base_path"] == str(tmp_path)
    assert "./contracts/GitNFT.sol" in out["contracts"]


def test_missing_settings_are_tolerated(fake_solc, tmp_path):
    compile_standard_json(json.dumps({"language": "Solidity", "sources": {}}), working_directory=tmp_path)
    assert fake_solc.inputs[-1]["settings"] == {"outputSelection": {}}


def test_not_installed_without_install_flag(fake_solc, tmp_path):
    with pytest.raises(CompileError, match="not installed"):
        compile_standard_json("{}", working_directory=tmp_path, version="0.8.9")
    assert not fake_solc.inputs


def test_install_on_demand(fake_solc, tmp_path):
    compile_standard_json("{}", working_directory=tmp_path, version="0.8.9", install=True)
    assert "0.8.9" in fake_solc.installed
    assert fake_solc.kwargs[-1]["solc_version"] == "0.8.9"


def test_build_standard_input_uses_absolute_keys(tmp_path):
    sol = tmp_path / "GitNFT.sol"
    sol.write_text("contract GitNFT {}", encoding="utf-8")
    std = build_standard_input([sol], CompilerSettings(), ["@openzeppelin/=node_modules/@openzeppelin/"])
    key = str(sol.resolve())
    assert std["sources"] == {key: {"content": "contract GitNFT {}"}}
    assert std["settings"]["optimizer"] == {"enabled": True, "runs": 200}
    assert "evm.bytecode.object" in std["settings"]["outputSelection"][key]["*"]
    assert std["settings"]["remappings"] == ["@openzeppelin/=node_modules/@openzeppelin/"]


def test_compile_contracts_writes_artifacts(fake_solc, project_dir):
    contracts = project_dir / "contracts"
    contracts.mkdir()
    (contracts / "GitNFT.sol").write_text("contract GitNFT {}", encoding="utf-8")
    (contracts / "Proxy.sol").write_text("contract Proxy {}", encoding="utf-8")
    out_dir = project_dir / "build" / "contracts"

    written = compile_contracts(contracts, out_dir, CompilerSettings(), working_directory=project_dir)

    assert sorted(p.name for p in written) == ["GitNFT.json", "Proxy.json"]
    art = Artifact.load(out_dir / "GitNFT.json")
    assert art.contract_name == "GitNFT"
    assert art.bytecode == "0x6080"
    assert art.deployed_bytecode == "0x6081"
    assert art.source_path == "./contracts/GitNFT.sol"
    assert art.compiler == {"name": "solc", "version": "0.8.4"}
    # no absolute paths reach the compiler
    assert all(k.startswith("./") for k in fake_solc.inputs[-1]["sources"])


def test_compile_contracts_adds_node_modules_remappings(fake_solc, project_dir):
    (project_dir / "node_modules" / "@openzeppelin").mkdir(parents=True)
    contracts = project_dir / "contracts"
    contracts.mkdir()
    (contracts / "GitNFT.sol").write_text("contract GitNFT {}", encoding="utf-8")
    compile_contracts(contracts, project_dir / "out", CompilerSettings(), working_directory=project_dir)
    assert fake_solc.inputs[-1]["settings"]["remappings"] == [
        "@openzeppelin/=node_modules/@openzeppelin/"
    ]


def test_compile_contracts_reports_errors(fake_solc, project_dir):
    contracts = project_dir / "contracts"
    contracts.mkdir()
    (contracts / "Broken.sol").write_text("contract {", encoding="utf-8")
    fake_solc.output = {
        "errors": [
            {"severity": "error", "formattedMessage": "ParserError: Expected identifier\n"},
        ]
    }
    with pytest.raises(CompileError, match="ParserError") as info:
        compile_contracts(contracts, project_dir / "out", CompilerSettings(), working_directory=project_dir)
    assert info.value.errors and info.value.errors[0]["severity"] == "error"
    assert not (project_dir / "out").exists()


def test_compile_contracts_without_sources(fake_solc, project_dir):
    (project_dir / "contracts").mkdir()
    with pytest.raises(CompileError, match="no .sol files"):
        compile_contracts(project_dir / "contracts", project_dir / "out", working_directory=project_dir)


def test_compile_error_message_includes_first_compiler_entry():
    err = CompileError("solc reported 2 error(s)", errors=[
        {"severity": "error", "formattedMessage": "ParserError: Expected identifier\n"},
        {"severity": "error", "message": "second"},
    ])
    assert str(err) == "solc reported 2 error(s): ParserError: Expected identifier"
    assert str(CompileError("solc reported 1 error(s)", errors=[{"message": " TypeError "}])) == (
        "solc reported 1 error(s): TypeError"
    )
    assert str(CompileError("solc 0.8.4 is not installed")) == "solc 0.8.4 is not installed"
