# -*- coding: utf-8 -*-
"""
compile.py
==========

Thin wrapper around solc (via py-solc-x) that keeps compiler output free of
machine-specific paths.

Frameworks hand solc a standard-JSON input keyed by *absolute* source paths.
Those paths end up in the contract metadata (and therefore the bytecode's
metadata hash), so two machines would produce different bytecode. Before the
compiler runs, the project directory is rewritten to "." in the keys of
`sources` and `settings.outputSelection`.

Usage examples
--------------

# Compile every contracts/*.sol into build/contracts/<Name>.json
python -m gitnft.compile --source-dir contracts --out-dir build/contracts

# Install the configured solc first if missing
python -m gitnft.compile --install

Exit codes
----------
0 on success; 2 on compile error; 1 on anything else.
"""
from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

import solcx
from solcx.exceptions import SolcError, SolcNotInstalled

from . import ensure_dir, project_root
from .artifacts import Artifact
from .config import CompilerSettings
from .errors import CompileError

__all__ = [
    "scrub_working_directory",
    "solc_version",
    "compile_standard_json",
    "build_standard_input",
    "compile_contracts",
]

log = logging.getLogger(__name__)


def scrub_working_directory(obj: Mapping[str, Any], working_directory: Union[str, Path]) -> Dict[str, Any]:
    """
    Copy of `obj` whose keys have the working directory replaced with ".".
    Values are kept as-is.
    """
    wd = str(working_directory)
    return {key.replace(wd, ".", 1): value for key, value in obj.items()}


def solc_version(settings: Optional[CompilerSettings] = None) -> str:
    return (settings or CompilerSettings.from_env()).solc_version


def _ensure_solc(version: str, install: bool) -> None:
    installed = {str(v) for v in solcx.get_installed_solc_versions()}
    if version in installed:
        return
    if not install:
        raise CompileError(
            f"solc {version} is not installed (run `gitnft compile --install`)"
        )
    log.info("installing solc %s", version)
    solcx.install_solc(version)


def compile_standard_json(
    input_string: str,
    working_directory: Optional[Union[str, Path]] = None,
    version: Optional[str] = None,
    install: bool = False,
) -> str:
    """
    Scrub the working directory from the standard-JSON input and run solc.
    Takes and returns JSON strings, like solc's own `compile()` entry point.
    """
    wd = Path(working_directory) if working_directory else project_root()
    version = version or solc_version()

    data = json.loads(input_string)
    data["sources"] = scrub_working_directory(data.get("sources") or {}, wd)
    settings = data.setdefault("settings", {})
    settings["outputSelection"] = scrub_working_directory(
        settings.get("outputSelection") or {}, wd
    )

    _ensure_solc(version, install)
    log.debug("solc %s: compiling %d source(s)", version, len(data["sources"]))
    try:
        output = solcx.compile_standard(
            data,
            solc_version=version,
            base_path=str(wd),
            allow_paths=[str(wd)],
        )
    except SolcNotInstalled as exc:
        raise CompileError(f"solc {version} is not installed") from exc
    except SolcError as exc:
        raise CompileError(f"solc {version} failed: {exc.message}") from exc
    return json.dumps(output)


def build_standard_input(
    source_paths: Iterable[Path],
    settings: Optional[CompilerSettings] = None,
    remappings: Optional[List[str]] = None,
) -> Dict[str, Any]:
    """
    Standard-JSON input keyed by absolute source paths, the shape a build
    framework hands to the compiler.
    """
    settings = settings or CompilerSettings.from_env()
    sources: Dict[str, Any] = {}
    for p in source_paths:
        ap = Path(p).resolve()
        sources[str(ap)] = {"content": ap.read_text(encoding="utf-8")}
    std_settings = settings.standard_settings()
    std_settings["outputSelection"] = {
        key: {"*": list(settings.output_selection)} for key in sources
    }
    if remappings:
        std_settings["remappings"] = list(remappings)
    return {"language": "Solidity", "sources": sources, "settings": std_settings}


def _default_remappings(root: Path) -> List[str]:
    node_modules = root / "node_modules"
    if not node_modules.is_dir():
        return []
    return [
        f"{pkg.name}/=node_modules/{pkg.name}/"
        for pkg in sorted(node_modules.glob("@*"))
        if pkg.is_dir()
    ]


def compile_contracts(
    source_dir: Path,
    out_dir: Path,
    settings: Optional[CompilerSettings] = None,
    working_directory: Optional[Path] = None,
    install: bool = False,
) -> List[Path]:
    """
    Compile every *.sol under `source_dir` and write one artifact per contract.
    Returns the written artifact paths.
    """
    settings = settings or CompilerSettings.from_env()
    wd = (working_directory or project_root()).resolve()
    sources = sorted(Path(source_dir).rglob("*.sol"))
    if not sources:
        raise CompileError(f"no .sol files under {source_dir}")

    std_input = build_standard_input(sources, settings, _default_remappings(wd))
    output = json.loads(
        compile_standard_json(
            json.dumps(std_input),
            working_directory=wd,
            version=settings.solc_version,
            install=install,
        )
    )

    errors = [e for e in output.get("errors", []) if e.get("severity") == "error"]
    if errors:
        raise CompileError("compilation failed", errors=errors)
    for warning in output.get("errors", []):
        log.warning("solc: %s", (warning.get("formattedMessage") or warning.get("message", "")).strip())

    ensure_dir(out_dir)
    written: List[Path] = []
    for source_key, contracts in sorted(output.get("contracts", {}).items()):
        for name, body in sorted(contracts.items()):
            evm = body.get("evm") or {}
            artifact = Artifact(
                contract_name=name,
                abi=body.get("abi") or [],
                bytecode="0x" + ((evm.get("bytecode") or {}).get("object") or ""),
                deployed_bytecode="0x" + ((evm.get("deployedBytecode") or {}).get("object") or ""),
                source_path=source_key,
                compiler={"name": "solc", "version": settings.solc_version},
            )
            path = artifact.save(Path(out_dir) / f"{name}.json")
            log.info("wrote %s", path)
            written.append(path)
    return written


# ------------------------------ CLI ------------------------------------------


def _parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    root = project_root()
    p = argparse.ArgumentParser(
        prog="gitnft.compile",
        description="Compile Solidity sources with working-directory-free paths.",
    )
    p.add_argument("--source-dir", type=Path, default=root / "contracts")
    p.add_argument("--out-dir", type=Path, default=root / "build" / "contracts")
    p.add_argument("--solc", type=str, default=None, help="solc version (default: GITNFT_SOLC_VERSION or 0.8.4)")
    p.add_argument("--install", action="store_true", help="Install solc if missing")
    return p.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> int:
    logging.basicConfig(
        level=getattr(logging, os.getenv("GITNFT_LOG_LEVEL", "INFO").upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    args = _parse_args(argv)
    settings = CompilerSettings.from_env()
    if args.solc:
        settings.solc_version = args.solc
    try:
        written = compile_contracts(args.source_dir, args.out_dir, settings, install=args.install)
    except CompileError as ce:
        print(f"[compile] Compile error: {ce}", file=sys.stderr)
        return 2
    except Exception as exc:
        print(f"[compile] Failed: {exc}", file=sys.stderr)
        return 1
    for path in written:
        print(path)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
