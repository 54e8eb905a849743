"""
Compiled contract artifacts and the per-network deployments registry.

Artifact layout (one JSON file per contract, build/contracts/<Name>.json):

    {
      "contractName": "GitNFT",
      "abi": [...],
      "bytecode": "0x...",
      "deployedBytecode": "0x...",
      "sourcePath": "./contracts/GitNFT.sol",
      "compiler": {"name": "solc", "version": "0.8.4"}
    }

Deployments registry (build/deployments/<network>.json), keyed by contract name.
"""
from __future__ import annotations

import json
import logging
import os
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from . import atomic_write_text, canonical_json_str, ensure_dir, project_root
from .errors import ArtifactError

__all__ = ["Artifact", "DeploymentRegistry", "default_artifact_path"]

log = logging.getLogger(__name__)


def _hex0x(s: Optional[str]) -> str:
    s = (s or "").strip()
    if not s:
        return ""
    return s if s.startswith("0x") else "0x" + s


@dataclass
class Artifact:
    contract_name: str
    abi: List[Dict[str, Any]]
    bytecode: str
    deployed_bytecode: str = ""
    source_path: Optional[str] = None
    compiler: Dict[str, Any] = field(default_factory=dict)

    @property
    def deployable(self) -> bool:
        return len(self.bytecode) > 2

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Artifact":
        try:
            name = data["contractName"]
            abi = data["abi"]
        except (KeyError, TypeError) as exc:
            raise ArtifactError(f"artifact missing field {exc}") from exc
        if not isinstance(abi, list):
            raise ArtifactError(f"artifact {name!r}: abi must be a list")
        return cls(
            contract_name=str(name),
            abi=abi,
            bytecode=_hex0x(data.get("bytecode")),
            deployed_bytecode=_hex0x(data.get("deployedBytecode")),
            source_path=data.get("sourcePath"),
            compiler=dict(data.get("compiler") or {}),
        )

    @classmethod
    def load(cls, path: Union[str, os.PathLike[str]]) -> "Artifact":
        p = Path(path)
        if not p.is_file():
            raise ArtifactError(f"artifact not found: {p} (run `gitnft compile` first)")
        try:
            data = json.loads(p.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ArtifactError(f"artifact {p} is not valid JSON: {exc}") from exc
        return cls.from_dict(data)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "contractName": self.contract_name,
            "abi": self.abi,
            "bytecode": self.bytecode,
            "deployedBytecode": self.deployed_bytecode,
            "sourcePath": self.source_path,
            "compiler": self.compiler,
        }

    def save(self, path: Union[str, os.PathLike[str]]) -> Path:
        return atomic_write_text(path, canonical_json_str(self.to_dict()))


def default_artifact_path(name: str = "GitNFT") -> Path:
    override = os.getenv("GITNFT_ARTIFACT")
    if override:
        return Path(override)
    return project_root() / "build" / "contracts" / f"{name}.json"


class DeploymentRegistry:
    """JSON file of deployed addresses for one network."""

    def __init__(self, network: str, root: Optional[Path] = None):
        self.network = network
        self.path = (root or project_root() / "build" / "deployments") / f"{network}.json"

    def load(self) -> Dict[str, Any]:
        if not self.path.is_file():
            return {}
        try:
            return json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            log.warning("ignoring malformed deployments registry %s", self.path)
            return {}

    def record(
        self,
        contract_name: str,
        address: str,
        tx_hash: Optional[str],
        chain_id: int,
    ) -> Path:
        current = self.load()
        current[contract_name] = {
            "address": address,
            "txHash": tx_hash,
            "chainId": int(chain_id),
            "timestamp": int(time.time()),
        }
        ensure_dir(self.path.parent)
        atomic_write_text(self.path, canonical_json_str(current))
        log.info("recorded %s at %s in %s", contract_name, address, self.path)
        return self.path

    def address_of(self, contract_name: str = "GitNFT") -> str:
        entry = self.load().get(contract_name)
        if not entry or not entry.get("address"):
            raise ArtifactError(
                f"no {contract_name} deployment recorded for network {self.network!r}"
            )
        return str(entry["address"])
