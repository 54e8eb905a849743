"""
Network profiles, compiler settings and deploy parameters.

Configuration is resolved in this order (highest to lowest priority):
  1. Command-line flags
  2. Process environment (PRIVATE_KEY, MAINNET_API_URL, RINKEBY_API_URL, ...)
  3. A .env file ($ENV_FILE, else <project root>/.env)
  4. Built-in defaults below

Environment variables:
  PRIVATE_KEY          deployer key for remote networks (0x + 64 hex, or @path)
  MAINNET_API_URL      RPC endpoint for "live"
  RINKEBY_API_URL      RPC endpoint for "rinkeby"
  GITNFT_RPC_URL       RPC endpoint for "development" (default http://127.0.0.1:8545)
  MINTER_ADDRESS       address granted MINTER_ROLE after deploy
  GITNFT_SOLC_VERSION  solc version for the compiler wrapper (default 0.8.4)
"""
from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from . import env, project_root
from .errors import ConfigError

__all__ = [
    "NetworkConfig",
    "NETWORKS",
    "get_network",
    "CompilerSettings",
    "DeployConfig",
    "load_env_file",
    "load_dotenv",
]

DEFAULT_RPC_URL = "http://127.0.0.1:8545"
DEFAULT_GAS = 5_000_000
DEFAULT_SOLC_VERSION = "0.8.4"

_KEY_RE = re.compile(r"^(0x)?[0-9a-fA-F]{64}$")


@dataclass(frozen=True)
class NetworkConfig:
    name: str
    network_id: Optional[int]  # None matches any chain id
    rpc_url: Optional[str] = None
    rpc_url_env: Optional[str] = None
    private_key_env: Optional[str] = None
    gas: Optional[int] = None
    proxy_registry: Optional[str] = None

    @property
    def is_remote(self) -> bool:
        return self.private_key_env is not None

    def resolve_rpc_url(self) -> str:
        url = (env(self.rpc_url_env) if self.rpc_url_env else None) or self.rpc_url
        if not url:
            raise ConfigError(
                f"network {self.name!r} needs an RPC URL (set {self.rpc_url_env})"
            )
        return url

    def private_key(self) -> Optional[str]:
        """Deployer key for remote networks; None means use unlocked node accounts."""
        if not self.private_key_env:
            return None
        key = env(self.private_key_env)
        if not key:
            raise ConfigError(
                f"network {self.name!r} needs a deployer key (set {self.private_key_env})"
            )
        if not _KEY_RE.match(key.strip()):
            raise ConfigError(f"{self.private_key_env} must be 32 bytes of hex")
        key = key.strip()
        return key if key.startswith("0x") else "0x" + key

    def check_chain_id(self, chain_id: int) -> None:
        if self.network_id is not None and int(chain_id) != self.network_id:
            raise ConfigError(
                f"network {self.name!r} expects chain id {self.network_id}, node reports {chain_id}"
            )


NETWORKS: Dict[str, NetworkConfig] = {
    "development": NetworkConfig(
        name="development",
        network_id=None,
        rpc_url=DEFAULT_RPC_URL,
        rpc_url_env="GITNFT_RPC_URL",
    ),
    "live": NetworkConfig(
        name="live",
        network_id=1,
        rpc_url_env="MAINNET_API_URL",
        private_key_env="PRIVATE_KEY",
        gas=DEFAULT_GAS,
        # Wyvern Proxy Registry v2
        # https://etherscan.io/address/0xa5409ec958C83C3f309868babACA7c86DCB077c1
        proxy_registry="0xa5409ec958c83c3f309868babaca7c86dcb077c1",
    ),
    "rinkeby": NetworkConfig(
        name="rinkeby",
        network_id=4,
        rpc_url_env="RINKEBY_API_URL",
        private_key_env="PRIVATE_KEY",
        gas=DEFAULT_GAS,
        # https://rinkeby.etherscan.io/address/0xf57b2c51ded3a29e6891aba85459d600256cf317
        proxy_registry="0xf57b2c51ded3a29e6891aba85459d600256cf317",
    ),
}


def get_network(name: str) -> NetworkConfig:
    try:
        return NETWORKS[name]
    except KeyError:
        known = ", ".join(sorted(NETWORKS))
        raise ConfigError(f"unknown network {name!r} (known: {known})") from None


@dataclass
class CompilerSettings:
    solc_version: str = DEFAULT_SOLC_VERSION
    optimizer_enabled: bool = True
    optimizer_runs: int = 200
    output_selection: tuple = (
        "abi",
        "metadata",
        "evm.bytecode.object",
        "evm.deployedBytecode.object",
    )

    @classmethod
    def from_env(cls) -> "CompilerSettings":
        return cls(solc_version=os.getenv("GITNFT_SOLC_VERSION", DEFAULT_SOLC_VERSION))

    def standard_settings(self) -> Dict[str, Any]:
        return {
            "optimizer": {
                "enabled": self.optimizer_enabled,
                "runs": self.optimizer_runs,
            },
        }


@dataclass
class DeployConfig:
    base_uri_prefix: str = "ipfs://"
    metadata_base_uri: str = "https://gitnft.io/"
    # contract.json (collection-level metadata)
    contract_cid: str = "bafkreigaktskowelbch3vsmbotgqtfstmvjjvimnbeknhwdow4ndknkfhq"
    minter_address: Optional[str] = field(default=None)

    @classmethod
    def from_env(cls) -> "DeployConfig":
        return cls(minter_address=os.getenv("MINTER_ADDRESS") or None)


# ---------------------------------------------------------------------------
# .env loader
# ---------------------------------------------------------------------------

_ENV_LINE_RE = re.compile(r"^([A-Za-z_][A-Za-z0-9_]*)\s*=\s*(.*)$")


def load_env_file(dotenv_path: Path) -> Dict[str, str]:
    """
    Tiny .env reader. Supports lines like:
      KEY=value
      KEY="quoted value"
      export KEY=value
    Comments (# ...), including trailing ones after an unquoted value, and
    blank lines are ignored.
    """
    values: Dict[str, str] = {}
    if not dotenv_path.is_file():
        return values
    for raw in dotenv_path.read_text(encoding="utf-8").splitlines():
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        if line.lower().startswith("export "):
            line = line[7:].strip()
        m = _ENV_LINE_RE.match(line)
        if not m:
            continue
        key, val = m.group(1), m.group(2).strip()
        if val[:1] in ("'", '"') and val.find(val[0], 1) > 0:
            val = val[1:val.find(val[0], 1)]
        else:
            # inline comment: whitespace then '#'; "a#b" is kept as-is
            val = re.split(r"\s+#", val, maxsplit=1)[0].rstrip()
        values[key] = val
    return values


def load_dotenv(path: Optional[Path] = None) -> Optional[Path]:
    """
    Merge the first .env found into os.environ without overriding existing
    variables. Returns the file used, if any.
    """
    candidates = []
    if path is not None:
        candidates.append(Path(path))
    if os.environ.get("ENV_FILE"):
        candidates.append(Path(os.environ["ENV_FILE"]))
    candidates.append(project_root() / ".env")

    for p in candidates:
        if p.is_file():
            for k, v in load_env_file(p).items():
                os.environ.setdefault(k, v)
            return p
    return None
