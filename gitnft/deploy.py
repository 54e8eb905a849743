# -*- coding: utf-8 -*-
"""
deploy.py
=========

Deploy the GitNFT contract and wire it up for a network.

What this does
--------------
1. Encodes the collection metadata CID (contract.json) to binary.
2. Deploys GitNFT("ipfs://", "https://gitnft.io/", <contract CID bytes>).
3. Grants MINTER_ROLE to $MINTER_ADDRESS when set.
4. Registers the marketplace proxy registry on networks that have one
   (live: Wyvern Proxy Registry v2, rinkeby: its testnet counterpart).
5. Records the address in build/deployments/<network>.json.

Environment (optional; .env in the project root is honoured):
  PRIVATE_KEY       = deployer key for live/rinkeby
  MAINNET_API_URL   = RPC for live
  RINKEBY_API_URL   = RPC for rinkeby
  GITNFT_RPC_URL    = RPC for development (default http://127.0.0.1:8545)
  MINTER_ADDRESS    = address granted MINTER_ROLE

CLI
---
python -m gitnft.deploy --network development
python -m gitnft.deploy --network rinkeby --artifact build/contracts/GitNFT.json --json

Exit codes: 0 on success; 2 on configuration errors; 3 when the deploy fails.
"""
from __future__ import annotations

import argparse
import logging
import os
import sys
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from web3 import Web3

from . import canonical_json_str
from .artifacts import Artifact, DeploymentRegistry, default_artifact_path
from .chain import ChainClient, connect
from .cid import cid_hex
from .config import DeployConfig, NetworkConfig, get_network, load_dotenv
from .errors import GitNftError

__all__ = ["DeploymentResult", "deploy_gitnft", "main"]

log = logging.getLogger(__name__)


@dataclass
class DeploymentResult:
    network: str
    chain_id: int
    address: str
    tx_hash: Optional[str]
    minter: Optional[str] = None
    proxy_registry: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def deploy_gitnft(
    client: ChainClient,
    artifact: Artifact,
    network: NetworkConfig,
    config: Optional[DeployConfig] = None,
    registry: Optional[DeploymentRegistry] = None,
) -> DeploymentResult:
    config = config or DeployConfig.from_env()
    network.check_chain_id(client.chain_id)

    contract_cid = cid_hex(config.contract_cid)
    log.info("deploying %s to %s (contract CID %s)", artifact.contract_name, network.name, config.contract_cid)
    token = client.deploy(artifact, config.base_uri_prefix, config.metadata_base_uri, contract_cid)
    tx_hash = client.w3.to_hex(client.last_receipt["transactionHash"]) if client.last_receipt else None

    minter = None
    if config.minter_address:
        minter = Web3.to_checksum_address(config.minter_address)
        minter_role = client.call(token.functions.MINTER_ROLE())
        client.transact(token.functions.grantRole(minter_role, minter))
        log.info("granted MINTER_ROLE to %s", minter)

    if network.proxy_registry:
        client.transact(token.functions.setProxyRegistry(Web3.to_checksum_address(network.proxy_registry)))
        log.info("registered proxy registry %s", network.proxy_registry)

    result = DeploymentResult(
        network=network.name,
        chain_id=client.chain_id,
        address=token.address,
        tx_hash=tx_hash,
        minter=minter,
        proxy_registry=network.proxy_registry,
    )
    (registry or DeploymentRegistry(network.name)).record(
        artifact.contract_name, token.address, tx_hash, client.chain_id
    )
    return result


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


def _parse_args(argv=None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="gitnft.deploy",
        description="Deploy the GitNFT contract and configure roles and proxy registry.",
    )
    p.add_argument("--network", type=str, default="development", help="development, live or rinkeby")
    p.add_argument("--artifact", type=Path, default=None, help="Compiled artifact (default: build/contracts/GitNFT.json)")
    p.add_argument("--rpc", type=str, default=None, help="Override the network's RPC URL")
    p.add_argument("--timeout", type=float, default=120.0, help="Receipt wait timeout seconds (default: 120)")
    p.add_argument("--json", action="store_true", help="Print machine-readable JSON result to stdout")
    return p.parse_args(argv)


def main(argv=None) -> int:
    logging.basicConfig(
        level=getattr(logging, os.getenv("GITNFT_LOG_LEVEL", "INFO").upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    load_dotenv()
    args = _parse_args(argv)

    try:
        network = get_network(args.network)
        artifact = Artifact.load(args.artifact or default_artifact_path())
        w3 = connect(args.rpc or network.resolve_rpc_url())
        client = ChainClient.from_private_key(
            w3, network.private_key(), gas=network.gas, receipt_timeout=args.timeout
        )
    except GitNftError as exc:
        print(f"[deploy] ERROR: {exc}", file=sys.stderr)
        return 2

    try:
        result = deploy_gitnft(client, artifact, network)
    except GitNftError as exc:
        print(f"[deploy] ERROR: deploy failed: {exc}", file=sys.stderr)
        return 3

    if args.json:
        print(canonical_json_str(result.to_dict()))
    else:
        print(f"network: {result.network} (chain {result.chain_id})")
        print(f"contractAddress: {result.address}")
        if result.minter:
            print(f"minter: {result.minter}")
        if result.proxy_registry:
            print(f"proxyRegistry: {result.proxy_registry}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
