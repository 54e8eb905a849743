"""
gitnft.cli.token: admin operations on a deployed GitNFT contract.

Implements:
  - gitnft token owner <sha>              ownerOf
  - gitnft token uri <sha>                tokenURI
  - gitnft token contract-uri             contractURI
  - gitnft token mint <to> <sha> [--cid]  mint as MINTER_ROLE holder
  - gitnft token burn <sha>
  - gitnft token pause / unpause
  - gitnft token set-token-cid <sha> <cid>
  - gitnft token set-contract-cid <cid>
  - gitnft token set-base-uri <uri>
  - gitnft token grant-role <MINTER|OPERATOR> <address>

The contract address comes from --address or the deployments registry of
--network (build/deployments/<network>.json).
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional, Tuple

import typer
from web3 import Web3

from gitnft.artifacts import Artifact, DeploymentRegistry, default_artifact_path
from gitnft.chain import ChainClient, connect
from gitnft.cid import EMPTY_CID, cid_hex
from gitnft.config import get_network
from gitnft.errors import GitNftError
from gitnft.tokens import token_id

app = typer.Typer(help="Operate a deployed GitNFT contract (mint, burn, pause, URIs)")

_NETWORK = typer.Option("development", "--network", "-n", help="development, live or rinkeby")
_ADDRESS = typer.Option(None, "--address", help="Contract address (default: deployments registry)")
_ARTIFACT = typer.Option(None, "--artifact", help="Compiled GitNFT artifact")
_RPC_URL = typer.Option(None, "--rpc-url", help="Override the network's RPC URL")

_ROLES = {"MINTER": "MINTER_ROLE", "OPERATOR": "OPERATOR_ROLE"}


def _open(
    network: str,
    address: Optional[str],
    artifact: Optional[Path],
    rpc_url: Optional[str],
) -> Tuple[ChainClient, Any]:
    net = get_network(network)
    art = Artifact.load(artifact or default_artifact_path())
    client = ChainClient.from_private_key(
        connect(rpc_url or net.resolve_rpc_url()), net.private_key(), gas=net.gas
    )
    addr = address or DeploymentRegistry(net.name).address_of(art.contract_name)
    return client, client.contract_at(art, addr)


def _run(fn, *args: Any) -> Any:
    try:
        return fn(*args)
    except (GitNftError, ValueError) as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(1)


def _echo_receipt(receipt: Any) -> None:
    typer.echo(json.dumps({
        "txHash": Web3.to_hex(receipt["transactionHash"]),
        "blockNumber": receipt["blockNumber"],
        "gasUsed": receipt["gasUsed"],
    }))


@app.command()
def owner(
    sha: str = typer.Argument(..., help="Git commit SHA1"),
    network: str = _NETWORK, address: Optional[str] = _ADDRESS,
    artifact: Optional[Path] = _ARTIFACT, rpc_url: Optional[str] = _RPC_URL,
) -> None:
    """Print the owner of a token."""
    def go():
        client, token = _open(network, address, artifact, rpc_url)
        return client.call(token.functions.ownerOf(token_id(sha)))
    typer.echo(_run(go))


@app.command()
def uri(
    sha: str = typer.Argument(..., help="Git commit SHA1"),
    network: str = _NETWORK, address: Optional[str] = _ADDRESS,
    artifact: Optional[Path] = _ARTIFACT, rpc_url: Optional[str] = _RPC_URL,
) -> None:
    """Print the metadata URI of a token."""
    def go():
        client, token = _open(network, address, artifact, rpc_url)
        return client.call(token.functions.tokenURI(token_id(sha)))
    typer.echo(_run(go))


@app.command("contract-uri")
def contract_uri(
    network: str = _NETWORK, address: Optional[str] = _ADDRESS,
    artifact: Optional[Path] = _ARTIFACT, rpc_url: Optional[str] = _RPC_URL,
) -> None:
    """Print the collection metadata URI."""
    def go():
        client, token = _open(network, address, artifact, rpc_url)
        return client.call(token.functions.contractURI())
    typer.echo(_run(go))


@app.command()
def mint(
    to: str = typer.Argument(..., help="Recipient address"),
    sha: str = typer.Argument(..., help="Git commit SHA1"),
    token_cid: Optional[str] = typer.Option(None, "--cid", help="Token metadata CID"),
    network: str = _NETWORK, address: Optional[str] = _ADDRESS,
    artifact: Optional[Path] = _ARTIFACT, rpc_url: Optional[str] = _RPC_URL,
) -> None:
    """Mint a token (sender must hold MINTER_ROLE)."""
    def go():
        client, token = _open(network, address, artifact, rpc_url)
        cid_bytes = cid_hex(token_cid) if token_cid else EMPTY_CID
        return client.transact(
            token.get_function_by_signature("mint(address,uint256,bytes)")(
                Web3.to_checksum_address(to), token_id(sha), cid_bytes
            )
        )
    _echo_receipt(_run(go))


@app.command()
def burn(
    sha: str = typer.Argument(..., help="Git commit SHA1"),
    network: str = _NETWORK, address: Optional[str] = _ADDRESS,
    artifact: Optional[Path] = _ARTIFACT, rpc_url: Optional[str] = _RPC_URL,
) -> None:
    """Destroy a token owned by (or approved to) the sender."""
    def go():
        client, token = _open(network, address, artifact, rpc_url)
        return client.transact(token.functions.burn(token_id(sha)))
    _echo_receipt(_run(go))


@app.command()
def pause(
    network: str = _NETWORK, address: Optional[str] = _ADDRESS,
    artifact: Optional[Path] = _ARTIFACT, rpc_url: Optional[str] = _RPC_URL,
) -> None:
    """Pause minting and transfers."""
    def go():
        client, token = _open(network, address, artifact, rpc_url)
        return client.transact(token.functions.pause())
    _echo_receipt(_run(go))


@app.command()
def unpause(
    network: str = _NETWORK, address: Optional[str] = _ADDRESS,
    artifact: Optional[Path] = _ARTIFACT, rpc_url: Optional[str] = _RPC_URL,
) -> None:
    """Resume minting and transfers."""
    def go():
        client, token = _open(network, address, artifact, rpc_url)
        return client.transact(token.functions.unpause())
    _echo_receipt(_run(go))


@app.command("set-token-cid")
def set_token_cid(
    sha: str = typer.Argument(..., help="Git commit SHA1"),
    new_cid: str = typer.Argument(..., help="Token metadata CID"),
    network: str = _NETWORK, address: Optional[str] = _ADDRESS,
    artifact: Optional[Path] = _ARTIFACT, rpc_url: Optional[str] = _RPC_URL,
) -> None:
    """Point a token's URI at ipfs://<cid>."""
    def go():
        client, token = _open(network, address, artifact, rpc_url)
        return client.transact(token.functions.setTokenCID(token_id(sha), cid_hex(new_cid)))
    _echo_receipt(_run(go))


@app.command("set-contract-cid")
def set_contract_cid(
    new_cid: str = typer.Argument(..., help="Collection metadata CID"),
    network: str = _NETWORK, address: Optional[str] = _ADDRESS,
    artifact: Optional[Path] = _ARTIFACT, rpc_url: Optional[str] = _RPC_URL,
) -> None:
    """Point contractURI at ipfs://<cid>."""
    def go():
        client, token = _open(network, address, artifact, rpc_url)
        return client.transact(token.functions.setContractCID(cid_hex(new_cid)))
    _echo_receipt(_run(go))


@app.command("set-base-uri")
def set_base_uri(
    base_uri: str = typer.Argument(..., help="e.g. https://metadata.gitnft.io/"),
    network: str = _NETWORK, address: Optional[str] = _ADDRESS,
    artifact: Optional[Path] = _ARTIFACT, rpc_url: Optional[str] = _RPC_URL,
) -> None:
    """Change the base URI used for tokens without a CID."""
    def go():
        client, token = _open(network, address, artifact, rpc_url)
        return client.transact(token.functions.setBaseURI(base_uri))
    _echo_receipt(_run(go))


@app.command("grant-role")
def grant_role(
    role: str = typer.Argument(..., help="MINTER or OPERATOR"),
    account: str = typer.Argument(..., help="Address to grant the role to"),
    network: str = _NETWORK, address: Optional[str] = _ADDRESS,
    artifact: Optional[Path] = _ARTIFACT, rpc_url: Optional[str] = _RPC_URL,
) -> None:
    """Grant MINTER_ROLE or OPERATOR_ROLE."""
    getter = _ROLES.get(role.upper().removesuffix("_ROLE"))
    if getter is None:
        typer.echo(f"Error: unknown role {role!r} (MINTER or OPERATOR)", err=True)
        raise typer.Exit(2)

    def go():
        client, token = _open(network, address, artifact, rpc_url)
        role_id = client.call(getattr(token.functions, getter)())
        return client.transact(token.functions.grantRole(role_id, Web3.to_checksum_address(account)))
    _echo_receipt(_run(go))
