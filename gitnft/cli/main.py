"""
gitnft - command line interface for the GitNFT contract tooling.

  - gitnft version     Print the tooling version
  - gitnft cid         Encode a CID to the bytes the contract stores (or --decode)
  - gitnft compile     Compile contracts/*.sol into build/contracts/
  - gitnft deploy      Deploy and configure the contract on a network
  - gitnft sign-mint   Sign an EIP-712 Mint voucher as an offline minter
  - gitnft token ...   Admin operations on a deployed contract

Global options:
  --json                 Output JSON instead of human-readable text
  --verbose / -v         DEBUG logging

Examples:
  gitnft cid bafkreigaktskowelbch3vsmbotgqtfstmvjjvimnbeknhwdow4ndknkfhq
  gitnft compile --install
  gitnft deploy --network rinkeby
  gitnft token uri 47de970443216b23ea3e06b897db3bbdde6183cf --network rinkeby
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

import typer

from gitnft import __version__, canonical_json_str, project_root
from gitnft.artifacts import Artifact, default_artifact_path
from gitnft.chain import ChainClient, connect
from gitnft.cid import EMPTY_CID, cid_hex, decode_cid
from gitnft.compile import compile_contracts
from gitnft.config import CompilerSettings, get_network, load_dotenv
from gitnft.deploy import deploy_gitnft
from gitnft.errors import GitNftError
from gitnft.tokens import token_id
from gitnft.typed_data import domain, sign_mint

from . import token as token_cli

app = typer.Typer(
    name="gitnft",
    help="GitNFT contract tooling: compile, deploy, sign and operate",
    no_args_is_help=True,
    add_completion=False,
)


class GlobalContext:
    def __init__(self):
        self.json_output: bool = False
        self.verbose: bool = False


_ctx = GlobalContext()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _fail(exc: Exception) -> None:
    typer.echo(f"Error: {exc}", err=True)
    raise typer.Exit(1)


@app.callback()
def main_callback(
    json_output: bool = typer.Option(False, "--json", help="Output JSON instead of human-readable text"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Increase verbosity"),
) -> None:
    """
    GitNFT CLI.

    Configuration is resolved in this order (highest to lowest priority):
      1. Command-line flags
      2. Environment variables (PRIVATE_KEY, RINKEBY_API_URL, MINTER_ADDRESS, ...)
      3. .env file in the project root (or $ENV_FILE)
    """
    _ctx.json_output = json_output
    _ctx.verbose = verbose
    _configure_logging(verbose)
    load_dotenv()


@app.command()
def version() -> None:
    """Print the tooling version."""
    if _ctx.json_output:
        typer.echo(json.dumps({"version": __version__}))
    else:
        typer.echo(__version__)


@app.command()
def cid(
    value: str = typer.Argument(..., help="CID string, or 0x-hex bytes with --decode"),
    decode: bool = typer.Option(False, "--decode", help="Decode 0x-hex bytes back to a CID string"),
) -> None:
    """Encode a CID to the 0x-hex bytes the contract stores."""
    try:
        out = decode_cid(value) if decode else cid_hex(value)
    except GitNftError as exc:
        _fail(exc)
    if _ctx.json_output:
        typer.echo(json.dumps({"input": value, "output": out}))
    else:
        typer.echo(out)


@app.command("compile")
def compile_cmd(
    source_dir: Path = typer.Option(None, "--source-dir", help="Directory of .sol sources (default: contracts/)"),
    out_dir: Path = typer.Option(None, "--out-dir", help="Artifact directory (default: build/contracts/)"),
    solc: Optional[str] = typer.Option(None, "--solc", help="solc version", envvar="GITNFT_SOLC_VERSION"),
    install: bool = typer.Option(False, "--install", help="Install solc if missing"),
) -> None:
    """Compile Solidity sources with working-directory-free source paths."""
    root = project_root()
    settings = CompilerSettings.from_env()
    if solc:
        settings.solc_version = solc
    try:
        written = compile_contracts(
            source_dir or root / "contracts",
            out_dir or root / "build" / "contracts",
            settings,
            install=install,
        )
    except GitNftError as exc:
        _fail(exc)
    if _ctx.json_output:
        typer.echo(json.dumps([str(p) for p in written]))
    else:
        for p in written:
            typer.echo(str(p))


@app.command()
def deploy(
    network: str = typer.Option("development", "--network", "-n", help="development, live or rinkeby"),
    artifact: Optional[Path] = typer.Option(None, "--artifact", help="Compiled GitNFT artifact"),
    rpc_url: Optional[str] = typer.Option(None, "--rpc-url", help="Override the network's RPC URL"),
) -> None:
    """Deploy GitNFT, grant MINTER_ROLE and register the proxy registry."""
    try:
        net = get_network(network)
        art = Artifact.load(artifact or default_artifact_path())
        client = ChainClient.from_private_key(
            connect(rpc_url or net.resolve_rpc_url()), net.private_key(), gas=net.gas
        )
        result = deploy_gitnft(client, art, net)
    except GitNftError as exc:
        _fail(exc)
    if _ctx.json_output:
        typer.echo(canonical_json_str(result.to_dict()))
    else:
        typer.echo(f"contractAddress: {result.address}")
        if result.tx_hash:
            typer.echo(f"txHash: {result.tx_hash}")


@app.command("sign-mint")
def sign_mint_cmd(
    to: str = typer.Option(..., "--to", help="Recipient address"),
    token: str = typer.Option(..., "--token", help="Git commit SHA1 (token id)"),
    contract: str = typer.Option(..., "--contract", help="GitNFT contract address"),
    chain_id: int = typer.Option(..., "--chain-id", help="Chain id of the contract"),
    token_cid: Optional[str] = typer.Option(None, "--cid", help="Token metadata CID (default: none)"),
    private_key: Optional[str] = typer.Option(
        None, "--private-key", help="Minter key", envvar="MINTER_PRIVATE_KEY", show_envvar=True
    ),
) -> None:
    """Sign an EIP-712 Mint voucher that anyone can relay on-chain."""
    if not private_key:
        _fail(GitNftError("minter key required (--private-key or MINTER_PRIVATE_KEY)"))
    try:
        cid_bytes = cid_hex(token_cid) if token_cid else EMPTY_CID
        sig = sign_mint(to, token_id(token), cid_bytes, domain(chain_id, contract), private_key)
    except (GitNftError, ValueError) as exc:
        _fail(exc)
    payload = sig.as_dict()
    payload.update({"to": to, "tokenId": hex(token_id(token)), "tokenCID": cid_bytes})
    typer.echo(json.dumps(payload, indent=None if _ctx.json_output else 2))


app.add_typer(token_cli.app, name="token")


def main() -> None:
    """Entry point for the gitnft CLI."""
    app()


if __name__ == "__main__":
    main()
