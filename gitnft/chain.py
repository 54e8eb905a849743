"""
Chain client wrapper over web3.

Two ways of sending transactions, picked by whether a local key is given:

- local account (remote networks): build → sign with eth-account → send raw
- unlocked node accounts (development chains, eth-tester): `transact({"from": ...})`

Contract reverts are surfaced as `RevertError` carrying the decoded reason
string, so callers and tests can match on messages such as
"ERC721Pausable: token transfer while paused".

Example:
    from gitnft.chain import ChainClient, connect
    client = ChainClient(connect("http://127.0.0.1:8545"))
    token = client.deploy(artifact, "ipfs://", "https://gitnft.io/", cid)
    client.transact(token.functions.pause())
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import EthereumTesterProvider, Web3
from web3.contract import Contract
from web3.exceptions import ContractLogicError, TimeExhausted

from .artifacts import Artifact
from .errors import ArtifactError, ConfigError, RevertError, TxError

__all__ = ["ChainClient", "connect", "connect_tester", "revert_reason"]

log = logging.getLogger(__name__)

_REVERT_PREFIXES = (
    "execution reverted: ",
    "execution reverted",
    "VM Exception while processing transaction: reverted with reason string ",
    "VM Exception while processing transaction: revert ",
    "VM Exception while processing transaction: revert",
)


def connect(rpc_url: str, timeout: float = 30.0) -> Web3:
    w3 = Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": timeout}))
    if not w3.is_connected():
        raise ConfigError(f"cannot connect to Ethereum node at {rpc_url}")
    return w3


def connect_tester() -> Web3:
    """In-process chain (eth-tester + py-evm) with ten funded, unlocked accounts."""
    return Web3(EthereumTesterProvider())


def revert_reason(exc: BaseException) -> str:
    """Human revert reason from a web3/provider exception."""
    msg = getattr(exc, "message", None) or (exc.args[0] if exc.args else "") or str(exc)
    if isinstance(msg, dict):
        msg = msg.get("message", "")
    msg = str(msg).strip()
    for prefix in _REVERT_PREFIXES:
        if msg.startswith(prefix):
            return msg[len(prefix):].strip().strip("'\"")
    return msg


@dataclass
class ChainClient:
    w3: Web3
    account: Optional[LocalAccount] = None
    gas: Optional[int] = None
    receipt_timeout: float = 120.0
    last_receipt: Optional[Dict[str, Any]] = field(default=None, init=False, repr=False)
    _chain_id: Optional[int] = field(default=None, init=False, repr=False)

    @classmethod
    def from_private_key(cls, w3: Web3, private_key: Optional[str], **kwargs: Any) -> "ChainClient":
        account = Account.from_key(private_key) if private_key else None
        return cls(w3, account=account, **kwargs)

    # --- identity -------------------------------------------------------

    @property
    def chain_id(self) -> int:
        if self._chain_id is None:
            self._chain_id = int(self.w3.eth.chain_id)
        return self._chain_id

    @property
    def sender(self) -> str:
        if self.account is not None:
            return self.account.address
        accounts = self.w3.eth.accounts
        if not accounts:
            raise ConfigError("node exposes no unlocked accounts and no private key was given")
        return accounts[0]

    # --- contracts ------------------------------------------------------

    def contract_at(self, artifact: Artifact, address: str) -> Contract:
        return self.w3.eth.contract(address=Web3.to_checksum_address(address), abi=artifact.abi)

    def deploy(self, artifact: Artifact, *args: Any, sender: Optional[str] = None) -> Contract:
        if not artifact.deployable:
            raise ArtifactError(f"{artifact.contract_name} has no bytecode (abstract or interface?)")
        factory = self.w3.eth.contract(abi=artifact.abi, bytecode=artifact.bytecode)
        receipt = self.transact(factory.constructor(*args), sender=sender)
        address = receipt["contractAddress"]
        log.info("deployed %s at %s", artifact.contract_name, address)
        return self.contract_at(artifact, address)

    # --- calls & transactions --------------------------------------------

    def call(self, fn: Any, sender: Optional[str] = None) -> Any:
        try:
            return fn.call({"from": sender or self.sender})
        except ContractLogicError as exc:
            reason = revert_reason(exc)
            raise RevertError(f"call reverted: {reason}", reason=reason) from exc

    def transact(self, fn: Any, sender: Optional[str] = None, value: int = 0) -> Dict[str, Any]:
        """
        Send a contract function call (or constructor) and wait for its receipt.
        """
        frm = sender or self.sender
        params: Dict[str, Any] = {"from": frm}
        if value:
            params["value"] = int(value)
        if self.gas:
            params["gas"] = int(self.gas)

        try:
            if self.account is not None and Web3.to_checksum_address(frm) == self.account.address:
                params["nonce"] = self.w3.eth.get_transaction_count(frm, "pending")
                tx = fn.build_transaction(params)
                signed = self.account.sign_transaction(tx)
                tx_hash = self.w3.eth.send_raw_transaction(signed.raw_transaction)
            else:
                tx_hash = fn.transact(params)
        except ContractLogicError as exc:
            reason = revert_reason(exc)
            raise RevertError(f"transaction reverted: {reason}", reason=reason) from exc

        hx = self.w3.to_hex(tx_hash)
        log.debug("sent %s from %s", hx, frm)
        try:
            receipt = self.w3.eth.wait_for_transaction_receipt(tx_hash, timeout=self.receipt_timeout)
        except TimeExhausted as exc:
            raise TxError(f"no receipt after {self.receipt_timeout}s", tx_hash=hx) from exc

        self.last_receipt = receipt
        if receipt["status"] != 1:
            self._raise_replayed_reason(fn, params, receipt, hx)
            raise TxError("transaction failed (status 0)", tx_hash=hx, receipt=dict(receipt))
        return receipt

    def _raise_replayed_reason(self, fn: Any, params: Dict[str, Any], receipt: Any, tx_hash: str) -> None:
        """Re-run a failed transaction as a call at its block to recover the reason."""
        call_params = {k: v for k, v in params.items() if k in ("from", "value", "gas")}
        try:
            fn.call(call_params, block_identifier=receipt["blockNumber"])
        except ContractLogicError as exc:
            reason = revert_reason(exc)
            raise RevertError(f"transaction reverted: {reason}", reason=reason, tx_hash=tx_hash) from exc
        except (TypeError, ValueError, AttributeError):
            # constructors have no .call(); fall through to TxError
            log.debug("cannot replay %s to recover the revert reason", tx_hash)
