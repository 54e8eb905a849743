"""
EIP-712 typed-data signing for the GitNFT contract.

Two message types are accepted on-chain:

- Mint(address to, uint256 tokenId, bytes tokenCID)
    signed by an address holding MINTER_ROLE; anyone may relay it through
    `mint(address,uint256,bytes,uint8,bytes32,bytes32)`.
- MetaTransaction(uint256 nonce, address from, bytes functionSignature)
    signed by `from`; relayed through `executeMetaTransaction`, which runs the
    encoded call as if `from` had sent it. The contract tracks one nonce per
    signer, so a signature can only be replayed once.

Hashing and ECDSA come from eth-account; call encoding from eth-abi.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Sequence, Union

from eth_abi import encode as abi_encode
from eth_account import Account
from eth_account.messages import encode_typed_data
from eth_utils import function_signature_to_4byte_selector, to_bytes, to_checksum_address

__all__ = [
    "TYPES",
    "DOMAIN_NAME",
    "DOMAIN_VERSION",
    "Signature",
    "domain",
    "sign_typed_data",
    "sign_mint",
    "sign_meta_transaction",
    "recover_signer",
    "encode_function_call",
]

DOMAIN_NAME = "GitNFT"
DOMAIN_VERSION = "1"

TYPES: Dict[str, list] = {
    "EIP712Domain": [
        {"name": "name", "type": "string"},
        {"name": "version", "type": "string"},
        {"name": "chainId", "type": "uint256"},
        {"name": "verifyingContract", "type": "address"},
    ],
    "Mint": [
        {"name": "to", "type": "address"},
        {"name": "tokenId", "type": "uint256"},
        {"name": "tokenCID", "type": "bytes"},
    ],
    "MetaTransaction": [
        {"name": "nonce", "type": "uint256"},
        {"name": "from", "type": "address"},
        {"name": "functionSignature", "type": "bytes"},
    ],
}

BytesLike = Union[bytes, bytearray, str]


def _to_bytes(value: BytesLike) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    return to_bytes(hexstr=value)


def _hex32(n: int) -> str:
    return "0x" + n.to_bytes(32, "big").hex()


@dataclass(frozen=True)
class Signature:
    hash: str
    signature: str
    r: str
    s: str
    v: str
    v_int: int

    def as_dict(self) -> Dict[str, Any]:
        return {
            "hash": self.hash,
            "signature": self.signature,
            "r": self.r,
            "s": self.s,
            "v": self.v,
        }


def domain(
    chain_id: int,
    verifying_contract: str,
    name: str = DOMAIN_NAME,
    version: str = DOMAIN_VERSION,
) -> Dict[str, Any]:
    return {
        "name": name,
        "version": version,
        "chainId": int(chain_id),
        "verifyingContract": to_checksum_address(verifying_contract),
    }


def _full_message(primary_type: str, message: Mapping[str, Any], dom: Mapping[str, Any]) -> Dict[str, Any]:
    if primary_type not in TYPES or primary_type == "EIP712Domain":
        raise ValueError(f"unknown primary type {primary_type!r}")
    # eth-account infers the primary type from `types`; only one struct may be present
    return {
        "types": {"EIP712Domain": TYPES["EIP712Domain"], primary_type: TYPES[primary_type]},
        "primaryType": primary_type,
        "domain": dict(dom),
        "message": dict(message),
    }


def sign_typed_data(
    primary_type: str,
    message: Mapping[str, Any],
    dom: Mapping[str, Any],
    private_key: Union[str, bytes],
) -> Signature:
    signable = encode_typed_data(full_message=_full_message(primary_type, message, dom))
    signed = Account.sign_message(signable, private_key=private_key)
    return Signature(
        hash="0x" + bytes(signed.message_hash).hex(),
        signature="0x" + bytes(signed.signature).hex(),
        r=_hex32(signed.r),
        s=_hex32(signed.s),
        v=hex(signed.v),
        v_int=int(signed.v),
    )


def recover_signer(
    primary_type: str,
    message: Mapping[str, Any],
    dom: Mapping[str, Any],
    signature: BytesLike,
) -> str:
    signable = encode_typed_data(full_message=_full_message(primary_type, message, dom))
    return Account.recover_message(signable, signature=_to_bytes(signature))


def mint_message(to: str, token_id: int, token_cid: BytesLike) -> Dict[str, Any]:
    return {
        "to": to_checksum_address(to),
        "tokenId": int(token_id),
        "tokenCID": _to_bytes(token_cid),
    }


def meta_transaction_message(nonce: int, from_address: str, function_signature: BytesLike) -> Dict[str, Any]:
    return {
        "nonce": int(nonce),
        "from": to_checksum_address(from_address),
        "functionSignature": _to_bytes(function_signature),
    }


def sign_mint(
    to: str,
    token_id: int,
    token_cid: BytesLike,
    dom: Mapping[str, Any],
    private_key: Union[str, bytes],
) -> Signature:
    """Voucher letting anyone relay a mint of `token_id` to `to`."""
    return sign_typed_data("Mint", mint_message(to, token_id, token_cid), dom, private_key)


def sign_meta_transaction(
    nonce: int,
    from_address: str,
    function_signature: BytesLike,
    dom: Mapping[str, Any],
    private_key: Union[str, bytes],
) -> Signature:
    return sign_typed_data(
        "MetaTransaction",
        meta_transaction_message(nonce, from_address, function_signature),
        dom,
        private_key,
    )


def encode_function_call(signature: str, args: Sequence[Any]) -> str:
    """
    ABI-encode a call: 4-byte selector of `signature` followed by the
    encoded arguments, e.g.
        encode_function_call("setApprovalForAll(address,bool)", [op, True])
    """
    name, _, rest = signature.partition("(")
    if not name or not rest.endswith(")"):
        raise ValueError(f"malformed function signature {signature!r}")
    inner = rest[:-1]
    arg_types = [t.strip() for t in inner.split(",")] if inner.strip() else []
    if len(arg_types) != len(args):
        raise ValueError(f"{signature} takes {len(arg_types)} argument(s), got {len(args)}")
    converted = [
        _to_bytes(a) if t.startswith("bytes") and isinstance(a, str) else a
        for t, a in zip(arg_types, args)
    ]
    selector = function_signature_to_4byte_selector(signature)
    return "0x" + (selector + abi_encode(arg_types, converted)).hex()
