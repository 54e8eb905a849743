"""
Content identifiers as the GitNFT contract stores them.

The contract keeps CIDs as raw binary (`CID(str).bytes`, i.e. version +
codec + multihash for v1, bare multihash for v0) and renders them back to
`ipfs://<cid>` on-chain. Parsing and encoding are delegated to `multiformats`.

    >>> cid_hex("bafkreigaktskowelbch3vsmbotgqtfstmvjjvimnbeknhwdow4ndknkfhq")[:10]
    '0x01551220'
"""
from __future__ import annotations

import binascii
from typing import Union

from multiformats import CID

from .errors import CidError

__all__ = ["EMPTY_CID", "cid_bytes", "cid_hex", "decode_cid"]

# "no CID" marker accepted by mint(); the token URI then falls back to the base URI
EMPTY_CID = "0x00"


def cid_bytes(cid: str) -> bytes:
    """Binary encoding of a multibase CID string."""
    if not isinstance(cid, str) or not cid.strip():
        raise CidError(f"CID must be a non-empty string, got {cid!r}")
    try:
        return bytes(CID.decode(cid.strip()))
    except Exception as exc:
        raise CidError(f"invalid CID {cid!r}: {exc}") from exc


def cid_hex(cid: str) -> str:
    """`0x`-prefixed hex of the binary CID, ready to pass as a `bytes` argument."""
    return "0x" + cid_bytes(cid).hex()


def decode_cid(data: Union[bytes, bytearray, str]) -> str:
    """
    Inverse of `cid_bytes`: binary (or 0x-hex) CID back to its string form.
    """
    if isinstance(data, str):
        s = data[2:] if data.startswith(("0x", "0X")) else data
        try:
            raw = binascii.unhexlify(s)
        except (binascii.Error, ValueError) as exc:
            raise CidError(f"not a hex string: {data!r}") from exc
    else:
        raw = bytes(data)
    if not raw or raw == b"\x00":
        raise CidError("empty CID bytes")
    try:
        cid = CID.decode(raw)
    except Exception as exc:
        raise CidError(f"invalid binary CID 0x{raw.hex()}: {exc}") from exc
    # binary CIDs carry no multibase: v1 is shown as base32 ("b..."), v0 as bare base58btc
    return cid.encode("base32") if cid.version == 1 else cid.encode()
