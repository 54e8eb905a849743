"""
Token identifiers: every GitNFT token id is a git SHA1 object id read as a
160-bit unsigned integer.
"""
from __future__ import annotations

import re
from typing import Union

from .errors import TokenIdError

__all__ = ["MAX_TOKEN_ID", "token_id", "token_hex", "metadata_url"]

MAX_TOKEN_ID = (1 << 160) - 1

_SHA_RE = re.compile(r"^(0x)?[0-9a-fA-F]{40}$")


def token_id(sha: Union[str, int]) -> int:
    """
    Accept a 40-char SHA1 (optionally 0x-prefixed) or an int.
    """
    if isinstance(sha, bool):
        raise TokenIdError(f"invalid git sha1: {sha!r}")
    if isinstance(sha, int):
        value = sha
    elif isinstance(sha, str) and _SHA_RE.match(sha.strip()):
        value = int(sha.strip().removeprefix("0x"), 16)
    else:
        raise TokenIdError(f"invalid git sha1: {sha!r}")
    if value < 0 or value > MAX_TOKEN_ID:
        raise TokenIdError(f"invalid git sha1: {sha!r} does not fit in 160 bits")
    return value


def token_hex(tid: Union[str, int]) -> str:
    """Lower-case 40-char SHA1 without prefix."""
    return f"{token_id(tid):040x}"


def metadata_url(base_uri: str, tid: Union[str, int]) -> str:
    return f"{base_uri}{token_hex(tid)}.json"
