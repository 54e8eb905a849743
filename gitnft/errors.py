"""
Typed error classes for the GitNFT tooling.

These are raised by config, compile, artifacts, chain and deploy helpers so
callers can catch specific failure modes while still being able to catch the
base `GitNftError`. CLI entry points convert them to exit codes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

__all__ = [
    "GitNftError",
    "ConfigError",
    "CompileError",
    "ArtifactError",
    "CidError",
    "TokenIdError",
    "RevertError",
    "TxError",
]


class GitNftError(Exception):
    """Base class for all GitNFT tooling errors."""


class ConfigError(GitNftError):
    """Missing or invalid configuration (env vars, network names, keys)."""


class ArtifactError(GitNftError):
    """Compiled contract artifact is missing or malformed."""


class CidError(GitNftError, ValueError):
    """A content identifier could not be parsed or encoded."""


class TokenIdError(GitNftError, ValueError):
    """A token id is not a valid git SHA1 (at most 160 bits)."""


@dataclass(slots=True)
class CompileError(GitNftError):
    """
    Raised when solc is unavailable or reports errors.

    `errors` carries the compiler's own error entries (standard-JSON shape)
    when there are any.
    """

    message: str
    errors: Optional[list] = None

    def __str__(self) -> str:
        if not self.errors:
            return self.message
        first = self.errors[0]
        detail = first.get("formattedMessage") or first.get("message") or ""
        return f"{self.message}: {detail.strip()}"


@dataclass(slots=True)
class RevertError(GitNftError):
    """
    Raised when a call or transaction is reverted by the contract.

    Fields:
      - message: human-readable description (includes the reason)
      - reason: decoded revert string, e.g. "ERC721: owner query for nonexistent token"
      - tx_hash: hex hash if the revert happened in a mined transaction
    """

    message: str
    reason: Optional[str] = None
    tx_hash: Optional[str] = None

    def __str__(self) -> str:
        suffix = f" tx={self.tx_hash}" if self.tx_hash else ""
        return f"{self.message}{suffix}"


@dataclass(slots=True)
class TxError(GitNftError):
    """
    Raised when a submitted transaction fails without a decodable reason
    (status 0 receipt) or its receipt never arrives.
    """

    message: str
    tx_hash: Optional[str] = None
    receipt: Optional[Dict[str, Any]] = None

    def __str__(self) -> str:
        suffix = f" tx={self.tx_hash}" if self.tx_hash else ""
        return f"TxError{suffix}: {self.message}"
