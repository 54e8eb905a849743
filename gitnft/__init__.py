# -*- coding: utf-8 -*-
"""
gitnft
======

Tooling for the GitNFT contract: ERC-721 tokens whose ids are git commit SHA1s
and whose metadata lives on IPFS.

Modules:
  cid, tokens      identifiers as the contract stores them
  config           network profiles, compiler settings, .env loading
  compile          solc wrapper (working-directory-free source paths)
  artifacts        compiled artifacts and the deployments registry
  chain            web3 client wrapper
  typed_data       EIP-712 Mint / MetaTransaction vouchers
  deploy           migration: deploy and wire up the contract
  cli              the `gitnft` command

The helpers below are shared by those modules and import nothing beyond the
standard library.
"""
from __future__ import annotations

import json
import os
import subprocess
import tempfile
from pathlib import Path
from typing import Any, Optional, Union

__all__ = [
    "__version__",
    "canonical_json_str",
    "ensure_dir",
    "atomic_write_text",
    "env",
    "project_root",
]

PathLike = Union[str, "os.PathLike[str]"]


def _version() -> str:
    # tagged checkouts report e.g. v0.3.1-4-gdeadbeef; installs fall back to env
    try:
        described = subprocess.run(
            ["git", "describe", "--tags", "--always", "--dirty"],
            cwd=Path(__file__).resolve().parent,
            capture_output=True,
            text=True,
            check=True,
        ).stdout.strip()
    except (OSError, subprocess.CalledProcessError):
        described = ""
    return described or os.getenv("GITNFT_VERSION", "0.0.0")


__version__ = _version()


def canonical_json_str(obj: Any) -> str:
    """Sorted keys, compact separators, NaN rejected: stable bytes on disk."""
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False, allow_nan=False)


def ensure_dir(path: PathLike) -> Path:
    p = Path(path)
    p.mkdir(parents=True, exist_ok=True)
    return p


def atomic_write_text(path: PathLike, text: str) -> Path:
    """
    Replace `path` with `text` so readers never observe a partial file: the
    content goes to a sibling temp file which is fsynced, then renamed over.
    """
    target = Path(path)
    ensure_dir(target.parent)
    fd, tmp = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.")
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(text.encode("utf-8"))
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp, target)
    except BaseException:
        Path(tmp).unlink(missing_ok=True)
        raise
    return target


def env(name: str, default: Optional[str] = None) -> Optional[str]:
    """
    os.getenv, except that "@/path/to/file" yields that file's stripped
    contents, so keys can be kept out of the environment itself.
    """
    value = os.getenv(name, default)
    if value and value.startswith("@"):
        return Path(value[1:]).expanduser().read_text(encoding="utf-8").strip()
    return value


def project_root(start: Optional[PathLike] = None) -> Path:
    """
    Nearest directory at or above `start` (default: CWD) holding a
    pyproject.toml or a gitnft/ package; `start` itself when there is none.
    """
    origin = Path(start).resolve() if start else Path.cwd()
    for candidate in (origin, *origin.parents):
        if (candidate / "pyproject.toml").is_file() or (candidate / "gitnft").is_dir():
            return candidate
    return origin
