"""Command line tools for compiling, deploying and operating GitNFT.

`gitnft.cli.main:app` is the entry point; `gitnft.cli.token` holds the
contract admin subcommands.
"""

from __future__ import annotations

__all__ = ["main", "token"]
