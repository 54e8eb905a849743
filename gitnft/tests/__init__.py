# -*- coding: utf-8 -*-
"""
gitnft.tests
============

Unit tests for the tooling plus the contract integration suite.

Unit tests need neither a node nor a solc binary: solcx is monkeypatched and
chain interactions go through small fakes. The integration suite
(test_gitnft_contract.py) deploys a compiled GitNFT artifact to an
in-process eth-tester chain, or to $GITNFT_RPC_URL when set, and is skipped
when no artifact has been built.
"""
from __future__ import annotations

import os


def _set_if_absent(key: str, value: str) -> None:
    """Set environment variable only if it's not already present."""
    if key not in os.environ or os.environ.get(key) in ("", None):
        os.environ[key] = value


_set_if_absent("PYTHONHASHSEED", "0")
_set_if_absent("TZ", "UTC")

# contract.json of the production deployment
CONTRACT_CID = "bafkreigaktskowelbch3vsmbotgqtfstmvjjvimnbeknhwdow4ndknkfhq"
# metadata CID used throughout the contract suite
TOKEN_CID = "bafybeig6xv5nwphfmvcnektpnojts33jqcuam7bmye2pb54adnrtccjlsu"
SHA = "47de970443216b23ea3e06b897db3bbdde6183cf"

__all__ = ["CONTRACT_CID", "TOKEN_CID", "SHA"]
