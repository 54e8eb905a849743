# -*- coding: utf-8 -*-
"""
CID encoding as submitted to the contract, and git-SHA1 token ids.
"""
from __future__ import annotations

import pytest

from gitnft.cid import EMPTY_CID, cid_bytes, cid_hex, decode_cid
from gitnft.errors import CidError, GitNftError, TokenIdError
from gitnft.tests import CONTRACT_CID, SHA, TOKEN_CID
from gitnft.tokens import MAX_TOKEN_ID, metadata_url, token_hex, token_id


def test_cidv1_raw_prefix_and_length():
    raw = cid_bytes(CONTRACT_CID)
    # version 1, raw codec, sha2-256, 32-byte digest
    assert raw[:4] == bytes([0x01, 0x55, 0x12, 0x20])
    assert len(raw) == 36


def test_cidv1_dag_pb_hex_form():
    hx = cid_hex(TOKEN_CID)
    assert hx.startswith("0x01701220")
    assert len(hx) == 2 + 2 * 36
    assert hx == hx.lower()


def test_cidv0_is_bare_multihash():
    raw = cid_bytes("QmYwAPJzv5CZsnA625s3Xf2nemtYgPpHdWEz79ojWnPbdG")
    assert raw[:2] == bytes([0x12, 0x20])
    assert len(raw) == 34


def test_decode_restores_string_form():
    assert decode_cid(cid_hex(TOKEN_CID)) == TOKEN_CID
    assert decode_cid(cid_bytes(CONTRACT_CID)) == CONTRACT_CID


def test_decoded_v1_is_base32_not_base58():
    # binary carries no multibase; the decoded form must be the "b..." base32 string
    out = decode_cid(cid_hex(TOKEN_CID))
    assert out.startswith("bafy")
    assert not out.startswith("z")


def test_decode_cidv0_stays_bare_base58():
    v0 = "QmYwAPJzv5CZsnA625s3Xf2nemtYgPpHdWEz79ojWnPbdG"
    assert decode_cid(cid_hex(v0)) == v0


def test_single_character_change_changes_bytes():
    other = TOKEN_CID[:-1] + "a"
    assert cid_hex(other) != cid_hex(TOKEN_CID)
    assert decode_cid(cid_hex(other)) == other


@pytest.mark.parametrize("bad", ["", "   ", "not-a-cid", "bafy!!"])
def test_invalid_cid_strings(bad):
    with pytest.raises(CidError):
        cid_bytes(bad)


def test_cid_error_is_value_error_and_tooling_error():
    with pytest.raises(ValueError):
        cid_hex("zzzz")
    with pytest.raises(GitNftError):
        cid_hex("zzzz")


@pytest.mark.parametrize("bad", [EMPTY_CID, "0x", "0xzz", b""])
def test_decode_rejects_empty_or_non_hex(bad):
    with pytest.raises(CidError):
        decode_cid(bad)


# ---------------------------- token ids ---------------------------------------


def test_token_id_accepts_prefixed_and_bare_sha():
    assert token_id(SHA) == int(SHA, 16)
    assert token_id("0x" + SHA) == int(SHA, 16)
    assert token_id(int(SHA, 16)) == int(SHA, 16)


def test_token_hex_pads_to_forty_chars():
    assert token_hex(1) == "0" * 39 + "1"
    assert token_hex("0x" + SHA.upper()) == SHA


@pytest.mark.parametrize(
    "bad",
    [
        "0x" + "f" * 41,  # 41 hex digits: one nibble too wide
        SHA[:-1],
        "g" * 40,
        MAX_TOKEN_ID + 1,
        -1,
        True,
        None,
    ],
)
def test_token_id_rejects_non_sha1(bad):
    with pytest.raises(TokenIdError):
        token_id(bad)


def test_metadata_url_matches_contract_fallback_format():
    assert metadata_url("https://gitnft.io/", SHA) == f"https://gitnft.io/{SHA}.json"
