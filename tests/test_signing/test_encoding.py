"""Tests for the canonical encoder and content identifiers."""

from __future__ import annotations

from collections.abc import Callable

import pytest
from eth_utils import keccak, to_bytes

from agreement_clearinghouse.domain.custody_protocol import ZERO_BYTES32
from agreement_clearinghouse.domain.enums import AssetKind
from agreement_clearinghouse.schemas.offer import OfferTerms
from agreement_clearinghouse.signing.encoding import (
    compute_dispute_id,
    compute_offer_id,
    encode_offer_fields,
    hash_text,
)


def _word(value: int) -> bytes:
    return value.to_bytes(32, "big")


def _address_word(address: str) -> bytes:
    return b"\x00" * 12 + to_bytes(hexstr=address)


def _tag_word(tag: int) -> bytes:
    return bytes([tag]) + b"\x00" * 31


class TestOfferLayout:
    def test_layout_matches_hand_built_words(self, make_terms: Callable[..., OfferTerms]) -> None:
        terms = make_terms(partition="0x" + "cd" * 32, token_id=5, class_id=6, nonce_id=7)
        expected = b"".join(
            [
                _tag_word(1), _address_word(terms.issuer),
                _tag_word(2), _address_word(terms.investor),
                _tag_word(3), _address_word(terms.token_address),
                terms.partition,
                _word(5),
                _word(100),
                _word(6),
                _word(7),
                terms.document_hash,
                keccak(b"ipfs://agreement"),
                _word(terms.expiry),
                _word(1),
            ]
        )
        assert encode_offer_fields(terms) == expected
        assert len(expected) == 15 * 32
        assert compute_offer_id(terms) == keccak(expected)

    def test_hash_text_is_keccak_of_utf8(self) -> None:
        assert hash_text("") == bytes.fromhex(
            "c5d2460186f7233c927e7db2dcc703c0e500b653ca82273b7bfad8045d85a470"
        )
        assert hash_text("ünïcode") == keccak("ünïcode".encode())


class TestOfferId:
    def test_pure_function(self, make_terms: Callable[..., OfferTerms]) -> None:
        assert compute_offer_id(make_terms()) == compute_offer_id(make_terms())
        assert len(compute_offer_id(make_terms())) == 32

    @pytest.mark.parametrize(
        "change",
        [
            {"investor": "0x0000000000000000000000000000000000000C01"},
            {"token_address": "0x0000000000000000000000000000000000000C02"},
            {"partition": "0x" + "01" * 32},
            {"token_id": 1},
            {"amount": 101},
            {"class_id": 1},
            {"nonce_id": 1},
            {"document_hash": "0x" + "ac" * 32},
            {"document_uri": "ipfs://other"},
            {"expiry": 1},
            {"nonce": 2},
        ],
    )
    def test_any_field_change_changes_id(
        self,
        make_terms: Callable[..., OfferTerms],
        change: dict,
    ) -> None:
        assert compute_offer_id(make_terms(**change)) != compute_offer_id(make_terms())

    def test_issuer_changes_id(
        self,
        make_terms: Callable[..., OfferTerms],
        outsider,
    ) -> None:
        assert compute_offer_id(make_terms(issuer=outsider.address)) != compute_offer_id(
            make_terms()
        )

    def test_execution_settings_are_not_part_of_id(
        self,
        make_terms: Callable[..., OfferTerms],
        delegate,
    ) -> None:
        base = compute_offer_id(make_terms())
        assert compute_offer_id(make_terms(delegated_to=delegate.address)) == base
        assert compute_offer_id(make_terms(asset_kind=AssetKind.PARTITIONED)) == base

    def test_long_uri_keeps_layout_size(self, make_terms: Callable[..., OfferTerms]) -> None:
        terms = make_terms(document_uri="ipfs://" + "x" * 10_000)
        assert len(encode_offer_fields(terms)) == 15 * 32


class TestDisputeId:
    def test_standalone_dispute_matches_hand_built_encoding(self, investor) -> None:
        uri = "ipfs://x"
        encoded_uri = uri.encode()
        expected = b"".join(
            [
                _address_word(investor.address),
                _word(1_700_000_000),
                ZERO_BYTES32,
                _word(4 * 32),  # offset of the string tail
                _word(len(encoded_uri)),
                encoded_uri.ljust(32, b"\x00"),
            ]
        )
        assert compute_dispute_id(investor.address, 1_700_000_000, None, uri) == keccak(expected)

    def test_none_offer_equals_zero_offer(self, investor) -> None:
        assert compute_dispute_id(investor.address, 5, None, "u") == compute_dispute_id(
            investor.address, 5, ZERO_BYTES32, "u"
        )

    def test_timestamp_is_part_of_id(self, investor) -> None:
        assert compute_dispute_id(investor.address, 5, None, "u") != compute_dispute_id(
            investor.address, 6, None, "u"
        )
