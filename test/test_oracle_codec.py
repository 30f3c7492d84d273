#!/usr/bin/env python3
"""Tests for the oracle call and log encoding helpers."""

import pytest
from hexbytes import HexBytes
from web3 import Web3

from commitment_service.errors import InvalidInputError, OracleQueryError
from commitment_service.utils.oracle_codec import (
    LATEST_BLOCK_NUMBER_SELECTOR,
    LATEST_OUTPUT_INDEX_SELECTOR,
    OUTPUT_PROPOSED_TOPIC,
    WordDecoding,
    decode_output_proposed,
    decode_word,
    function_selector,
    normalize_tx_hash,
    parse_event_topic_as_int,
)


class TestSelectors:
    """Tests for function selectors and topics."""

    def test_known_selectors(self):
        """Test selectors match the L2OutputOracle getters."""
        assert LATEST_BLOCK_NUMBER_SELECTOR == bytes.fromhex("4599c788")
        assert LATEST_OUTPUT_INDEX_SELECTOR == bytes.fromhex("69f16eec")

    def test_selector_is_four_bytes(self):
        """Test selectors carry no argument data."""
        assert len(function_selector("latestBlockNumber()")) == 4

    def test_output_proposed_topic(self):
        """Test the event topic is the keccak of the event signature."""
        expected = Web3.keccak(text="OutputProposed(bytes32,uint256,uint256,uint256)")
        assert OUTPUT_PROPOSED_TOPIC == Web3.to_hex(expected)
        assert OUTPUT_PROPOSED_TOPIC.startswith("0x")


class TestDecodeWord:
    """Tests for decode_word."""

    def test_low_byte_is_default(self):
        """Test that only the 32nd byte is used by default."""
        result = bytes(range(100, 132))
        assert decode_word(result) == 131

    def test_low_byte_truncates(self):
        """Test values above 255 wrap under low-byte decoding."""
        assert decode_word((256 + 17).to_bytes(32, "big")) == 17

    def test_full_decoding(self):
        """Test full big-endian decoding of the first word."""
        value = 2**200 + 12345
        assert decode_word(value.to_bytes(32, "big"), WordDecoding.FULL) == value

    def test_full_decoding_ignores_trailing_data(self):
        """Test bytes after the first word are ignored."""
        result = (7).to_bytes(32, "big") + b"\xff" * 32
        assert decode_word(result, WordDecoding.FULL) == 7
        assert decode_word(result, WordDecoding.LOW_BYTE) == 7

    @pytest.mark.parametrize("length", [0, 1, 31])
    def test_short_result(self, length):
        """Test results shorter than one word are rejected."""
        with pytest.raises(OracleQueryError, match="invalid result length"):
            decode_word(bytes(length))


class TestNormalizeTxHash:
    """Tests for normalize_tx_hash."""

    def test_prefixed_hash(self):
        """Test a well-formed hash is returned lower-cased."""
        assert normalize_tx_hash("0x" + "AB" * 32) == "0x" + "ab" * 32

    def test_unprefixed_hash(self):
        """Test a bare hex hash gains the 0x prefix."""
        assert normalize_tx_hash("cd" * 32) == "0x" + "cd" * 32

    def test_surrounding_whitespace(self):
        """Test surrounding whitespace is ignored."""
        assert normalize_tx_hash(" 0x" + "01" * 32 + "\n") == "0x" + "01" * 32

    @pytest.mark.parametrize("value", ["", "0x", "0x12", "0x" + "g" * 64, "0X" + "ab" * 32])
    def test_malformed_hash(self, value):
        """Test malformed hashes raise InvalidInputError."""
        with pytest.raises(InvalidInputError):
            normalize_tx_hash(value)

    def test_non_string(self):
        """Test non-string input raises InvalidInputError."""
        with pytest.raises(InvalidInputError, match="must be a string"):
            normalize_tx_hash(12345)  # type: ignore[arg-type]


class TestParseEventTopic:
    """Tests for parse_event_topic_as_int."""

    def test_bytes_topic(self):
        assert parse_event_topic_as_int((11155111).to_bytes(32, "big")) == 11155111

    def test_hex_string_topic(self):
        assert parse_event_topic_as_int("0x" + "00" * 31 + "2a") == 42

    def test_empty_and_unknown(self):
        assert parse_event_topic_as_int("0x") == 0
        assert parse_event_topic_as_int(None) == 0


class TestDecodeOutputProposed:
    """Tests for decode_output_proposed."""

    def _log(self, **overrides):
        log = {
            "topics": [
                HexBytes(OUTPUT_PROPOSED_TOPIC),
                HexBytes("0x" + "aa" * 32),
                HexBytes((12).to_bytes(32, "big")),
                HexBytes((21_600).to_bytes(32, "big")),
            ],
            "data": HexBytes((1_700_000_000).to_bytes(32, "big")),
            "blockNumber": 5_000_123,
        }
        log.update(overrides)
        return log

    def test_decodes_fields(self):
        """Test every field is decoded from topics and data."""
        output = decode_output_proposed(self._log())

        assert output.output_root == "0x" + "aa" * 32
        assert output.output_index == 12
        assert output.l2_block_number == 21_600
        assert output.l1_timestamp == 1_700_000_000
        assert output.l1_block_number == 5_000_123

    def test_hex_string_data(self):
        """Test data given as a hex string."""
        data = "0x" + (99).to_bytes(32, "big").hex()
        output = decode_output_proposed(self._log(data=data))

        assert output.l1_timestamp == 99

    def test_wrong_topic_count(self):
        """Test logs without three indexed arguments are rejected."""
        with pytest.raises(OracleQueryError, match="topics"):
            decode_output_proposed(self._log(topics=[HexBytes(OUTPUT_PROPOSED_TOPIC)]))
