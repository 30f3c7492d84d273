"""
Encoding helpers for raw output-oracle calls and logs.

The resolver talks to the oracle without an ABI: calls are a bare 4-byte
selector and results are single 32-byte words.
"""

import re
from enum import Enum
from typing import Any

from web3 import Web3

from ..errors import InvalidInputError, OracleQueryError
from ..models import ProposedOutput

WORD_SIZE = 32

_TX_HASH_PATTERN = re.compile(r"(?:0x)?([0-9a-fA-F]{64})")


def function_selector(signature: str) -> bytes:
    """Return the 4-byte selector for a canonical function signature."""
    return bytes(Web3.keccak(text=signature)[:4])


LATEST_BLOCK_NUMBER_SELECTOR: bytes = function_selector("latestBlockNumber()")
LATEST_OUTPUT_INDEX_SELECTOR: bytes = function_selector("latestOutputIndex()")

OUTPUT_PROPOSED_TOPIC: str = Web3.to_hex(
    Web3.keccak(text="OutputProposed(bytes32,uint256,uint256,uint256)")
)


class WordDecoding(Enum):
    """How a 32-byte oracle result word is turned into an integer."""
    # Only the trailing byte; values above 255 wrap. Kept for compatibility
    # with the deployed status consumers.
    LOW_BYTE = "low_byte"
    FULL = "full"


def decode_word(result: bytes, decoding: WordDecoding = WordDecoding.LOW_BYTE) -> int:
    """
    Decode the first 32-byte word of a raw call result.

    Args:
        result: Raw bytes returned by ``eth_call``
        decoding: Decoding policy

    Returns:
        Decoded unsigned integer

    Raises:
        OracleQueryError: If the result is shorter than one word
    """
    if len(result) < WORD_SIZE:
        raise OracleQueryError(
            f"invalid result length: expected at least {WORD_SIZE} bytes, got {len(result)}"
        )

    match decoding:
        case WordDecoding.LOW_BYTE:
            return result[WORD_SIZE - 1]
        case WordDecoding.FULL:
            return int.from_bytes(result[:WORD_SIZE], byteorder="big")

    raise ValueError(f"Unsupported word decoding: {decoding}")


def normalize_tx_hash(tx_hash: str) -> str:
    """
    Validate a transaction hash and return it as lower-case 0x-prefixed hex.

    Raises:
        InvalidInputError: If the value is not 32 bytes of hex
    """
    if not isinstance(tx_hash, str):
        raise InvalidInputError(f"Transaction hash must be a string, got {type(tx_hash).__name__}")

    match = _TX_HASH_PATTERN.fullmatch(tx_hash.strip())
    if not match:
        raise InvalidInputError(f"Invalid transaction hash: {tx_hash!r}")

    return "0x" + match.group(1).lower()


def parse_event_topic_as_int(topic: Any) -> int:
    """
    Parse an event topic (bytes or hex string) as an integer.

    Providers return topics either as bytes or as 0x-prefixed hex strings.
    """
    if isinstance(topic, bytes):
        return int.from_bytes(topic, byteorder="big")
    elif isinstance(topic, str):
        hex_str = topic[2:] if topic.startswith("0x") else topic
        return int(hex_str, 16) if hex_str else 0
    else:
        return 0


def decode_output_proposed(log: Any) -> ProposedOutput:
    """
    Decode an ``OutputProposed`` log entry.

    Layout: topics are (signature, outputRoot, l2OutputIndex, l2BlockNumber);
    data holds the l1Timestamp word.

    Raises:
        OracleQueryError: If the log does not have the expected shape
    """
    topics = log.get("topics", [])
    if len(topics) != 4:
        raise OracleQueryError(f"OutputProposed log has {len(topics)} topics, expected 4")

    data = log.get("data", b"")
    if isinstance(data, str):
        data = bytes.fromhex(data.removeprefix("0x"))

    return ProposedOutput(
        output_root=Web3.to_hex(topics[1]) if isinstance(topics[1], bytes) else topics[1],
        output_index=parse_event_topic_as_int(topics[2]),
        l2_block_number=parse_event_topic_as_int(topics[3]),
        l1_timestamp=decode_word(bytes(data), WordDecoding.FULL),
        l1_block_number=int(log.get("blockNumber", 0)),
    )
