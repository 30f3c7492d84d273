#!/usr/bin/env python3
"""Commitment resolution for the L2 output oracle.

This module derives the commitment frontier from the output oracle on L1 and
the commitment state of individual L2 transactions. It holds no mutable
state beyond what is fixed at construction, so one resolver can serve any
number of concurrent requests.

The resolver does not log or retry. Failures are raised as the typed errors
from ``commitment_service.errors``; the only degraded paths are the health
probe plus the committed-block probe and metadata lookup used for
transaction status.
"""

import asyncio
import time
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

from .errors import CommitmentServiceError
from .metadata import ChainMetadataProvider, StaticMetadataProvider
from .models import (
    CommitmentStatus,
    OracleReference,
    TransactionMetadata,
    TransactionState,
    TransactionStatus,
)
from .utils.oracle_codec import (
    LATEST_BLOCK_NUMBER_SELECTOR,
    LATEST_OUTPUT_INDEX_SELECTOR,
    WordDecoding,
    decode_word,
    normalize_tx_hash,
)
from .utils.rpc_connector import ChainConnector

DEFAULT_SUBMISSION_INTERVAL = 1800
DEFAULT_COMMITMENT_LAG_BLOCKS = 10


def committed_frontier(l2_height: int, commitment_lag_blocks: int) -> int:
    """Latest L2 block treated as committed for a given L2 chain height."""
    if l2_height > commitment_lag_blocks:
        return l2_height - commitment_lag_blocks
    return 0


def derive_state(succeeded: bool, committed: bool) -> TransactionState:
    """Execution failure wins over the commitment comparison."""
    if not succeeded:
        return TransactionState.FAILED
    if committed:
        return TransactionState.COMMITTED
    return TransactionState.CONFIRMED


def _raise_first_error(results: list[Any]) -> None:
    """Raise the first exception in gather results, in submission order."""
    for result in results:
        if isinstance(result, BaseException):
            raise result


class CommitmentResolver:
    """
    Resolves commitment status from an L1 output oracle and an L2 chain.

    The commitment check for a transaction is an approximation: an L2 block
    counts as committed once it is ``commitment_lag_blocks`` behind the L2
    head, not when a proof for it has actually landed on L1.
    """

    def __init__(
        self,
        oracle: OracleReference,
        l1_connector: ChainConnector,
        l2_connector: ChainConnector,
        metadata_provider: ChainMetadataProvider | None = None,
        submission_interval: int = DEFAULT_SUBMISSION_INTERVAL,
        commitment_lag_blocks: int = DEFAULT_COMMITMENT_LAG_BLOCKS,
        word_decoding: WordDecoding = WordDecoding.LOW_BYTE,
        clock: Callable[[], float] = time.monotonic
    ) -> None:
        """
        Initialize the resolver.

        Args:
            oracle: Output oracle contract to query
            l1_connector: Connector to the chain hosting the oracle
            l2_connector: Connector to the L2 chain
            metadata_provider: Source of descriptive fields (static placeholders if None)
            submission_interval: L2 blocks between oracle submissions
            commitment_lag_blocks: L2 blocks behind head treated as committed
            word_decoding: How oracle result words are decoded
            clock: Monotonic clock used for uptime
        """
        if submission_interval <= 0:
            raise ValueError(f"Submission interval must be positive, got {submission_interval}")
        if commitment_lag_blocks < 0:
            raise ValueError(f"Commitment lag must be non-negative, got {commitment_lag_blocks}")

        self.oracle = oracle
        self.l1_connector = l1_connector
        self.l2_connector = l2_connector
        self.metadata_provider = metadata_provider or StaticMetadataProvider()
        self.submission_interval = submission_interval
        self.commitment_lag_blocks = commitment_lag_blocks
        self.word_decoding = word_decoding

        self._clock = clock
        self._started_monotonic = clock()
        self.started_at = datetime.now(timezone.utc)

    async def _query_oracle(self, selector: bytes) -> int:
        """Call a no-argument getter on the oracle and decode its word."""
        result = await self.l1_connector.call_contract(self.oracle.contract_address, selector)
        return decode_word(result, self.word_decoding)

    async def resolve_commitment_status(self) -> CommitmentStatus:
        """
        Build a fresh snapshot of the commitment frontier.

        Raises:
            OracleQueryError: If the oracle reverts or returns short data
            ConnectivityError: If the L1 endpoint is unreachable
        """
        frontier = await asyncio.gather(
            self._query_oracle(LATEST_BLOCK_NUMBER_SELECTOR),
            self._query_oracle(LATEST_OUTPUT_INDEX_SELECTOR),
            return_exceptions=True,
        )
        _raise_first_error(frontier)
        latest_block_number, latest_output_index = frontier

        healthy, metadata = await asyncio.gather(
            self.check_health(),
            self.metadata_provider.commitment_metadata(),
        )

        return CommitmentStatus(
            latest_block_number=latest_block_number,
            latest_output_index=latest_output_index,
            next_block_number=latest_block_number + self.submission_interval,
            last_proposal_time=metadata.last_proposal_time,
            total_commitments=latest_output_index + 1,
            is_service_healthy=healthy,
            last_commitment_hash=metadata.last_commitment_hash,
            proof_generation_time=metadata.proof_generation_time,
            uptime=self.uptime(),
        )

    async def latest_committed_block(self) -> int:
        """
        Latest L2 block considered committed, or 0 if the L2 head is unknown.
        """
        try:
            height = await self.l2_connector.block_height()
        except CommitmentServiceError:
            return 0
        return committed_frontier(height, self.commitment_lag_blocks)

    async def _transaction_metadata(self, block_number: int) -> TransactionMetadata:
        # Metadata may come from L1; an L1 outage must not fail an L2 lookup
        try:
            return await self.metadata_provider.transaction_metadata(block_number)
        except CommitmentServiceError:
            return TransactionMetadata(commitment_at=None, proof_hash="")

    async def resolve_transaction_status(self, tx_hash: str) -> TransactionStatus:
        """
        Determine whether an L2 transaction has been committed to L1.

        Raises:
            InvalidInputError: If ``tx_hash`` is malformed (no RPC is issued)
            NotFoundError: If L2 has no receipt or transaction for the hash
            ConnectivityError: If the L2 endpoint is unreachable
        """
        normalized = normalize_tx_hash(tx_hash)

        results = await asyncio.gather(
            self.l2_connector.transaction_receipt(normalized),
            self.l2_connector.transaction_details(normalized),
            self.latest_committed_block(),
            return_exceptions=True,
        )
        _raise_first_error(results)
        receipt, details, latest_committed = results

        committed = receipt.block_number <= latest_committed
        metadata = await self._transaction_metadata(receipt.block_number)

        return TransactionStatus(
            tx_hash=normalized,
            block_number=receipt.block_number,
            state=derive_state(receipt.succeeded, committed),
            committed=committed,
            commitment_at=metadata.commitment_at,
            proof_hash=metadata.proof_hash,
            gas_used=receipt.gas_used,
            effective_gas_price=details.gas_price,
        )

    async def probe_upstreams(self) -> tuple[bool, bool]:
        """Probe L1 and L2 block heights; returns (l1_ok, l2_ok)."""
        l1_result, l2_result = await asyncio.gather(
            self.l1_connector.block_height(),
            self.l2_connector.block_height(),
            return_exceptions=True,
        )
        return (
            not isinstance(l1_result, BaseException),
            not isinstance(l2_result, BaseException),
        )

    async def check_health(self) -> bool:
        """True only if both upstreams answer a height probe. Never raises."""
        l1_ok, l2_ok = await self.probe_upstreams()
        return l1_ok and l2_ok

    def uptime(self) -> timedelta:
        """Time elapsed since the resolver was created."""
        return timedelta(seconds=max(0.0, self._clock() - self._started_monotonic))
