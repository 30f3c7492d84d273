#!/usr/bin/env python3
"""Chain-metadata providers for the commitment service.

The resolver derives the commitment frontier and transaction states itself,
but the descriptive fields of its results (proposal time, output root, proof
timings) come from a pluggable provider. Two implementations are available:

- ``StaticMetadataProvider`` returns fixed placeholder values and needs no RPC.
- ``OutputProposedMetadataProvider`` reads ``OutputProposed`` logs emitted by
  the output oracle on L1.
"""

import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Protocol

from .models import (
    CommitmentMetadata,
    OracleReference,
    ProposedOutput,
    TransactionMetadata,
    format_duration,
)
from .utils.oracle_codec import OUTPUT_PROPOSED_TOPIC, decode_output_proposed
from .utils.rpc_connector import ChainConnector

# Get logger for this module
logger = logging.getLogger(__name__)

PLACEHOLDER_COMMITMENT_HASH = "0xabc123..."
PLACEHOLDER_PROOF_HASH = "0xdef456..."
PLACEHOLDER_PROOF_GENERATION_TIME = "5 minutes"
PLACEHOLDER_PROPOSAL_AGE = timedelta(minutes=10)
PLACEHOLDER_COMMITMENT_AGE = timedelta(minutes=5)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ChainMetadataProvider(Protocol):
    """Source of the descriptive fields of commitment and transaction status."""

    async def commitment_metadata(self) -> CommitmentMetadata: ...

    async def transaction_metadata(self, block_number: int) -> TransactionMetadata: ...


class StaticMetadataProvider:
    """Returns fixed placeholder metadata relative to the current time."""

    def __init__(self, clock: Callable[[], datetime] = _utcnow) -> None:
        self._clock = clock

    async def commitment_metadata(self) -> CommitmentMetadata:
        return CommitmentMetadata(
            last_proposal_time=self._clock() - PLACEHOLDER_PROPOSAL_AGE,
            last_commitment_hash=PLACEHOLDER_COMMITMENT_HASH,
            proof_generation_time=PLACEHOLDER_PROOF_GENERATION_TIME,
        )

    async def transaction_metadata(self, block_number: int) -> TransactionMetadata:
        return TransactionMetadata(
            commitment_at=self._clock() - PLACEHOLDER_COMMITMENT_AGE,
            proof_hash=PLACEHOLDER_PROOF_HASH,
        )


class OutputProposedMetadataProvider:
    """Derives metadata from the oracle's ``OutputProposed`` event logs.

    Only the most recent ``lookback_blocks`` L1 blocks are scanned, so a
    transaction older than the window, or one not yet covered by any
    proposal, gets empty commitment metadata.
    """

    def __init__(
        self,
        l1_connector: ChainConnector,
        oracle: OracleReference,
        lookback_blocks: int = 5000
    ) -> None:
        """
        Initialize the provider.

        Args:
            l1_connector: Connector to the chain hosting the oracle
            oracle: Oracle contract whose logs are read
            lookback_blocks: Number of L1 blocks to scan for proposals
        """
        if lookback_blocks <= 0:
            raise ValueError(f"Lookback blocks must be positive, got {lookback_blocks}")

        self.l1_connector = l1_connector
        self.oracle = oracle
        self.lookback_blocks = lookback_blocks

    async def _recent_proposals(self) -> list[ProposedOutput]:
        """Return decoded proposals in the lookback window, oldest first."""
        current_block = await self.l1_connector.block_height()
        from_block = max(0, current_block - self.lookback_blocks)

        logs = await self.l1_connector.get_logs(
            self.oracle.contract_address,
            [OUTPUT_PROPOSED_TOPIC],
            from_block,
            current_block,
        )
        proposals = [decode_output_proposed(log) for log in logs]
        proposals.sort(key=lambda p: p.output_index)

        logger.debug(
            f"Found {len(proposals)} OutputProposed events in blocks {from_block}-{current_block}"
        )
        return proposals

    async def commitment_metadata(self) -> CommitmentMetadata:
        proposals = await self._recent_proposals()
        if not proposals:
            return CommitmentMetadata(
                last_proposal_time=None,
                last_commitment_hash="",
                proof_generation_time="",
            )

        latest = proposals[-1]

        # Interval between the two newest proposals approximates proof time
        proof_generation_time = ""
        if len(proposals) > 1:
            elapsed = latest.l1_timestamp - proposals[-2].l1_timestamp
            proof_generation_time = format_duration(timedelta(seconds=max(0, elapsed)))

        return CommitmentMetadata(
            last_proposal_time=datetime.fromtimestamp(latest.l1_timestamp, tz=timezone.utc),
            last_commitment_hash=latest.output_root,
            proof_generation_time=proof_generation_time,
        )

    async def transaction_metadata(self, block_number: int) -> TransactionMetadata:
        proposals = await self._recent_proposals()

        covering = next((p for p in proposals if p.l2_block_number >= block_number), None)
        if covering is None:
            return TransactionMetadata(commitment_at=None, proof_hash="")

        return TransactionMetadata(
            commitment_at=datetime.fromtimestamp(covering.l1_timestamp, tz=timezone.utc),
            proof_hash=covering.output_root,
        )
