#!/usr/bin/env python3
"""Data models for the commitment service.

This module provides immutable data classes for the values produced by the
commitment resolver and the chain connectors. Every query produces fresh
instances; nothing here is cached or mutated after construction.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any


class TransactionState(Enum):
    """Lifecycle state of an L2 transaction relative to L1 commitment.

    ``PENDING`` is part of the vocabulary but never produced by the resolver:
    a transaction without a receipt is reported as ``NotFoundError`` instead.
    """
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMMITTED = "committed"
    FAILED = "failed"


def format_duration(duration: timedelta) -> str:
    """Render a duration compactly, e.g. ``2h5m10.250s``."""
    total = duration.total_seconds()
    hours, remainder = divmod(total, 3600)
    minutes, seconds = divmod(remainder, 60)
    parts: list[str] = []
    if hours:
        parts.append(f"{int(hours)}h")
    if hours or minutes:
        parts.append(f"{int(minutes)}m")
    parts.append(f"{seconds:.3f}".rstrip("0").rstrip(".") + "s")
    return "".join(parts)


def _isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


@dataclass(frozen=True, slots=True)
class OracleReference:
    """Identifies the output oracle contract queried for the commitment frontier.

    Attributes:
        l1_endpoint: RPC endpoint of the L1 chain hosting the contract
        contract_address: Checksummed address of the output oracle
    """

    l1_endpoint: str
    contract_address: str

    def __str__(self) -> str:
        return f"OracleReference({self.contract_address} @ {self.l1_endpoint})"


@dataclass(frozen=True, slots=True)
class ReceiptInfo:
    """The parts of a transaction receipt the resolver needs.

    Attributes:
        tx_hash: Transaction hash (0x-prefixed, lower case)
        block_number: Block the transaction was included in
        succeeded: False when the receipt reports execution failure
        gas_used: Gas consumed by the transaction
    """

    tx_hash: str
    block_number: int
    succeeded: bool
    gas_used: int


@dataclass(frozen=True, slots=True)
class TransactionDetails:
    """Transaction fields that are not part of the receipt."""

    tx_hash: str
    gas_price: int


@dataclass(frozen=True, slots=True)
class ProposedOutput:
    """A decoded ``OutputProposed`` log emitted by the output oracle.

    Attributes:
        output_root: Proposed L2 output root (0x-prefixed hex)
        output_index: Index of the output in the oracle
        l2_block_number: L2 block the output commits to
        l1_timestamp: L1 timestamp recorded with the proposal
        l1_block_number: L1 block the log was emitted in
    """

    output_root: str
    output_index: int
    l2_block_number: int
    l1_timestamp: int
    l1_block_number: int


@dataclass(frozen=True, slots=True)
class CommitmentMetadata:
    """Descriptive fields of a commitment snapshot supplied by a metadata provider."""

    last_proposal_time: datetime | None
    last_commitment_hash: str
    proof_generation_time: str


@dataclass(frozen=True, slots=True)
class TransactionMetadata:
    """Descriptive fields of a transaction status supplied by a metadata provider."""

    commitment_at: datetime | None
    proof_hash: str


@dataclass(frozen=True, slots=True)
class CommitmentStatus:
    """Point-in-time snapshot of the commitment frontier.

    Attributes:
        latest_block_number: Latest L2 block committed by the oracle
        latest_output_index: Index of the latest accepted output
        next_block_number: Predicted L2 block of the next commitment
        last_proposal_time: Time of the latest proposal
        total_commitments: Number of accepted outputs
        is_service_healthy: Whether both upstreams answered a liveness probe
        last_commitment_hash: Output root of the latest commitment
        proof_generation_time: Human-readable proof generation duration
        uptime: Time since the resolver was created
    """

    latest_block_number: int
    latest_output_index: int
    next_block_number: int
    last_proposal_time: datetime | None
    total_commitments: int
    is_service_healthy: bool
    last_commitment_hash: str
    proof_generation_time: str
    uptime: timedelta

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "latestBlockNumber": self.latest_block_number,
            "latestOutputIndex": self.latest_output_index,
            "nextBlockNumber": self.next_block_number,
            "lastProposalTime": _isoformat(self.last_proposal_time),
            "totalCommitments": self.total_commitments,
            "isServiceHealthy": self.is_service_healthy,
            "lastCommitmentHash": self.last_commitment_hash,
            "proofGenerationTime": self.proof_generation_time,
            "uptime": format_duration(self.uptime),
        }


@dataclass(frozen=True, slots=True)
class TransactionStatus:
    """Commitment status of a single L2 transaction.

    ``committed`` and ``state`` are independent: a failed transaction can
    still sit below the committed frontier.
    """

    tx_hash: str
    block_number: int
    state: TransactionState
    committed: bool
    commitment_at: datetime | None
    proof_hash: str
    gas_used: int
    effective_gas_price: int

    def __str__(self) -> str:
        return (
            f"TransactionStatus(tx={self.tx_hash[:10]}..., "
            f"block={self.block_number}, "
            f"state={self.state.value})"
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "txHash": self.tx_hash,
            "blockNumber": self.block_number,
            "status": self.state.value,
            "committed": self.committed,
            "commitmentAt": _isoformat(self.commitment_at),
            "proofHash": self.proof_hash,
            "gasUsed": self.gas_used,
            # Gas prices can exceed the JSON safe integer range
            "effectiveGasPrice": str(self.effective_gas_price),
        }


@dataclass(frozen=True, slots=True)
class HealthReport:
    """Aggregate health of the service and its upstreams."""

    status: str
    timestamp: datetime
    version: str
    services: Mapping[str, str] = field(default_factory=dict)

    @property
    def healthy(self) -> bool:
        return self.status == "healthy"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "status": self.status,
            "timestamp": self.timestamp.isoformat(),
            "version": self.version,
            "services": dict(self.services),
        }
