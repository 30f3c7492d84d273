"""
Commitment status service.

Reports the L2 output commitment frontier recorded on L1 and whether
individual L2 transactions have been committed.
"""

__version__ = "1.0.0"

from .errors import (
    CommitmentServiceError,
    ConnectivityError,
    InvalidInputError,
    NotFoundError,
    OracleQueryError,
    RevertError,
)
from .models import CommitmentStatus, OracleReference, TransactionState, TransactionStatus
from .resolver import CommitmentResolver

__all__ = [
    "CommitmentResolver",
    "CommitmentServiceError",
    "CommitmentStatus",
    "ConnectivityError",
    "InvalidInputError",
    "NotFoundError",
    "OracleQueryError",
    "OracleReference",
    "RevertError",
    "TransactionState",
    "TransactionStatus",
]
