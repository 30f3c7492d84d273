#!/usr/bin/env python3
"""Error taxonomy for the commitment service.

Connectors translate web3 and transport failures into these types so that
callers can map them to user-facing responses without knowing which RPC
library produced them.
"""


class CommitmentServiceError(Exception):
    """Base class for every error raised by the commitment service."""


class ConnectivityError(CommitmentServiceError):
    """An upstream RPC endpoint was unreachable or timed out."""


class OracleQueryError(CommitmentServiceError):
    """The output oracle returned malformed or insufficient data."""


class RevertError(OracleQueryError):
    """A contract call reverted on-chain."""


class NotFoundError(CommitmentServiceError):
    """The referenced transaction or receipt does not exist (yet)."""


class InvalidInputError(CommitmentServiceError):
    """Client-supplied input, such as a transaction hash, is malformed."""
