#!/usr/bin/env python3
"""Status service for the commitment service.

``StatusService`` owns the chain connectors and the commitment resolver for
the lifetime of the process and exposes their results to the HTTP layer.
Unlike the resolver it logs every failure before re-raising it.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

from . import __version__
from .config import ServiceConfig
from .errors import CommitmentServiceError
from .metadata import ChainMetadataProvider, OutputProposedMetadataProvider, StaticMetadataProvider
from .models import CommitmentStatus, HealthReport, OracleReference, TransactionStatus, format_duration
from .resolver import CommitmentResolver
from .utils.oracle_codec import WordDecoding
from .utils.rpc_connector import RpcConnector

# Get logger for this module
logger = logging.getLogger(__name__)

SERVICE_NAME = "OP Succinct Commitment Storage Service"

ENDPOINTS: dict[str, str] = {
    "health": "/health",
    "commitment_status": "/api/commitment/status",
    "transaction_status": "/api/transaction/{txHash}",
    "metrics": "/metrics",
}


class StatusService:
    """Exposes commitment and transaction status to the transport layer."""

    def __init__(self, resolver: CommitmentResolver, connectors: list[RpcConnector] | None = None) -> None:
        """
        Initialize the StatusService.

        :param resolver: Resolver answering status queries
        :param connectors: Connectors to close on shutdown
        """
        self.resolver = resolver
        self._connectors = connectors or []

    @classmethod
    def from_config(cls, config: ServiceConfig) -> "StatusService":
        """
        Build connectors, metadata provider and resolver from configuration.

        :param config: Service configuration
        :return: Ready-to-use StatusService
        """
        timeout = config.resolver.request_timeout

        logger.debug(f"Connecting to L1 at {config.chains.l1_rpc_url}")
        l1_connector = RpcConnector("L1", config.chains.l1_rpc_url, request_timeout=timeout)
        logger.debug(f"Connecting to L2 at {config.chains.l2_rpc_url}")
        l2_connector = RpcConnector("L2", config.chains.l2_rpc_url, request_timeout=timeout)

        oracle = OracleReference(
            l1_endpoint=config.chains.l1_rpc_url,
            contract_address=config.oracle.address,
        )

        metadata_provider: ChainMetadataProvider
        if config.resolver.metadata_source == "events":
            metadata_provider = OutputProposedMetadataProvider(
                l1_connector,
                oracle,
                lookback_blocks=config.resolver.metadata_lookback_blocks,
            )
        else:
            metadata_provider = StaticMetadataProvider()
        logger.info(f"Using {type(metadata_provider).__name__} for commitment metadata")

        resolver = CommitmentResolver(
            oracle=oracle,
            l1_connector=l1_connector,
            l2_connector=l2_connector,
            metadata_provider=metadata_provider,
            submission_interval=config.resolver.submission_interval,
            commitment_lag_blocks=config.resolver.commitment_lag_blocks,
            word_decoding=WordDecoding(config.resolver.word_decoding),
        )

        logger.info(f"StatusService initialized for {oracle}")
        return cls(resolver, connectors=[l1_connector, l2_connector])

    async def commitment_status(self) -> CommitmentStatus:
        """Resolve the current commitment frontier."""
        try:
            status = await self.resolver.resolve_commitment_status()
        except CommitmentServiceError as e:
            logger.warning(f"Commitment status unavailable: {type(e).__name__}: {e}")
            raise

        logger.debug(
            f"Commitment frontier at L2 block {status.latest_block_number} "
            f"(output {status.latest_output_index})"
        )
        return status

    async def transaction_status(self, tx_hash: str) -> TransactionStatus:
        """Resolve the commitment status of one L2 transaction."""
        try:
            status = await self.resolver.resolve_transaction_status(tx_hash)
        except CommitmentServiceError as e:
            logger.warning(f"Transaction status for {tx_hash!r} unavailable: {type(e).__name__}: {e}")
            raise

        logger.debug(f"Resolved {status}")
        return status

    async def is_healthy(self) -> bool:
        return await self.resolver.check_health()

    async def health_report(self) -> HealthReport:
        """Probe both upstreams and describe each connection."""
        l1_ok, l2_ok = await self.resolver.probe_upstreams()
        healthy = l1_ok and l2_ok

        if not healthy:
            logger.warning(f"Health check failed (L1 ok: {l1_ok}, L2 ok: {l2_ok})")

        return HealthReport(
            status="healthy" if healthy else "unhealthy",
            timestamp=datetime.now(timezone.utc),
            version=__version__,
            services={
                "l1_connection": "connected" if l1_ok else "disconnected",
                "l2_connection": "connected" if l2_ok else "disconnected",
                "database": "not_used",
            },
        )

    def uptime(self) -> timedelta:
        return self.resolver.uptime()

    def service_info(self) -> dict[str, Any]:
        """Describe the service and its endpoints."""
        return {
            "service": SERVICE_NAME,
            "version": __version__,
            "endpoints": dict(ENDPOINTS),
            "uptime": format_duration(self.uptime()),
        }

    async def close(self) -> None:
        """Close all connectors owned by the service."""
        logger.info("Shutting down StatusService...")
        for connector in self._connectors:
            await connector.close()
        logger.info("StatusService shutdown complete")
