#!/usr/bin/env python3
"""Entry point for the commitment status service.

Loads configuration from the environment (optionally seeded from a .env
file), builds the status service and serves the HTTP API with uvicorn.
"""

import argparse
import logging
import os
import sys

import uvicorn

# Configure logging before any other imports create loggers
def setup_logging(level: str = "INFO") -> None:
    """Configure logging for the application.

    Args:
        level: Logging level as string (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    log_level: int = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

# Get logger for this module
logger = logging.getLogger(__name__)

from commitment_service.api import create_app
from commitment_service.config import ServiceConfig
from commitment_service.service import StatusService


def main() -> None:
    """Parse arguments, load configuration and run the HTTP server.

    Raises:
        SystemExit: On configuration errors
    """
    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        description="Commitment Status Service - L2 output commitment tracking",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""Environment Variables:
  L1_RPC_URL               - RPC endpoint of the L1 chain (default: http://localhost:8545)
  L2_RPC_URL               - RPC endpoint of the L2 chain (default: http://localhost:9545)
  L2OO_ADDRESS             - L2 output oracle contract address on L1
  SUBMISSION_INTERVAL      - L2 blocks between oracle outputs (default: 1800)
  COMMITMENT_LAG_BLOCKS    - L2 blocks behind head treated as committed (default: 10)
  REQUEST_TIMEOUT          - Timeout in seconds for each RPC request (default: 10)
  ORACLE_WORD_DECODING     - low_byte or full (default: low_byte)
  METADATA_SOURCE          - static or events (default: static)
  METADATA_LOOKBACK_BLOCKS - L1 blocks scanned for proposals (default: 5000)
  HOST / PORT              - HTTP listener (default: 0.0.0.0:8080)
  LOG_LEVEL                - Logging level (can be overridden with --log-level)
        """
    )
    parser.add_argument(
        "--env-file",
        default=None,
        help="Path of a .env file to load before reading the environment"
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get("LOG_LEVEL", "INFO"),
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set the logging level (default: INFO)"
    )
    parser.add_argument("--host", default=None, help="Override HOST")
    parser.add_argument("--port", type=int, default=None, help="Override PORT")
    args: argparse.Namespace = parser.parse_args()

    setup_logging(args.log_level)
    logger.info("=== Commitment Status Service Starting ===")
    logger.info("Loading configuration from environment...")

    try:
        config: ServiceConfig = ServiceConfig.from_env(env_file=args.env_file)
    except ValueError as e:
        logger.error(f"Configuration Error: {e}")
        logger.error("Please check your environment variables:")
        logger.error("  - L1_RPC_URL: RPC endpoint of the L1 chain")
        logger.error("  - L2_RPC_URL: RPC endpoint of the L2 chain")
        logger.error("  - L2OO_ADDRESS: L2 output oracle contract address")
        logger.error("  - REQUEST_TIMEOUT: RPC timeout in seconds (1-120)")
        sys.exit(1)

    config.log_config()

    service: StatusService = StatusService.from_config(config)
    app = create_app(service)

    host = args.host or config.server.host
    port = args.port or config.server.port
    logger.info(f"Starting server on {host}:{port}")
    logger.info(f"API Documentation: http://localhost:{port}/docs")

    uvicorn.run(app, host=host, port=port, log_level=args.log_level.lower())


if __name__ == "__main__":
    main()
