"""
RPC connector utility for read-only chain queries.

Wraps an ``AsyncWeb3`` HTTP connection, bounds every request with a timeout
and translates web3/transport failures into the service's error taxonomy.
"""

import asyncio
import logging
from collections.abc import Awaitable, Sequence
from typing import Any, Protocol, TypeVar

from web3 import AsyncWeb3, Web3
from web3.exceptions import ContractLogicError, TransactionNotFound
from web3.types import LogReceipt

from ..errors import CommitmentServiceError, ConnectivityError, NotFoundError, RevertError
from ..models import ReceiptInfo, TransactionDetails

T = TypeVar("T")


class ChainConnector(Protocol):
    """Read-only capability set the resolver needs from a chain endpoint."""

    name: str

    async def block_height(self) -> int: ...

    async def transaction_receipt(self, tx_hash: str) -> ReceiptInfo: ...

    async def transaction_details(self, tx_hash: str) -> TransactionDetails: ...

    async def call_contract(self, address: str, call_data: bytes) -> bytes: ...

    async def get_logs(
        self,
        address: str,
        topics: Sequence[str | None],
        from_block: int,
        to_block: int
    ) -> list[LogReceipt]: ...


class RpcConnector:
    """
    Connector to a single chain's JSON-RPC endpoint.

    Each method issues exactly one RPC request. No retries happen here;
    failures are raised as ``ConnectivityError``, ``NotFoundError`` or
    ``RevertError`` for the caller to handle.
    """

    def __init__(self, name: str, rpc_url: str, request_timeout: float = 10) -> None:
        """
        Initialize the RpcConnector.

        Args:
            name: Short label used in error messages (e.g. "L1", "L2")
            rpc_url: HTTP(S) RPC endpoint URL
            request_timeout: Upper bound in seconds for every request
        """
        if not rpc_url:
            raise ValueError("RPC URL is required")
        if request_timeout <= 0:
            raise ValueError(f"Request timeout must be positive, got {request_timeout}")

        self.name = name
        self.rpc_url = rpc_url
        self.request_timeout = request_timeout
        self.w3 = AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(rpc_url))

        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.logger.debug(f"{name} connector created for {rpc_url} (timeout {request_timeout}s)")

    def __repr__(self) -> str:
        return f"RpcConnector(name={self.name!r}, rpc_url={self.rpc_url!r})"

    async def _bounded(self, operation: str, awaitable: Awaitable[T]) -> T:
        """Await an RPC request, translating timeouts and transport failures."""
        try:
            return await asyncio.wait_for(awaitable, timeout=self.request_timeout)
        except asyncio.TimeoutError as e:
            raise ConnectivityError(
                f"{self.name} RPC {operation} timed out after {self.request_timeout}s"
            ) from e
        except CommitmentServiceError:
            raise
        except (TransactionNotFound, ContractLogicError):
            raise
        except Exception as e:
            raise ConnectivityError(f"{self.name} RPC {operation} failed: {e}") from e

    async def block_height(self) -> int:
        """Return the latest block number of the chain."""
        return int(await self._bounded("eth_blockNumber", self.w3.eth.block_number))

    async def transaction_receipt(self, tx_hash: str) -> ReceiptInfo:
        """
        Fetch a transaction receipt.

        Raises:
            NotFoundError: If the chain has no receipt for the hash
            ConnectivityError: On transport failure or timeout
        """
        try:
            receipt = await self._bounded(
                "eth_getTransactionReceipt",
                self.w3.eth.get_transaction_receipt(tx_hash)
            )
        except TransactionNotFound as e:
            raise NotFoundError(f"Receipt for transaction {tx_hash} not found on {self.name}") from e

        return ReceiptInfo(
            tx_hash=tx_hash,
            block_number=int(receipt["blockNumber"]),
            succeeded=receipt.get("status", 0) == 1,
            gas_used=int(receipt.get("gasUsed", 0)),
        )

    async def transaction_details(self, tx_hash: str) -> TransactionDetails:
        """
        Fetch a transaction by hash.

        Raises:
            NotFoundError: If the chain does not know the transaction
            ConnectivityError: On transport failure or timeout
        """
        try:
            tx = await self._bounded(
                "eth_getTransactionByHash",
                self.w3.eth.get_transaction(tx_hash)
            )
        except TransactionNotFound as e:
            raise NotFoundError(f"Transaction {tx_hash} not found on {self.name}") from e

        # Dynamic-fee transactions only carry maxFeePerGas before inclusion
        gas_price = tx.get("gasPrice")
        if gas_price is None:
            gas_price = tx.get("maxFeePerGas", 0)

        return TransactionDetails(tx_hash=tx_hash, gas_price=int(gas_price))

    async def call_contract(self, address: str, call_data: bytes) -> bytes:
        """
        Execute a raw ``eth_call`` against the latest block.

        Args:
            address: Contract address
            call_data: ABI-encoded call data (selector and arguments)

        Returns:
            Raw return data

        Raises:
            RevertError: If the call reverts
            ConnectivityError: On transport failure or timeout
        """
        try:
            result = await self._bounded(
                "eth_call",
                self.w3.eth.call({
                    "to": Web3.to_checksum_address(address),
                    "data": Web3.to_hex(call_data),
                })
            )
        except ContractLogicError as e:
            raise RevertError(f"Call to {address} reverted on {self.name}: {e}") from e

        return bytes(result)

    async def get_logs(
        self,
        address: str,
        topics: Sequence[str | None],
        from_block: int,
        to_block: int
    ) -> list[LogReceipt]:
        """Fetch contract logs in an inclusive block range."""
        logs = await self._bounded(
            "eth_getLogs",
            self.w3.eth.get_logs({
                "address": Web3.to_checksum_address(address),
                "topics": list(topics),
                "fromBlock": from_block,
                "toBlock": to_block,
            })
        )
        return list(logs)

    async def close(self) -> None:
        """Release the underlying HTTP session."""
        provider = self.w3.provider
        try:
            if hasattr(provider, "disconnect"):
                await provider.disconnect()
        except Exception as e:
            self.logger.warning(f"Error closing {self.name} connector: {e}")
