"""
dex/adapters/base.py - Locator/reader interfaces shared by all pool models.

Each pool model implements:
- PoolLocator: (dex, token_a, token_b) -> PoolRef | None
- ReserveReader: PoolRef -> ReserveSnapshot

Subclasses implement _locate/_read. The public methods translate
transport and decoding failures into the component's error type;
timeouts propagate unchanged so the scanner can tag them as TIMEOUT.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Sequence

from chains.providers import RPCProvider
from core.constants import PoolModel
from core.exceptions import (
    AbiDecodeError,
    InfraError,
    LocatorUnavailable,
    ReserveUnavailable,
    RPCTimeoutError,
)
from core.logging import get_logger
from core.models import DexDescriptor, PoolRef, ReserveSnapshot

logger = get_logger(__name__)


class ContractCaller:
    """
    Read-only contract calls against one block (or latest).

    Usage:
        caller = ContractCaller(provider, block_number=19_000_000)
        result = await caller.call(pair_address, SELECTOR_GET_RESERVES)
    """

    def __init__(self, provider: RPCProvider, block_number: int | None = None):
        self.provider = provider
        self.block_number = block_number

    @property
    def block_tag(self) -> str:
        return hex(self.block_number) if self.block_number is not None else "latest"

    async def call(self, to: str, data: str) -> str:
        """
        eth_call returning the raw hex result.

        Raises:
            AbiDecodeError: If the node returned a null result
            InfraError / RPCTimeoutError: From the transport
        """
        response = await self.provider.eth_call(to=to, data=data, block=self.block_tag)
        if response.result is None:
            raise AbiDecodeError(
                message="eth_call returned null result",
                details={"to": to, "selector": data[:10], "block_tag": self.block_tag},
            )
        return response.result


class PoolLocator(ABC):
    """Resolve the canonical pool for a pair on one venue."""

    pool_model: PoolModel

    def __init__(self, caller: ContractCaller):
        self.caller = caller

    async def locate(self, dex: DexDescriptor, token_a: str, token_b: str) -> PoolRef | None:
        """
        Locate the pool for (token_a, token_b) on `dex`.

        Returns:
            PoolRef, or None if the venue has no pool for the pair

        Raises:
            LocatorUnavailable: On transport failure or malformed response
            RPCTimeoutError: If the transport timed out
        """
        try:
            return await self._locate(dex, token_a, token_b)
        except RPCTimeoutError:
            raise
        except (InfraError, AbiDecodeError) as e:
            raise LocatorUnavailable(
                message=f"{dex.name} pool lookup failed: {e.message}",
                details={
                    "dex": dex.key,
                    "authority": dex.authority,
                    "token_a": token_a,
                    "token_b": token_b,
                    "cause": e.code.value,
                },
            ) from e

    async def _lookup_all(
        self,
        dex: DexDescriptor,
        keys: Sequence[Any],
        lookups: Sequence[Awaitable[Any]],
    ) -> list[tuple[Any, Any]]:
        """
        Run several lookups for one pair concurrently.

        Returns (key, result) for every lookup that answered, in `keys` order.
        A reverted or undecodable lookup is skipped. Timeouts propagate, and a
        failure is raised only when no lookup answered.
        """
        results = await asyncio.gather(*lookups, return_exceptions=True)

        answered = []
        failure: InfraError | AbiDecodeError | None = None
        for key, result in zip(keys, results):
            if isinstance(result, RPCTimeoutError):
                raise result
            if isinstance(result, (InfraError, AbiDecodeError)):
                logger.debug(
                    f"{dex.key} lookup {key} skipped: {result.message}",
                    extra={"context": {"dex": dex.key, "lookup": str(key), "error_code": result.code.value}},
                )
                failure = result
                continue
            if isinstance(result, BaseException):
                raise result
            answered.append((key, result))

        if not answered and failure is not None:
            raise failure
        return answered

    @abstractmethod
    async def _locate(self, dex: DexDescriptor, token_a: str, token_b: str) -> PoolRef | None:
        ...


class ReserveReader(ABC):
    """Read a two-sided reserve snapshot in the pool's internal ordering."""

    pool_model: PoolModel

    def __init__(self, caller: ContractCaller):
        self.caller = caller

    async def read(self, pool: PoolRef) -> ReserveSnapshot:
        """
        Read reserves of `pool`.

        Raises:
            ReserveUnavailable: On transport failure or malformed response
            RPCTimeoutError: If the transport timed out
        """
        try:
            snapshot = await self._read(pool)
        except RPCTimeoutError:
            raise
        except (InfraError, AbiDecodeError) as e:
            raise ReserveUnavailable(
                message=f"{pool.dex.name} reserve read failed: {e.message}",
                details={
                    "dex": pool.dex.key,
                    "pool_address": pool.address,
                    "cause": e.code.value,
                },
            ) from e

        logger.debug(
            f"Reserves: {pool.dex.key} {pool.address[:10]}... "
            f"{snapshot.reserve0}/{snapshot.reserve1}",
            extra={"context": {"block_tag": self.caller.block_tag}},
        )
        return snapshot

    @abstractmethod
    async def _read(self, pool: PoolRef) -> ReserveSnapshot:
        ...
