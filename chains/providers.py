"""
chains/providers.py - JSON-RPC transport with endpoint failover.

The scanner only needs three read methods (eth_call, eth_blockNumber,
eth_chainId). Every request walks the configured endpoints in order and
returns the first usable answer. A node-side error body ("execution
reverted", rate limits) counts as a failure of that endpoint, so the next
one is tried.

When all endpoints fail the caller gets one typed error:
RPCTimeoutError if every endpoint timed out, InfraError otherwise.
"""

import os
import time
from dataclasses import dataclass
from typing import Any

import httpx
from dotenv import load_dotenv

from core.constants import DEFAULT_RPC_TIMEOUT_SECONDS
from core.exceptions import InfraError, RPCTimeoutError
from core.logging import get_logger

logger = get_logger(__name__)

# ${ALCHEMY_API_KEY} style placeholders in chains.yaml come from .env
load_dotenv()


def _now_ms() -> int:
    return int(time.monotonic() * 1000)


class _EndpointFailed(Exception):
    """One endpoint did not produce a result."""

    def __init__(self, reason: str, timed_out: bool = False):
        super().__init__(reason)
        self.reason = reason
        self.timed_out = timed_out


@dataclass
class RPCStats:
    """Counters for one endpoint, reported with every scan."""
    url: str
    total_requests: int = 0
    successful_requests: int = 0
    failed_requests: int = 0
    timeouts: int = 0
    total_latency_ms: int = 0
    last_error: str | None = None

    def record_success(self, latency_ms: int) -> None:
        self.total_requests += 1
        self.successful_requests += 1
        self.total_latency_ms += latency_ms

    def record_failure(self, reason: str, timed_out: bool = False) -> None:
        self.total_requests += 1
        self.failed_requests += 1
        if timed_out:
            self.timeouts += 1
        self.last_error = reason

    @property
    def avg_latency_ms(self) -> int:
        if self.successful_requests == 0:
            return 0
        return self.total_latency_ms // self.successful_requests

    @property
    def success_rate(self) -> float:
        if self.total_requests == 0:
            return 0.0
        return self.successful_requests / self.total_requests

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_requests": self.total_requests,
            "success_rate": round(self.success_rate, 3),
            "avg_latency_ms": self.avg_latency_ms,
            "timeouts": self.timeouts,
            "last_error": self.last_error,
        }


@dataclass
class RPCResponse:
    """Successful JSON-RPC result and where it came from."""
    result: Any
    latency_ms: int
    endpoint_used: str


def resolve_rpc_urls(urls: list[str], chain_id: int) -> list[str]:
    """Expand environment placeholders, dropping URLs that stay unresolved."""
    resolved = []
    for url in urls:
        expanded = os.path.expandvars(url)
        if "${" in expanded:
            logger.warning(
                "Skipping RPC endpoint with unresolved variable",
                extra={"context": {"chain_id": chain_id, "url": url}},
            )
            continue
        resolved.append(expanded)
    return resolved


class RPCProvider:
    """
    Read-only JSON-RPC client for one chain.

    Endpoints are tried in configured order on every request; there is
    no health-based reordering. One httpx.AsyncClient is shared by all
    requests and must be released with close().
    """

    def __init__(
        self,
        chain_id: int,
        rpc_urls: list[str],
        timeout_seconds: float = DEFAULT_RPC_TIMEOUT_SECONDS,
    ):
        self.chain_id = chain_id
        self.timeout_seconds = timeout_seconds
        self.rpc_urls = resolve_rpc_urls(rpc_urls, chain_id)
        self.stats: dict[str, RPCStats] = {url: RPCStats(url=url) for url in self.rpc_urls}
        self._client: httpx.AsyncClient | None = None
        self._request_id = 0

    def _client_or_new(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout_seconds),
                limits=httpx.Limits(max_connections=20),
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _post(self, url: str, payload: dict[str, Any]) -> Any:
        """Send one request to one endpoint and return its `result`."""
        try:
            resp = await self._client_or_new().post(url, json=payload)
            resp.raise_for_status()
            body = resp.json()
        except httpx.TimeoutException:
            raise _EndpointFailed(f"Timeout after {self.timeout_seconds}s", timed_out=True)
        except (httpx.HTTPError, ValueError) as e:
            raise _EndpointFailed(str(e) or type(e).__name__)

        error = body.get("error") if isinstance(body, dict) else "malformed response"
        if error:
            reason = error.get("message", str(error)) if isinstance(error, dict) else str(error)
            raise _EndpointFailed(reason)

        return body.get("result")

    async def call(self, method: str, params: list | None = None) -> RPCResponse:
        """
        Send a JSON-RPC request, failing over across endpoints.

        Raises:
            RPCTimeoutError: every endpoint timed out
            InfraError: no endpoints, or every endpoint failed
        """
        if not self.rpc_urls:
            raise InfraError(
                message="No RPC endpoints configured",
                details={"chain_id": self.chain_id},
            )

        self._request_id += 1
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params or [],
            "id": self._request_id,
        }

        failures: list[_EndpointFailed] = []
        for url in self.rpc_urls:
            start_ms = _now_ms()
            try:
                result = await self._post(url, payload)
            except _EndpointFailed as failure:
                self.stats[url].record_failure(failure.reason, failure.timed_out)
                failures.append(failure)
                logger.debug(
                    f"{method} failed on endpoint",
                    extra={"context": {"url": url, "reason": failure.reason}},
                )
                continue

            latency_ms = _now_ms() - start_ms
            self.stats[url].record_success(latency_ms)
            return RPCResponse(result=result, latency_ms=latency_ms, endpoint_used=url)

        details = {
            "chain_id": self.chain_id,
            "method": method,
            "endpoints_tried": len(failures),
            "last_error": failures[-1].reason,
        }
        if all(failure.timed_out for failure in failures):
            raise RPCTimeoutError(
                message=f"All RPC endpoints timed out for chain {self.chain_id}",
                details=details,
            )
        raise InfraError(
            message=f"All RPC endpoints failed for chain {self.chain_id}",
            details=details,
        )

    async def get_chain_id(self) -> int:
        response = await self.call("eth_chainId")
        return int(response.result, 16)

    async def get_block_number(self) -> tuple[int, int]:
        """Latest block as (block_number, latency_ms)."""
        response = await self.call("eth_blockNumber")
        return int(response.result, 16), response.latency_ms

    async def eth_call(self, to: str, data: str, block: str = "latest") -> RPCResponse:
        """Read-only contract call at `block` (hex number or "latest")."""
        return await self.call("eth_call", [{"to": to, "data": data}, block])

    def get_stats_summary(self) -> dict[str, dict[str, Any]]:
        return {url: stats.to_dict() for url, stats in self.stats.items()}
