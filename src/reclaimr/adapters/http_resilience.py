"""Async HTTP plumbing shared by every integration adapter.

Each adapter opens one ``ResilientClient`` per operation. Retries on
transient failures come from ``httpx-retries``; an optional per-integration
request rate is enforced with ``aiolimiter``.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, TypedDict, Unpack

import httpx
from aiolimiter import AsyncLimiter
from httpx_retries import Retry, RetryTransport

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

    from httpx._types import QueryParamTypes, URLTypes

    from reclaimr.config.settings import IntegrationConfig

RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})
IDEMPOTENT_METHODS = frozenset({"DELETE", "GET", "HEAD", "OPTIONS"})


@dataclass(slots=True, frozen=True)
class RetryPolicy:
    attempts: int = 3
    backoff_factor: float = 0.5
    max_backoff_wait: float = 30.0
    methods: frozenset[str] = IDEMPOTENT_METHODS
    statuses: frozenset[int] = RETRYABLE_STATUS_CODES

    def build(self) -> Retry:
        return Retry(
            total=self.attempts,
            backoff_factor=self.backoff_factor,
            max_backoff_wait=self.max_backoff_wait,
            respect_retry_after_header=True,
            allowed_methods=sorted(self.methods),
            status_forcelist=sorted(self.statuses),
            retry_on_exceptions=(
                httpx.TimeoutException,
                httpx.NetworkError,
                httpx.RemoteProtocolError,
            ),
        )


@dataclass(slots=True, frozen=True)
class RateLimit:
    max_calls: int
    per_seconds: float


@dataclass(slots=True, frozen=True)
class ResilienceConfig:
    name: str
    base_url: str | None = None
    timeout_seconds: float = 30.0
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    ratelimit: RateLimit | None = None
    default_headers: Mapping[str, str] | None = None


class RequestOptions(TypedDict, total=False):
    params: QueryParamTypes | None


class ResilientClient:
    """``httpx.AsyncClient`` with a retrying transport and an optional limiter."""

    def __init__(self, config: ResilienceConfig) -> None:
        self.config = config
        self._limiter = (
            AsyncLimiter(config.ratelimit.max_calls, config.ratelimit.per_seconds)
            if config.ratelimit is not None
            else None
        )
        self._client = httpx.AsyncClient(
            base_url=config.base_url or "",
            timeout=config.timeout_seconds,
            headers=dict(config.default_headers or {}),
            transport=RetryTransport(retry=config.retry.build()),
        )

    async def __aenter__(self) -> ResilientClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def get(self, url: URLTypes, **kwargs: Unpack[RequestOptions]) -> httpx.Response:
        return await self._send("GET", url, kwargs)

    async def post(self, url: URLTypes, **kwargs: Unpack[RequestOptions]) -> httpx.Response:
        return await self._send("POST", url, kwargs)

    async def delete(self, url: URLTypes, **kwargs: Unpack[RequestOptions]) -> httpx.Response:
        return await self._send("DELETE", url, kwargs)

    async def _send(
        self,
        method: str,
        url: URLTypes,
        options: RequestOptions,
    ) -> httpx.Response:
        if self._limiter is None:
            return await self._client.request(method, url, **options)
        async with self._limiter:
            return await self._client.request(method, url, **options)


def default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


type ClientFactory = Callable[[ResilienceConfig], ResilientClient]


class ServiceAPIError(RuntimeError):
    """Raised when an integration answers with an unexpected status or payload."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def check_response(
    response: httpx.Response,
    error_type: type[ServiceAPIError] = ServiceAPIError,
    *,
    accepted: frozenset[int] = frozenset({200}),
) -> httpx.Response:
    if response.status_code not in accepted:
        raise error_type(
            f"unexpected status code {response.status_code} from {response.request.url.path}",
            status_code=response.status_code,
        )
    return response


def resilience_for(
    name: str,
    integration: IntegrationConfig,
    *,
    headers: Mapping[str, str] | None = None,
) -> ResilienceConfig:
    """Build the client configuration for one enabled integration."""

    default_headers = {"Accept": "application/json", **(headers or {})}
    ratelimit = (
        RateLimit(max_calls=1, per_seconds=1 / integration.requests_per_second)
        if integration.requests_per_second
        else None
    )
    return ResilienceConfig(
        name=name,
        base_url=integration.url.rstrip("/"),
        timeout_seconds=integration.timeout,
        retry=RetryPolicy(attempts=integration.max_retries),
        ratelimit=ratelimit,
        default_headers=default_headers,
    )


def join_url(base_url: str, path: str) -> str:
    return f"{base_url.rstrip('/')}/{path.lstrip('/')}"
