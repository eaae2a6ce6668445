"""Backoffice — Meta Graph API Client.

Thin authenticated transport for the Graph API. Every call is a single
attempt: failures are classified and raised, never retried here.
"""

import time
from typing import Any, Dict, Optional

import httpx

from backoffice.config import settings
from backoffice.connectors.meta.errors import (
    GENERIC_ERROR,
    GraphApiError,
    GraphErrorReturn,
    parse_graph_error,
)
from backoffice.core.logging import get_logger

logger = get_logger("meta.client")


class GraphClient:
    """Async HTTP client for the Meta Graph API.

    The access token is supplied per call because one backoffice process
    acts on behalf of many users.
    """

    def __init__(
        self,
        base_url: str | None = None,
        api_version: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or settings.meta_base_url).rstrip("/")
        self.api_version = api_version or settings.meta_api_version
        self.timeout = timeout if timeout is not None else settings.meta_request_timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            )
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    def build_url(self, path: str) -> str:
        return f"{self.base_url}/{self.api_version}/{path.lstrip('/')}"

    # ── Core Request Method ──

    async def call(
        self,
        method: str,
        path: str,
        access_token: str,
        params: Dict[str, Any] | None = None,
        body: Dict[str, str] | None = None,
    ) -> Dict[str, Any]:
        """Issue one Graph API request and return the parsed JSON body.

        The token always travels as the ``access_token`` query parameter,
        for reads and writes alike. Writes send ``body`` form-encoded.

        Raises:
            GraphApiError: on a Graph error payload, a non-2xx status, a
                network failure or timeout, or a body that is not JSON.
        """
        url = self.build_url(path)
        query = dict(params or {})
        query["access_token"] = access_token

        client = await self._get_client()
        started = time.perf_counter()
        try:
            resp = await client.request(method, url, params=query, data=body)
        except httpx.TimeoutException as e:
            logger.warning(
                f"Graph {method} {path} timed out after {self.timeout}s",
                extra={"endpoint": path},
            )
            raise GraphApiError(
                GraphErrorReturn(status_code=500, reason=GENERIC_ERROR)
            ) from e
        except httpx.RequestError as e:
            logger.warning(
                f"Graph {method} {path} request failed: {e.__class__.__name__}",
                extra={"endpoint": path},
            )
            raise GraphApiError(
                GraphErrorReturn(status_code=500, reason=GENERIC_ERROR)
            ) from e

        duration_ms = round((time.perf_counter() - started) * 1000, 1)
        logger.debug(
            f"Graph {method} {path} -> {resp.status_code}",
            extra={
                "endpoint": path,
                "status_code": resp.status_code,
                "duration_ms": duration_ms,
            },
        )

        try:
            payload = resp.json()
        except ValueError:
            payload = None

        has_error_object = isinstance(payload, dict) and isinstance(
            payload.get("error"), dict
        )
        if resp.is_error or has_error_object:
            error_return = parse_graph_error(payload)
            data = error_return.data
            logger.warning(
                f"Graph {method} {path} failed: {error_return.reason.title}"
                + (f" (code={data.code}, subcode={data.error_subcode}, "
                   f"fbtrace_id={data.fbtrace_id})" if data else ""),
                extra={"endpoint": path, "status_code": resp.status_code},
            )
            raise GraphApiError(error_return)

        if not isinstance(payload, dict):
            logger.warning(
                f"Graph {method} {path} returned a non-JSON body",
                extra={"endpoint": path, "status_code": resp.status_code},
            )
            raise GraphApiError(GraphErrorReturn(status_code=500, reason=GENERIC_ERROR))

        return payload
