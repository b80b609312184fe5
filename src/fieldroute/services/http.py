"""Shared HTTP plumbing for provider clients."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

import httpx

from ..errors import ProviderUnavailable

logger = logging.getLogger(__name__)

# Status codes worth another attempt when retries are enabled.
RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})


async def get_json(
    client: httpx.AsyncClient,
    url: str,
    *,
    provider: str,
    params: Optional[dict[str, Any]] = None,
    max_retries: int = 0,
    backoff_seconds: float = 0.0,
) -> tuple[int, dict]:
    """GET ``url`` and return ``(status_code, payload)``.

    Transport failures, auth rejections, retryable 5xx/429 responses (after
    ``max_retries``) and non-JSON bodies raise ``ProviderUnavailable``. Other
    4xx responses are returned so the caller can read provider error codes.
    """
    attempt = 0
    while True:
        try:
            response = await client.get(url, params=params)
            if response.status_code in (401, 403):
                raise ProviderUnavailable(provider, f"request rejected with HTTP {response.status_code}")
            if response.status_code in RETRYABLE_STATUS_CODES:
                raise httpx.HTTPStatusError(
                    f"{provider} returned HTTP {response.status_code}",
                    request=response.request,
                    response=response,
                )
            try:
                payload = response.json()
            except ValueError as exc:
                raise ProviderUnavailable(provider, "response body is not valid JSON") from exc
            if not isinstance(payload, dict):
                raise ProviderUnavailable(provider, "response body is not a JSON object")
            return response.status_code, payload
        except (httpx.TimeoutException, httpx.NetworkError, httpx.HTTPStatusError) as exc:
            attempt += 1
            if attempt > max_retries:
                raise ProviderUnavailable(provider, _describe(exc)) from exc
            wait_time = backoff_seconds * (2 ** (attempt - 1))
            logger.debug(
                f"{provider} request failed ({_describe(exc)}), retrying in {wait_time:.1f}s "
                f"(attempt {attempt}/{max_retries})"
            )
            await asyncio.sleep(wait_time)
        except httpx.HTTPError as exc:
            raise ProviderUnavailable(provider, _describe(exc)) from exc


def _describe(exc: Exception) -> str:
    if isinstance(exc, httpx.TimeoutException):
        return "request timed out"
    if isinstance(exc, httpx.HTTPStatusError):
        return f"HTTP {exc.response.status_code}"
    return str(exc) or type(exc).__name__
