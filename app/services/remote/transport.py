# app/services/remote/transport.py
"""Shared HTTP transport for the collaborator services.

Normalises httpx failures into the ServiceError taxonomy and retries
idempotent reads on transient failures. Mutating calls are sent once.
"""
import asyncio
from typing import Any, Dict, Optional

import httpx
from loguru import logger

from app.core.errors import (
    InputValidationError,
    InvalidStateError,
    NotFoundError,
    RemoteUnavailableError,
    ServiceError,
)

# Status remote -> error lokal
STATUS_ERRORS = {
    400: InputValidationError,
    404: NotFoundError,
    409: InvalidStateError,
    422: InputValidationError,
}
RETRYABLE_STATUS = {408, 429, 500, 502, 503, 504}
# Kredensial antar-service ditolak; tidak di-retry
AUTH_STATUS = {401, 403}


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        detail = body.get("detail") or body.get("message")
        if detail:
            return str(detail)
    return response.text or response.reason_phrase


class RemoteServiceClient:
    """JSON-over-HTTP client for one collaborator service."""

    def __init__(
        self,
        name: str,
        client: httpx.AsyncClient,
        max_attempts: int = 3,
        backoff_seconds: float = 0.2,
    ):
        self.name = name
        self.client = client
        self.max_attempts = max(1, max_attempts)
        self.backoff_seconds = backoff_seconds

    def error_for(self, response: httpx.Response) -> ServiceError:
        detail = _error_detail(response)
        if response.status_code in STATUS_ERRORS:
            return STATUS_ERRORS[response.status_code](detail)
        if response.status_code in AUTH_STATUS:
            return RemoteUnavailableError(f"{self.name} rejected our credentials ({response.status_code}): {detail}")
        if response.status_code >= 500 or response.status_code in RETRYABLE_STATUS:
            return RemoteUnavailableError(f"{self.name} responded {response.status_code}: {detail}")
        return ServiceError(f"{self.name} responded {response.status_code}: {detail}")

    async def call(
        self,
        method: str,
        path: str,
        *,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        envelope: Optional[str] = None,
    ) -> Any:
        """Send one request and return the decoded body (or ``body[envelope]``)."""
        method = method.upper()
        attempts = self.max_attempts if method == "GET" else 1

        for attempt in range(1, attempts + 1):
            retryable = True
            try:
                response = await self.client.request(method, path, json=json, params=params)
            except httpx.TimeoutException as exc:
                error: ServiceError = RemoteUnavailableError(f"{self.name} timed out on {method} {path}: {exc}")
            except httpx.TransportError as exc:
                error = RemoteUnavailableError(f"{self.name} unreachable on {method} {path}: {exc}")
            else:
                if response.is_success:
                    return self._decode(response, envelope)
                error = self.error_for(response)
                retryable = response.status_code >= 500 or response.status_code in RETRYABLE_STATUS

            if not retryable or attempt >= attempts:
                logger.warning(f"{self.name} {method} {path} failed: {error.detail}")
                raise error

            delay = self.backoff_seconds * (2 ** (attempt - 1))
            logger.info(f"{self.name} {method} {path} attempt {attempt}/{attempts} failed ({error.detail}); retrying in {delay:.2f}s")
            await asyncio.sleep(delay)

        # loop always returns or raises
        raise RemoteUnavailableError(f"{self.name} {method} {path} failed.")

    def _decode(self, response: httpx.Response, envelope: Optional[str]) -> Any:
        if not response.content:
            return None
        try:
            body = response.json()
        except ValueError as exc:
            raise RemoteUnavailableError(f"{self.name} returned a non-JSON body.") from exc
        if envelope is None:
            return body
        if not isinstance(body, dict) or envelope not in body:
            raise RemoteUnavailableError(f"{self.name} response is missing '{envelope}'.")
        return body[envelope]
