"""Shared request helpers for the auth and sync hosts."""

from __future__ import annotations

from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from .errors import AuthenticationError, NetworkError, ProtocolError

ModelT = TypeVar("ModelT", bound=BaseModel)


def bearer(token: str) -> dict[str, str]:
    """Build the Authorization header for a token."""
    return {"Authorization": f"Bearer {token}"}


async def send(
    method: str,
    url: str,
    *,
    timeout: float,
    token: str | None = None,
    **kwargs: Any,
) -> httpx.Response:
    """Send a single request and return the response.

    Pre-signed blob URLs are called without a token.

    Raises:
        NetworkError: On timeouts and transport failures.
    """
    headers = dict(kwargs.pop("headers", None) or {})
    if token is not None:
        headers.update(bearer(token))

    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            return await client.request(method, url, headers=headers, **kwargs)
    except httpx.TimeoutException as e:
        raise NetworkError(f"{method} {url} timed out after {timeout}s") from e
    except httpx.HTTPError as e:
        raise NetworkError(f"HTTP error during {method} {url}: {e}") from e


def check_auth(response: httpx.Response) -> None:
    """Raise if the sync host rejected the user token."""
    if response.status_code in (401, 403):
        raise AuthenticationError(
            f"Token rejected: {response.status_code} - {response.text}"
        )


def parse_model(response: httpx.Response, model: type[ModelT]) -> ModelT:
    """Validate a JSON response body against a model.

    Raises:
        ProtocolError: If the body is not JSON or does not match the model.
    """
    try:
        data = response.json()
    except ValueError as e:
        raise ProtocolError(f"Response is not valid JSON: {e}") from e

    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise ProtocolError(f"Unexpected response shape: {e}") from e
