"""Shared helpers for VOC endpoint modules.

It is internal to vocbridge and may change at any time.
"""

from __future__ import annotations

from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from vocbridge._transport import Transport
from vocbridge.exceptions import VocApiError, VocTransportError

_ModelT = TypeVar("_ModelT", bound=BaseModel)


def raise_for_error_label(endpoint: str, body: Any) -> None:
    """Raise :class:`VocApiError` when the body carries an ``errorLabel``.

    The customer API reports some application errors with HTTP 200 and an
    ``errorLabel``/``errorDescription`` pair instead of a status code.
    """
    if not isinstance(body, dict):
        return
    label = body.get("errorLabel")
    if label:
        description = body.get("errorDescription") or ""
        raise VocApiError(
            f"{endpoint} failed: errorLabel={label} description={description}",
            code=str(label),
            endpoint=endpoint,
        )


async def get_object(transport: Transport, endpoint: str) -> dict[str, Any]:
    """GET *endpoint* and require a JSON object in response."""
    body = await transport.request("GET", endpoint)
    raise_for_error_label(endpoint, body)
    if not isinstance(body, dict):
        raise VocTransportError(
            f"Unexpected payload from {endpoint}: expected object, got {type(body).__name__}",
            endpoint=endpoint,
        )
    return body


def parse_model(model: type[_ModelT], endpoint: str, body: Any) -> _ModelT:
    """Validate *body* as *model*, reporting schema drift as a transport error."""
    try:
        return model.model_validate(body)
    except ValidationError as exc:
        raise VocTransportError(
            f"Unexpected payload from {endpoint}: {exc.error_count()} validation error(s)",
            endpoint=endpoint,
        ) from exc
