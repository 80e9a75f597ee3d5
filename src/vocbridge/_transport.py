"""HTTP transport for the Volvo On Call customer API."""

from __future__ import annotations

import json
import logging
import uuid
from typing import Any, Protocol

import aiohttp

from vocbridge._constants import (
    API_ENDPOINT,
    CONTENT_TYPE_JSON,
    USER_AGENT,
    X_CLIENT_VERSION,
    X_OS_VERSION,
)
from vocbridge._redact import redact_for_log
from vocbridge.config import CloudConfig
from vocbridge.exceptions import VocAuthenticationError, VocTransportError

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by endpoint modules.

    Having a protocol here makes it easy to pass test doubles while
    keeping the production implementation (`VocTransport`) concrete.
    """

    async def request(
        self,
        method: str,
        path: str,
        *,
        json_body: Any = None,
        content_type: str = CONTENT_TYPE_JSON,
    ) -> Any:
        ...


class VocTransport:
    """Basic-auth JSON transport with the headers the VOC API expects."""

    def __init__(self, config: CloudConfig, http_session: aiohttp.ClientSession) -> None:
        self._config = config
        self._http = http_session
        self._auth = aiohttp.BasicAuth(config.username, config.password)
        self._timeout = aiohttp.ClientTimeout(total=config.request_timeout)

    def _headers(self, content_type: str) -> dict[str, str]:
        return {
            "X-Client-Version": X_CLIENT_VERSION,
            "Accept-Encoding": "br, gzip, deflate",
            "Accept-Language": "en-us",
            "Content-Type": content_type,
            "X-Request-Id": str(uuid.uuid1()).upper(),
            "User-Agent": USER_AGENT,
            "X-Os-Type": "iPhone OS",
            "X-Device-Id": self._config.device_id,
            "X-Os-Version": X_OS_VERSION,
            "X-Originator-Type": "app",
            "Accept": "*/*",
        }

    async def request(
        self,
        method: str,
        path: str,
        *,
        json_body: Any = None,
        content_type: str = CONTENT_TYPE_JSON,
    ) -> Any:
        """Send one request and return the decoded JSON body.

        An empty body decodes to ``{}``.
        """
        url = f"{self._config.base_url}{API_ENDPOINT}{path}"
        data = json.dumps(json_body) if json_body is not None else None

        _logger.debug("%s %s body=%s", method, url, redact_for_log(json_body))

        try:
            async with self._http.request(
                method,
                url,
                data=data,
                headers=self._headers(content_type),
                auth=self._auth,
                timeout=self._timeout,
            ) as resp:
                text = await resp.text()
                if resp.status == 401:
                    raise VocAuthenticationError(
                        f"HTTP 401 from {path}: credentials rejected",
                        code="401",
                        endpoint=path,
                    )
                if resp.status >= 300:
                    raise VocTransportError(
                        f"HTTP {resp.status} from {path}: {text[:200]}",
                        status_code=resp.status,
                        endpoint=path,
                    )
        except (aiohttp.ClientError, TimeoutError) as exc:
            raise VocTransportError(
                f"Request to {path} failed: {exc!r}",
                endpoint=path,
            ) from exc

        if not text.strip():
            return {}

        try:
            body = json.loads(text)
        except json.JSONDecodeError as exc:
            raise VocTransportError(
                f"Invalid JSON from {path}: {text[:200]}",
                endpoint=path,
            ) from exc

        _logger.debug("%s %s -> %s", method, path, redact_for_log(body))
        return body
