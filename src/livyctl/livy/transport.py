"""Single HTTP exchange primitive shared by the Livy and WebHDFS clients."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterable, Mapping
from typing import Any

import httpx

from livyctl.auth.resolver import AuthResolver
from livyctl.shared.cancellation import CancelToken
from livyctl.shared.exceptions import ApiError, TransportError

logger = logging.getLogger(__name__)

# Livy rejects state-changing requests without this header when CSRF protection is on.
_CSRF_HEADER = "X-Requested-By"


class HttpTransport:
    """Perform one HTTP exchange with auth, optional body and cancellation.

    Holds a persistent ``httpx.AsyncClient`` that never follows redirects, so
    callers see WebHDFS ``307`` responses as-is.
    """

    def __init__(
        self,
        auth: AuthResolver,
        *,
        timeout: float = 30.0,
        user_agent: str = "livyctl",
    ) -> None:
        self._auth = auth
        self._timeout = timeout
        self._user_agent = user_agent
        self._client: httpx.AsyncClient | None = None

    async def start(self) -> None:
        """Initialize the persistent HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                follow_redirects=False,
                headers={"User-Agent": self._user_agent},
            )

    async def close(self) -> None:
        """Close the persistent HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> HttpTransport:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def send(
        self,
        method: str,
        url: str,
        *,
        params: Mapping[str, Any] | None = None,
        json_body: Any = None,
        content: bytes | AsyncIterable[bytes] | None = None,
        headers: Mapping[str, str] | None = None,
        token: CancelToken | None = None,
    ) -> httpx.Response:
        """Send one request and return the raw response, whatever its status.

        Raises:
            TransportError: On connection or I/O failure.
            NegotiationError: If the auth header cannot be produced.
            OperationAborted: If ``token`` fires before the response arrives.
        """
        request_headers = {_CSRF_HEADER: self._user_agent}
        request_headers.update(headers or {})

        auth_header = await self._auth.header(url)
        if auth_header is not None:
            request_headers["Authorization"] = auth_header

        if self._client is None:
            await self.start()
        client = self._client
        if client is None:
            raise TransportError("HTTP client is not initialized")

        call = client.request(
            method,
            url,
            params=params,
            json=json_body,
            content=content,
            headers=request_headers,
        )
        try:
            if token is None:
                resp = await call
            else:
                resp = await token.guard(call)
        except httpx.HTTPError as exc:
            raise TransportError(f"{method} {url} failed: {exc!r}") from exc

        logger.debug("%s %s -> %d", method, url, resp.status_code)
        return resp

    async def request_json(
        self,
        method: str,
        url: str,
        *,
        params: Mapping[str, Any] | None = None,
        body: Any = None,
        token: CancelToken | None = None,
    ) -> Any:
        """Send a JSON request and decode the JSON response.

        Returns:
            The decoded body, or None for an empty (e.g. ``204``) response.

        Raises:
            ApiError: On a non-2xx status or an undecodable body.
            TransportError: On connection or I/O failure.
        """
        resp = await self.send(
            method,
            url,
            params=params,
            json_body=body,
            headers={"Accept": "application/json", "Content-Type": "application/json"},
            token=token,
        )
        raw = resp.text
        if not resp.is_success:
            raise ApiError(resp.status_code, raw)
        if not raw.strip():
            return None
        try:
            return resp.json()
        except ValueError as exc:
            raise ApiError(resp.status_code, raw, f"Failed to parse response JSON: {raw[:200]}") from exc
