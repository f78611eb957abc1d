"""
HTTP transport for OpenAI-compatible chat-completion endpoints.

Posts the pre-encoded request body as-is (the context encoder already
produced the exact bytes the endpoint expects) and returns the reply text
undecoded.

Dependencies: ``httpx`` (async HTTP client).  No ``openai`` SDK needed.
"""

from __future__ import annotations

import logging

import httpx

from chatfn.errors import TransportError
from chatfn.llm.transport.base import Transport

logger = logging.getLogger(__name__)

DEFAULT_URL = "https://api.openai.com/v1/chat/completions"


class HttpTransport(Transport):
    """
    Parameters
    ----------
    url:
        Full completion URL, e.g.
        ``"https://api.openai.com/v1/chat/completions"``.
    api_key:
        Bearer token.  Pass ``""`` for unauthenticated local endpoints.
    timeout:
        HTTP request timeout in seconds.
    transport:
        Optional ``httpx`` transport, mainly for tests
        (``httpx.MockTransport``).
    """

    def __init__(
        self,
        url: str = DEFAULT_URL,
        api_key: str = "",
        timeout: float = 120.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._url = url
        self._api_key = api_key
        self._timeout = timeout
        self._transport = transport

    @property
    def name(self) -> str:
        return "http"

    @property
    def url(self) -> str:
        return self._url

    def _build_headers(self) -> dict[str, str]:
        headers: dict[str, str] = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    async def send(self, body: str) -> str:
        logger.info(
            "REQUEST: url=%s bytes=%d api_key=%s...",
            self._url,
            len(body),
            self._api_key[:12] if self._api_key else "(none)",
        )
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                resp = await client.post(
                    self._url,
                    content=body.encode("utf-8"),
                    headers=self._build_headers(),
                )
        except httpx.HTTPError as exc:
            raise TransportError(
                f"Failed to receive the response from {self._url}: {exc}"
            ) from exc

        if resp.status_code >= 400:
            raise TransportError(
                f"HTTP {resp.status_code} from {self._url}: {resp.text[:200]}",
                status_code=resp.status_code,
            )
        return resp.text
