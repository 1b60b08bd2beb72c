"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

HTTP and JSON-RPC transport shared by channel adapters and the network client.
"""

from __future__ import annotations

import asyncio
import json
import urllib.error
import urllib.request
import uuid
from collections.abc import Callable, Mapping
from typing import Any

from .errors import ChannelTransportError

USER_AGENT = "txrelay/0.1"

PostFn = Callable[[str, bytes, Mapping[str, str], float], bytes]


class JsonRpcTransport:
    """
    Minimal JSON over HTTP client.

    Blocking ``urllib`` calls run on a worker thread so that concurrent channel
    attempts never block the event loop. ``post`` can be replaced for tests.
    """

    def __init__(self, *, post: PostFn | None = None, label: str = "rpc") -> None:
        self._post = post or self.http_post
        self._label = label

    async def post_json(
        self,
        url: str,
        body: Mapping[str, Any],
        *,
        headers: Mapping[str, str] | None = None,
        timeout_s: float = 10.0,
    ) -> Any:
        payload = json.dumps(body).encode("utf-8")
        merged = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": USER_AGENT,
            **dict(headers or {}),
        }
        response_bytes = await asyncio.to_thread(self._post, url, payload, merged, timeout_s)
        try:
            return json.loads(response_bytes.decode("utf-8"))
        except Exception as e:  # noqa: BLE001
            raise ChannelTransportError(
                f"Invalid JSON response from {self._label} endpoint", channel=self._label
            ) from e

    async def call(
        self,
        url: str,
        *,
        method: str,
        params: list[Any] | None = None,
        headers: Mapping[str, str] | None = None,
        timeout_s: float = 10.0,
    ) -> Any:
        """Perform one JSON-RPC 2.0 call and return its ``result`` member."""
        request_body: dict[str, Any] = {
            "jsonrpc": "2.0",
            "id": uuid.uuid4().hex,
            "method": method,
        }
        if params is not None:
            request_body["params"] = params
        decoded = await self.post_json(url, request_body, headers=headers, timeout_s=timeout_s)

        if not isinstance(decoded, dict):
            raise ChannelTransportError(
                f"Invalid JSON-RPC envelope from {self._label} endpoint", channel=self._label
            )

        err = decoded.get("error")
        if isinstance(err, dict):
            message = err.get("message") if isinstance(err.get("message"), str) else ""
            raise ChannelTransportError(
                f"{self._label} method '{method}' failed: {message or err}",
                channel=self._label,
            )

        if "result" not in decoded:
            raise ChannelTransportError(
                f"Missing JSON-RPC result from {self._label} endpoint", channel=self._label
            )
        return decoded["result"]

    def http_post(
        self, url: str, payload: bytes, headers: Mapping[str, str], timeout_s: float
    ) -> bytes:
        req = urllib.request.Request(
            url,
            data=payload,
            method="POST",
            headers=dict(headers),
        )
        try:
            with urllib.request.urlopen(req, timeout=timeout_s) as resp:  # noqa: S310
                return resp.read()
        except urllib.error.HTTPError as e:
            body = ""
            try:
                body = e.read().decode("utf-8", errors="replace")
            except Exception:  # noqa: BLE001
                body = ""
            raise ChannelTransportError(
                f"HTTP {e.code} from {self._label} endpoint: {body or e.reason}",
                channel=self._label,
            ) from e
        except urllib.error.URLError as e:
            raise ChannelTransportError(
                f"Network error calling {self._label} endpoint: {e.reason}",
                channel=self._label,
            ) from e
        except TimeoutError as e:
            raise ChannelTransportError(
                f"Timed out calling {self._label} endpoint after {timeout_s:.2f}s",
                channel=self._label,
            ) from e
