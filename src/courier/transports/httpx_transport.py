# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""httpx-backed transport."""

from __future__ import annotations

import base64
import logging
from collections.abc import AsyncIterator, Callable, Mapping
from contextlib import asynccontextmanager
from typing import Any

import httpx

from ..config import ClientSettings, load_client_settings
from ..errors import ECONNABORTED, ETIMEDOUT, CourierError, ErrorKind, categorize_exception
from ..headers import HeaderBag
from ..models import Response
from ..url import build_full_path, build_url, parse_protocol
from .base import run_cancellable, settle

logger = logging.getLogger(__name__)

SUPPORTED_PROTOCOLS = frozenset({"http", "https"})
_BINARY_RESPONSE_TYPES = frozenset({"bytes", "arraybuffer", "blob"})
UPLOAD_CHUNK_SIZE = 64 * 1024


def _split_form(data: Mapping[Any, Any]) -> tuple[dict[str, Any], dict[str, Any]]:
    fields: dict[str, Any] = {}
    files: dict[str, Any] = {}
    for key, value in data.items():
        if value is None:
            continue
        if isinstance(value, (bytes, bytearray, tuple)) or callable(getattr(value, "read", None)):
            files[str(key)] = value
        else:
            fields[str(key)] = value
    return fields, files


def _field_parts(fields: Mapping[str, Any]) -> list[tuple[str, tuple[None, str]]]:
    parts: list[tuple[str, tuple[None, str]]] = []
    for name, value in fields.items():
        for item in value if isinstance(value, (list, tuple)) else [value]:
            parts.append((name, (None, str(item))))
    return parts


def _progress_event(loaded: int, total: int | None, chunk_size: int, *, upload: bool) -> dict[str, Any]:
    return {
        "loaded": loaded,
        "total": total,
        "progress": loaded / total if total else None,
        "bytes": chunk_size,
        "upload": upload,
        "download": not upload,
    }


async def _upload_chunks(content: bytes, on_progress: Callable[[dict[str, Any]], Any]) -> AsyncIterator[bytes]:
    total = len(content)
    loaded = 0
    for start in range(0, total, UPLOAD_CHUNK_SIZE):
        chunk = content[start : start + UPLOAD_CHUNK_SIZE]
        loaded += len(chunk)
        on_progress(_progress_event(loaded, total, len(chunk), upload=True))
        yield chunk


class HttpxTransport:
    """Asynchronous httpx transport.

    When no `client` is injected a short-lived ``httpx.AsyncClient`` is opened per call, so the
    transport can be shared freely across event loops.
    """

    name = "httpx"

    def __init__(self, settings: ClientSettings | None = None, client: httpx.AsyncClient | None = None):
        self._settings = settings
        self._client = client

    @property
    def settings(self) -> ClientSettings:
        return self._settings or load_client_settings()

    def __call__(self, config: dict[str, Any]) -> Any:
        return run_cancellable(config, self._send(config))

    @asynccontextmanager
    async def _client_scope(self, verify: bool) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        async with httpx.AsyncClient(verify=verify) as client:
            yield client

    def _build_body(self, config: dict[str, Any], headers: HeaderBag) -> dict[str, Any]:
        data = config.get("data")
        if data is None:
            headers.delete("Content-Type")
            return {}
        if isinstance(data, Mapping):
            multipart = "multipart/form-data" in str(headers.get_content_type() or "")
            fields, files = _split_form(data)
            # httpx writes the multipart boundary into the content type itself.
            headers.delete("Content-Type")
            if multipart and not files:
                # httpx only encodes multipart when at least one part goes through `files`.
                return {"files": _field_parts(fields)}
            return {"data": fields, "files": files} if files else {"data": fields}
        if callable(getattr(data, "read", None)):
            return {"content": data.read()}
        return {"content": data}

    def _timeout_error(self, config: dict[str, Any], request: Any, exc: Exception) -> CourierError:
        timeout = config.get("timeout")
        transitional = config.get("transitional") or {}
        message = config.get("timeout_error_message") or (
            f"timeout of {timeout}s exceeded" if timeout else "timeout exceeded"
        )
        error = CourierError(
            message,
            ErrorKind.TIMEOUT,
            code=ETIMEDOUT if transitional.get("clarify_timeout_error") else ECONNABORTED,
            config=config,
            request=request,
        )
        error.__cause__ = exc
        return error

    async def _send(self, config: dict[str, Any]) -> Response:
        settings = self.settings
        full_path = build_full_path(config.get("base_url"), config.get("url"))
        protocol = parse_protocol(full_path)
        if not protocol:
            raise CourierError(f"Invalid URL {full_path!r}: no protocol", ErrorKind.BAD_REQUEST, config=config)
        if protocol not in SUPPORTED_PROTOCOLS:
            raise CourierError(f"Unsupported protocol {protocol}:", ErrorKind.UNSUPPORTED_PROTOCOL, config=config)

        url = build_url(full_path, config.get("params"), config.get("params_serializer"))
        headers = HeaderBag.from_(config.get("headers")).copy().normalize()
        auth = config.get("auth")
        if auth:
            credentials = f"{auth.get('username') or ''}:{auth.get('password') or ''}".encode("utf-8")
            headers.set_authorization("Basic " + base64.b64encode(credentials).decode("ascii"))
        body = self._build_body(config, headers)

        timeout = config.get("timeout")
        if timeout is None:
            timeout = settings.timeout
        max_body_bytes = config.get("max_body_bytes") or settings.max_body_bytes
        if max_body_bytes <= 0:
            max_body_bytes = 16 * 1024 * 1024
        follow_redirects = config.get("follow_redirects")
        if follow_redirects is None:
            follow_redirects = settings.follow_redirects
        verify = config.get("verify_ssl")
        if verify is None:
            verify = settings.verify_ssl

        method = str(config.get("method") or "get").upper()
        request_timeout = httpx.Timeout(timeout) if timeout else httpx.Timeout(None)
        on_upload_progress = config.get("on_upload_progress")
        on_download_progress = config.get("on_download_progress")

        request: httpx.Request | None = None
        async with self._client_scope(bool(verify)) as client:
            try:
                request = client.build_request(
                    method,
                    url,
                    headers=list(headers.to_dict(as_strings=True).items()),
                    timeout=request_timeout,
                    **body,
                )
                if on_upload_progress is not None:
                    payload = await request.aread()
                    if payload:
                        # Headers (Content-Length, multipart boundary) carry over from the encoded request.
                        request = client.build_request(
                            method,
                            url,
                            headers=request.headers,
                            timeout=request_timeout,
                            content=_upload_chunks(payload, on_upload_progress),
                        )
                logger.debug("httpx transport sending %s %s", request.method, request.url)
                resp = await client.send(request, stream=True, follow_redirects=bool(follow_redirects))
                try:
                    content_length = resp.headers.get("content-length")
                    total = int(content_length) if content_length and content_length.isdigit() else None
                    content = bytearray()
                    truncated = False
                    async for chunk in resp.aiter_bytes():
                        if not chunk:
                            continue
                        remaining = max_body_bytes - len(content)
                        if remaining <= 0:
                            truncated = True
                            break
                        piece = chunk[:remaining]
                        content.extend(piece)
                        if on_download_progress is not None:
                            on_download_progress(_progress_event(len(content), total, len(piece), upload=False))
                        if len(chunk) > remaining:
                            truncated = True
                            break
                finally:
                    await resp.aclose()
            except httpx.TimeoutException as exc:
                raise self._timeout_error(config, request, exc) from exc
            except httpx.HTTPError as exc:
                kind = categorize_exception(exc)
                message = "Network Error" if kind is ErrorKind.NETWORK else str(exc)
                raise CourierError(message, kind, config=config, request=request) from exc

        if truncated:
            logger.debug("response body truncated at %d bytes for %s", max_body_bytes, url)

        response_type = config.get("response_type")
        if response_type in _BINARY_RESPONSE_TYPES:
            data: Any = bytes(content)
        else:
            encoding = resp.encoding or "utf-8"
            try:
                data = bytes(content).decode(encoding, errors="replace")
            except LookupError:
                data = bytes(content).decode("utf-8", errors="replace")

        raw_headers = "\n".join(f"{name}: {value}" for name, value in resp.headers.multi_items())
        return settle(
            Response(
                data=data,
                status=resp.status_code,
                status_text=resp.reason_phrase,
                headers=HeaderBag(raw_headers or None),
                config=config,
                request=request,
            )
        )


__all__ = ["SUPPORTED_PROTOCOLS", "HttpxTransport"]
