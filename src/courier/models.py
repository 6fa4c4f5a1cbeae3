# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Request config and response data models."""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, TypedDict, Union

from .headers import HeaderBag

Transform = Callable[[Any, HeaderBag, Union[int, None]], Any]


class TransitionalOptions(TypedDict, total=False):
    silent_json_parsing: bool
    forced_json_parsing: bool
    clarify_timeout_error: bool


class BasicAuth(TypedDict):
    username: str
    password: str


class RequestConfig(TypedDict, total=False):
    """Options recognized by the client; every key is optional."""

    url: str
    method: str
    base_url: str
    headers: Any
    data: Any
    params: Mapping[str, Any]
    params_serializer: Any
    timeout: float
    timeout_error_message: str
    response_type: str
    cancel_token: Any
    signal: Any
    transport: Any
    transform_request: Sequence[Transform]
    transform_response: Sequence[Transform]
    validate_status: Callable[[int], bool] | None
    auth: BasicAuth
    transitional: TransitionalOptions
    follow_redirects: bool
    max_body_bytes: int
    verify_ssl: bool
    on_upload_progress: Callable[[dict[str, Any]], Any]
    on_download_progress: Callable[[dict[str, Any]], Any]


@dataclass
class Response:
    """Response handed to response interceptors and, finally, to the caller."""

    data: Any = None
    status: int = 0
    status_text: str = ""
    headers: HeaderBag = field(default_factory=HeaderBag)
    config: dict[str, Any] = field(default_factory=dict)
    request: Any = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], config: dict[str, Any] | None = None) -> Response:
        """Helper to normalize dictionary-like responses (e.g. canned stub output)."""
        body: Any = data.get("data")
        if body is None:
            body = data.get("body")
        return cls(
            data=body,
            status=int(data.get("status") or data.get("status_code") or 200),
            status_text=str(data.get("status_text") or data.get("reason") or ""),
            headers=HeaderBag(data.get("headers")),
            config=config if config is not None else dict(data.get("config") or {}),
            request=data.get("request"),
        )


__all__ = ["BasicAuth", "RequestConfig", "Response", "TransitionalOptions", "Transform"]
