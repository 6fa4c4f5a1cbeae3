# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Library default request config."""

from __future__ import annotations

from typing import Any

from .config import ClientSettings, load_client_settings
from .transforms import default_transform_request, default_transform_response

DEFAULT_ACCEPT = "application/json, text/plain, */*"


def default_validate_status(status: int) -> bool:
    return 200 <= status < 300


def build_defaults(settings: ClientSettings | None = None) -> dict[str, Any]:
    """Build the default config for a new client from environment-backed settings."""
    settings = settings or load_client_settings()
    return {
        "transport": list(settings.transports),
        "transform_request": [default_transform_request],
        "transform_response": [default_transform_response],
        "timeout": settings.timeout,
        "max_body_bytes": settings.max_body_bytes,
        "follow_redirects": settings.follow_redirects,
        "verify_ssl": settings.verify_ssl,
        "validate_status": default_validate_status,
        "transitional": {
            "silent_json_parsing": True,
            "forced_json_parsing": True,
            "clarify_timeout_error": settings.clarify_timeout_error,
        },
        "headers": {
            "common": {
                "Accept": DEFAULT_ACCEPT,
                "User-Agent": settings.user_agent,
                "Content-Type": None,
            },
            "delete": {},
            "get": {},
            "head": {},
            "options": {},
            "post": {},
            "put": {},
            "patch": {},
        },
    }


__all__ = ["DEFAULT_ACCEPT", "build_defaults", "default_validate_status"]
