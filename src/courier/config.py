# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Configuration helpers for courier."""

import os
from dataclasses import dataclass

from .version import __version__

DEFAULT_USER_AGENT = f"courier/{__version__}"
DEFAULT_TRANSPORTS = ("httpx",)


def _float_env(name: str, default: float) -> float:
    try:
        value = os.getenv(name)
        return float(value) if value is not None else default
    except ValueError:
        return default


def _int_env(name: str, default: int) -> int:
    try:
        value = os.getenv(name)
        return int(value) if value is not None else default
    except ValueError:
        return default


def _bool_env(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _list_env(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    value = os.getenv(name)
    if value is None:
        return default
    items = tuple(part.strip().lower() for part in value.split(",") if part.strip())
    return items or default


@dataclass
class ClientSettings:
    """Client defaults that can be tuned from the environment."""

    timeout: float = 0.0
    user_agent: str = DEFAULT_USER_AGENT
    follow_redirects: bool = True
    verify_ssl: bool = True
    max_body_bytes: int = 16 * 1024 * 1024
    transports: tuple[str, ...] = DEFAULT_TRANSPORTS
    clarify_timeout_error: bool = False

    @classmethod
    def from_env(cls) -> "ClientSettings":
        """Create settings from environment variables (evaluated at call time)."""
        timeout = _float_env("COURIER_HTTP_TIMEOUT", cls.timeout)
        if timeout < 0:
            timeout = cls.timeout
        max_body_bytes = _int_env("COURIER_HTTP_MAX_BODY_BYTES", cls.max_body_bytes)
        if max_body_bytes <= 0:
            max_body_bytes = cls.max_body_bytes
        return cls(
            timeout=timeout,
            user_agent=os.getenv("COURIER_USER_AGENT", cls.user_agent),
            follow_redirects=_bool_env("COURIER_HTTP_REDIRECTS", cls.follow_redirects),
            verify_ssl=_bool_env("COURIER_HTTP_VERIFY_SSL", cls.verify_ssl),
            max_body_bytes=max_body_bytes,
            transports=_list_env("COURIER_TRANSPORT", DEFAULT_TRANSPORTS),
            clarify_timeout_error=_bool_env("COURIER_CLARIFY_TIMEOUT", cls.clarify_timeout_error),
        )


def load_client_settings() -> ClientSettings:
    """Load client settings from environment with sensible defaults."""
    return ClientSettings.from_env()


__all__ = ["DEFAULT_TRANSPORTS", "DEFAULT_USER_AGENT", "ClientSettings", "load_client_settings"]
