"""Environment-driven settings for the platform adapters."""

from __future__ import annotations

import os


CLIENT_MODES = ("online", "offline")


def get_base_url() -> str:
    url = (os.getenv("XRMKIT_BASE_URL") or "").strip().rstrip("/")
    if not url:
        raise RuntimeError("XRMKIT_BASE_URL is required for the Web API client")
    return url


def get_access_token() -> str | None:
    token = (os.getenv("XRMKIT_ACCESS_TOKEN") or "").strip()
    return token or None


def get_api_version() -> str:
    return (os.getenv("XRMKIT_API_VERSION") or "9.2").strip() or "9.2"


def get_http_timeout() -> float:
    raw = (os.getenv("XRMKIT_HTTP_TIMEOUT") or "").strip()
    if not raw:
        return 30.0
    try:
        return float(raw)
    except ValueError as exc:
        raise RuntimeError(f"Invalid XRMKIT_HTTP_TIMEOUT: {raw}") from exc


def get_client_mode() -> str:
    mode = (os.getenv("XRMKIT_CLIENT_MODE") or "online").strip().lower() or "online"
    if mode not in CLIENT_MODES:
        raise RuntimeError(f"Invalid XRMKIT_CLIENT_MODE: {mode}")
    return mode


def get_offline_entities() -> list[str]:
    raw = os.getenv("XRMKIT_OFFLINE_ENTITIES") or ""
    return [item.strip() for item in raw.split(",") if item.strip()]
