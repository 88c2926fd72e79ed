"""Process-wide handles to the hosting form and the platform Web API."""

from __future__ import annotations

import logging
from typing import Any

from xrmkit.errors import FormContextMissing


_FORM_CONTEXT: Any = None
_EXECUTION_CONTEXT: Any = None
_WEB_API: Any = None
_logger = logging.getLogger("xrmkit.runtime")


def set_form_context(context: Any) -> None:
    """Accept either an execution context or a form context."""
    global _FORM_CONTEXT, _EXECUTION_CONTEXT
    if hasattr(context, "get_form_context"):
        _EXECUTION_CONTEXT = context
        _FORM_CONTEXT = context.get_form_context()
    elif hasattr(context, "get_attribute"):
        _FORM_CONTEXT = context
    else:
        raise FormContextMissing(message="The executionContext or formContext was not passed to the function.")
    _logger.debug("form_context_set type=%s", type(_FORM_CONTEXT).__name__)


def form_context() -> Any:
    if _FORM_CONTEXT is None:
        raise FormContextMissing(message="No form context has been set.")
    return _FORM_CONTEXT


def execution_context() -> Any:
    return _EXECUTION_CONTEXT


def set_web_api(web_api: Any) -> None:
    global _WEB_API
    _WEB_API = web_api


def web_api() -> Any:
    if _WEB_API is None:
        raise RuntimeError("Web API is not configured; call runtime.set_web_api first")
    return _WEB_API


def is_offline() -> bool:
    return web_api().client.is_offline() is True


def reset() -> None:
    global _FORM_CONTEXT, _EXECUTION_CONTEXT, _WEB_API
    _FORM_CONTEXT = None
    _EXECUTION_CONTEXT = None
    _WEB_API = None
