"""Error taxonomy shared by the operation and field layers."""

from __future__ import annotations

import functools
import inspect
from dataclasses import dataclass
from typing import Any, Callable, TypeVar


F = TypeVar("F", bound=Callable[..., Any])


@dataclass
class XrmKitError(Exception):
    message: str

    code = "XRMKIT_ERROR"

    def __str__(self) -> str:  # pragma: no cover - simple formatting
        return self.message


@dataclass
class UnsupportedParameterKind(XrmKitError):
    kind: Any = None
    name: str | None = None

    code = "PARAM_KIND_UNSUPPORTED"


@dataclass
class InvalidParameterValue(XrmKitError):
    kind: str | None = None
    name: str | None = None

    code = "PARAM_VALUE_INVALID"


@dataclass
class AttributeNotFound(XrmKitError):
    name: str | None = None

    code = "ATTRIBUTE_NOT_FOUND"


@dataclass
class ControlNotFound(XrmKitError):
    name: str | None = None

    code = "CONTROL_NOT_FOUND"


@dataclass
class FormContextMissing(XrmKitError):
    code = "FORM_CONTEXT_MISSING"


@dataclass
class MissingEntityType(XrmKitError):
    code = "ENTITY_TYPE_MISSING"


@dataclass
class CapabilityUndetermined(XrmKitError):
    entity_type: str | None = None

    code = "OFFLINE_CAPABILITY_UNDETERMINED"


@dataclass
class UnavailableOffline(XrmKitError):
    entity_type: str | None = None

    code = "OFFLINE_UNAVAILABLE"


@dataclass
class OperationFailed(XrmKitError):
    operation: str = ""

    @property
    def code(self) -> str:  # type: ignore[override]
        cause = self.__cause__
        if isinstance(cause, XrmKitError):
            return cause.code
        return "OPERATION_FAILED"

    def __str__(self) -> str:  # pragma: no cover - simple formatting
        return f"{self.operation}:\n{self.message}"


def _fail(operation: str, exc: Exception) -> OperationFailed:
    return OperationFailed(message=str(exc), operation=operation)


def wrap_errors(func: F) -> F:
    """Re-raise any failure inside ``func`` as ``OperationFailed``.

    The operation name is the function's qualified name and the underlying
    exception stays reachable through ``__cause__``.
    """
    operation = f"xrmkit.{func.__qualname__}"

    if inspect.iscoroutinefunction(func):

        @functools.wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return await func(*args, **kwargs)
            except Exception as exc:
                raise _fail(operation, exc) from exc

        return async_wrapper  # type: ignore[return-value]

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except Exception as exc:
            raise _fail(operation, exc) from exc

    return wrapper  # type: ignore[return-value]
