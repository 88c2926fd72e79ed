"""xrmkit kernel: wire types, parameter validation and errors."""

from .errors import (
    AttributeNotFound,
    CapabilityUndetermined,
    ControlNotFound,
    FormContextMissing,
    InvalidParameterValue,
    MissingEntityType,
    OperationFailed,
    UnavailableOffline,
    UnsupportedParameterKind,
    XrmKitError,
    wrap_errors,
)
from .guid import normalize_guid
from .request_params import EntityReference, RequestParameter, validate_parameter
from .wire_json import WireJsonTypeError, to_wire, wire_dumps
from .wire_types import NAMESPACE, TypeRegistry, WireDescriptor, default_registry

__all__ = [
    "AttributeNotFound",
    "CapabilityUndetermined",
    "ControlNotFound",
    "EntityReference",
    "FormContextMissing",
    "InvalidParameterValue",
    "MissingEntityType",
    "NAMESPACE",
    "OperationFailed",
    "RequestParameter",
    "TypeRegistry",
    "UnavailableOffline",
    "UnsupportedParameterKind",
    "WireDescriptor",
    "WireJsonTypeError",
    "XrmKitError",
    "default_registry",
    "normalize_guid",
    "to_wire",
    "validate_parameter",
    "wire_dumps",
    "wrap_errors",
]
