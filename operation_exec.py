"""Typed invocation of server-side actions and functions."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List

from xrmkit.errors import InvalidParameterValue, wrap_errors
from xrmkit.request_params import EntityReference, RequestParameter, validate_parameter
from xrmkit.wire_types import TypeRegistry, default_registry

import runtime


OPERATION_ACTION = 0
OPERATION_FUNCTION = 1
BOUND_PARAMETER = "entity"

_logger = logging.getLogger("xrmkit.operations")


@dataclass
class OperationRequest:
    operation_name: str
    operation_type: int
    bound_parameter: str | None = None
    parameter_types: Dict[str, dict] = field(default_factory=dict)
    values: Dict[str, Any] = field(default_factory=dict)

    def get_metadata(self) -> dict:
        return {
            "boundParameter": self.bound_parameter,
            "operationType": self.operation_type,
            "operationName": self.operation_name,
            "parameterTypes": self.parameter_types,
        }

    def __getitem__(self, name: str) -> Any:
        return self.values[name]


def build_request(
    operation_name: str,
    parameters: Iterable[Any],
    operation_type: int,
    bound_entity: Any = None,
    registry: TypeRegistry | None = None,
) -> OperationRequest:
    if not isinstance(operation_name, str) or not operation_name:
        raise ValueError("operation name must be non-empty string")
    params: List[RequestParameter] = [RequestParameter.coerce(p) for p in parameters or []]
    if bound_entity is not None:
        params.append(RequestParameter(name=BOUND_PARAMETER, kind="EntityReference", value=bound_entity))

    request = OperationRequest(
        operation_name=operation_name,
        operation_type=operation_type,
        bound_parameter=BOUND_PARAMETER if bound_entity is not None else None,
    )
    for param in params:
        descriptor = validate_parameter(param, registry)
        if param.name in request.parameter_types:
            raise InvalidParameterValue(
                message=f"The property {param.name} is supplied more than once.",
                kind=param.kind,
                name=param.name,
            )
        request.parameter_types[param.name] = descriptor.metadata()
        request.values[param.name] = param.value
    return request


def _read_response(response: Any) -> Any:
    if not getattr(response, "is_success", False):
        return None
    try:
        return response.json()
    except ValueError:
        return response


class OperationInvoker:
    """Submits validated operation requests to a remote endpoint.

    Without an explicit endpoint the connected Web API of the current
    runtime is used at call time.
    """

    def __init__(self, endpoint: Any = None, registry: TypeRegistry | None = None) -> None:
        self._endpoint = endpoint
        self._registry = registry or default_registry

    def _resolve_endpoint(self) -> Any:
        if self._endpoint is not None:
            return self._endpoint
        return runtime.web_api().online

    async def _invoke(
        self,
        operation_name: str,
        parameters: Iterable[Any],
        bound_entity: Any,
        operation_type: int,
    ) -> Any:
        request = build_request(operation_name, parameters, operation_type, bound_entity, self._registry)
        _logger.info(
            "operation_submit name=%s type=%s bound=%s params=%s",
            operation_name,
            operation_type,
            request.bound_parameter,
            sorted(request.parameter_types.keys()),
        )
        response = await self._resolve_endpoint().execute(request)
        if not getattr(response, "is_success", False):
            _logger.warning(
                "operation_unsuccessful name=%s status=%s",
                operation_name,
                getattr(response, "status_code", None),
            )
        return _read_response(response)

    @wrap_errors
    async def invoke(
        self,
        operation_name: str,
        parameters: Iterable[Any],
        bound_entity: Any = None,
        operation_type: int = OPERATION_ACTION,
    ) -> Any:
        return await self._invoke(operation_name, parameters, bound_entity, operation_type)

    @wrap_errors
    async def execute_action(
        self,
        action_name: str,
        parameters: Iterable[Any],
        bound_entity: EntityReference | dict | None = None,
    ) -> Any:
        return await self._invoke(action_name, parameters, bound_entity, OPERATION_ACTION)

    @wrap_errors
    async def execute_function(
        self,
        function_name: str,
        parameters: Iterable[Any],
        bound_entity: EntityReference | dict | None = None,
    ) -> Any:
        return await self._invoke(function_name, parameters, bound_entity, OPERATION_FUNCTION)

    @wrap_errors
    async def get_environment_variable_value(self, schema_name: str) -> Any:
        body = await self._invoke(
            "RetrieveEnvironmentVariableValue",
            [RequestParameter(name="DefinitionSchemaName", kind="String", value=schema_name)],
            None,
            OPERATION_FUNCTION,
        )
        if isinstance(body, dict) and "Value" in body:
            return body["Value"]
        return body


async def execute_action(action_name: str, parameters: Iterable[Any], bound_entity: Any = None) -> Any:
    return await OperationInvoker().execute_action(action_name, parameters, bound_entity)


async def execute_function(function_name: str, parameters: Iterable[Any], bound_entity: Any = None) -> Any:
    return await OperationInvoker().execute_function(function_name, parameters, bound_entity)


async def get_environment_variable_value(schema_name: str) -> Any:
    return await OperationInvoker().get_environment_variable_value(schema_name)
