"""One cached handle per form field, bound lazily to the live attribute."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any, Callable, Dict, List, Type, TypeVar

from xrmkit.errors import AttributeNotFound, ControlNotFound, wrap_errors
from xrmkit.guid import normalize_guid

import runtime
from offline_capability import OfflineCapability, select_record_store


Handler = Callable[..., Any]
H = TypeVar("H", bound="FieldHandle")

_logger = logging.getLogger("xrmkit.fields")


class LazyBinding:
    """Resolve a named platform object once, fail fast if absent, reuse after."""

    def __init__(
        self,
        name: str,
        lookup: Callable[[str], Any],
        missing: Callable[[str], Exception],
    ) -> None:
        self._name = name
        self._lookup = lookup
        self._missing = missing
        self._value: Any = None

    def get(self) -> Any:
        if self._value is None:
            value = self._lookup(self._name)
            if value is None:
                raise self._missing(self._name)
            self._value = value
            _logger.debug("field_bound name=%s", self._name)
        return self._value


def _attribute_missing(name: str) -> Exception:
    return AttributeNotFound(message=f"The attribute '{name}' was not found on the form.", name=name)


def _control_missing(name: str) -> Exception:
    return ControlNotFound(message=f"Control '{name}' does not exist", name=name)


def _as_handlers(handlers: Handler | Iterable[Handler]) -> List[Handler]:
    if callable(handlers):
        items = [handlers]
    elif isinstance(handlers, Iterable) and not isinstance(handlers, str):
        items = list(handlers)
    else:
        items = [handlers]
    for handler in items:
        if not callable(handler):
            raise TypeError(f"'{handler}' is not a function")
    return items


def _register_on_change(attribute: Any, handler: Handler) -> None:
    attribute.remove_on_change(handler)
    attribute.add_on_change(handler)


class FieldHandle:
    def __init__(self, name: str) -> None:
        if not isinstance(name, str) or not name:
            raise ValueError("field name must be non-empty string")
        self._name = name
        self._attribute = LazyBinding(name, lambda n: runtime.form_context().get_attribute(n), _attribute_missing)
        self._control = LazyBinding(name, lambda n: runtime.form_context().get_control(n), _control_missing)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._name!r})"

    @property
    def name(self) -> str:
        return self._name

    @property
    def attribute(self) -> Any:
        return self._attribute.get()

    @property
    def control(self) -> Any:
        return self._control.get()

    @property
    def controls(self) -> list:
        return list(self.attribute.controls)

    @property
    def value(self) -> Any:
        return self.attribute.get_value()

    @value.setter
    def value(self, value: Any) -> None:
        self.attribute.set_value(value)

    def get_value(self) -> Any:
        return self.value

    def set_value(self, value: Any) -> None:
        self.value = value

    def get_is_dirty(self) -> bool:
        return self.attribute.get_is_dirty()

    def get_required_level(self) -> str:
        return self.attribute.get_required_level()

    def remove_on_change(self, handler: Handler) -> None:
        self.attribute.remove_on_change(handler)

    @wrap_errors
    def add_on_change(self, handlers: Handler | Iterable[Handler]) -> "FieldHandle":
        for handler in _as_handlers(handlers):
            _register_on_change(self.attribute, handler)
        return self

    @wrap_errors
    def fire_on_change(self) -> "FieldHandle":
        self.attribute.fire_on_change()
        return self

    @wrap_errors
    def set_required_level(self, level: str) -> "FieldHandle":
        self.attribute.set_required_level(level)
        return self

    @wrap_errors
    def set_required(self, required: bool) -> "FieldHandle":
        self.attribute.set_required_level("required" if required else "none")
        return self

    @wrap_errors
    def set_is_valid(self, is_valid: bool, message: str | None = None) -> "FieldHandle":
        self.attribute.set_is_valid(is_valid, message)
        return self

    @wrap_errors
    def set_visible(self, visible: bool) -> "FieldHandle":
        for control in self.controls:
            control.set_visible(visible)
        return self

    @wrap_errors
    def set_disabled(self, disabled: bool) -> "FieldHandle":
        for control in self.controls:
            control.set_disabled(disabled)
        return self

    @wrap_errors
    def set_notification(self, message: str, unique_id: str) -> "FieldHandle":
        if not message:
            raise ValueError("no message was provided.")
        if not unique_id:
            raise ValueError("no uniqueId was provided.")
        for control in self.controls:
            control.set_notification(message, unique_id)
        return self

    @wrap_errors
    def add_notification(
        self,
        message: str,
        level: str,
        unique_id: str,
        actions: list | None = None,
    ) -> "FieldHandle":
        if not unique_id:
            raise ValueError("no uniqueId was provided.")
        if actions is not None and not isinstance(actions, list):
            raise TypeError("the action parameter is not an array of ControlNotificationAction")
        for control in self.controls:
            control.add_notification(
                {
                    "messages": [message],
                    "notificationLevel": level,
                    "uniqueId": unique_id,
                    "actions": actions,
                }
            )
        return self

    @wrap_errors
    def remove_notification(self, unique_id: str) -> "FieldHandle":
        for control in self.controls:
            control.clear_notification(unique_id)
        return self


class TextField(FieldHandle):
    def get_max_length(self) -> int:
        return self.attribute.get_max_length()


class NumberField(FieldHandle):
    def get_max(self) -> float:
        return self.attribute.get_max()

    def get_min(self) -> float:
        return self.attribute.get_min()

    def get_precision(self) -> int:
        return self.attribute.get_precision()

    def set_precision(self, precision: int) -> None:
        self.attribute.set_precision(precision)


class DateField(FieldHandle):
    pass


class BooleanField(FieldHandle):
    def get_initial_value(self) -> bool:
        return self.attribute.get_initial_value()


class OptionSetField(FieldHandle):
    """Option set with optional ``{label: value}`` names."""

    def __init__(self, name: str, options: Dict[str, int] | None = None) -> None:
        super().__init__(name)
        self.options = dict(options or {})

    def _option_value(self, value: Any) -> int:
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if value not in self.options:
            raise KeyError(f"Unknown option '{value}' for field '{self.name}'")
        return self.options[value]

    @FieldHandle.value.setter
    def value(self, value: Any) -> None:
        self.attribute.set_value(None if value is None else self._option_value(value))

    def get_text(self) -> Any:
        return self.attribute.get_text()

    def get_options(self) -> list:
        return self.attribute.get_options() or []

    def get_selected_option(self) -> Any:
        return self.attribute.get_selected_option()

    @wrap_errors
    def add_option(self, values: List[int], index: int | None = None) -> "OptionSetField":
        if not isinstance(values, list):
            raise TypeError(f"values is not an Array:\nvalues: '{values}'")
        for option in self.control.get_attribute().get_options() or []:
            if option.get("value") in values:
                self.control.add_option(option, index)
        return self

    @wrap_errors
    def remove_option(self, values: List[int]) -> "OptionSetField":
        if not isinstance(values, list):
            raise TypeError(f"values is not an Array:\nvalues: '{values}'")
        for option in self.control.get_attribute().get_options() or []:
            if option.get("value") in values:
                self.control.remove_option(option.get("value"))
        return self

    @wrap_errors
    def clear_options(self) -> "OptionSetField":
        self.control.clear_options()
        return self


class MultiSelectOptionSetField(OptionSetField):
    @FieldHandle.value.setter
    def value(self, value: Any) -> None:
        if not isinstance(value, (list, tuple)):
            raise TypeError(f"Field Value '{value}' is not an Array")
        self.attribute.set_value([self._option_value(v) for v in value])


class LookupField(FieldHandle):
    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.offline_capability = OfflineCapability()

    def _first(self) -> dict | None:
        value = self.value
        if value:
            return value[0]
        return None

    @property
    def id(self) -> str | None:
        first = self._first()
        return normalize_guid(first["id"]) if first else None

    @property
    def entity_type(self) -> str | None:
        first = self._first()
        return first.get("entityType") if first else None

    @property
    def formatted_value(self) -> str | None:
        first = self._first()
        return first.get("name") if first else None

    def get_is_party_list(self) -> bool:
        return self.attribute.get_is_party_list()

    @wrap_errors
    def set_lookup_value(self, record_id: str, entity_type: str, name: str | None = None, append: bool = False) -> "LookupField":
        if not record_id:
            raise ValueError("no id parameter was provided.")
        if not entity_type:
            raise ValueError("no entityType parameter was provided.")
        lookup_value = {"id": normalize_guid(record_id), "entityType": entity_type, "name": name}
        current = self.value
        self.value = list(current) + [lookup_value] if append and current else [lookup_value]
        return self

    def set_lookup_from_retrieve(self, select_name: str, record: dict | None) -> None:
        """Copy a lookup out of a retrieved record (``_x_value`` or ``x``)."""
        if not select_name.endswith("_value"):
            select_name = f"_{select_name}_value"
        if not record or not record.get(select_name):
            self.value = None
            return
        self.value = [
            {
                "id": record[select_name],
                "entityType": record.get(f"{select_name}@Microsoft.Dynamics.CRM.lookuplogicalname"),
                "name": record.get(f"{select_name}@OData.Community.Display.V1.FormattedValue"),
            }
        ]

    @wrap_errors
    async def retrieve(self, options: str = "") -> dict | None:
        if not self.id or not self.entity_type:
            return None
        return await runtime.web_api().online.retrieve_record(self.entity_type, self.id, options)

    @wrap_errors
    async def update(self, data: dict) -> dict:
        record_id, entity_type = self.id, self.entity_type
        if not record_id or not entity_type or not data:
            raise ValueError("Missing required arguments for update method")
        store = await select_record_store(self.offline_capability, entity_type, runtime.web_api())
        _logger.info("lookup_update field=%s entity=%s id=%s", self.name, entity_type, record_id)
        return await store.update_record(entity_type, record_id, data)


class FieldCache:
    def __init__(self) -> None:
        self._fields: List[FieldHandle] = []

    def get(self, name: str, factory: Type[H] = FieldHandle, *args: Any, **kwargs: Any) -> H:  # type: ignore[assignment]
        for existing in self._fields:
            if existing.name == name:
                if not isinstance(existing, factory):
                    raise TypeError(
                        f"Field '{name}' is already bound as {type(existing).__name__}, not {factory.__name__}"
                    )
                return existing
        handle = factory(name, *args, **kwargs)
        self._fields.append(handle)
        return handle

    def all(self) -> list[FieldHandle]:
        return list(self._fields)

    def clear(self) -> None:
        self._fields.clear()


default_cache = FieldCache()


def get_field(name: str, factory: Type[H] = FieldHandle, *args: Any, **kwargs: Any) -> H:  # type: ignore[assignment]
    return default_cache.get(name, factory, *args, **kwargs)


@wrap_errors
def add_on_change_handlers(
    fields: Iterable[FieldHandle],
    handlers: Handler | Iterable[Handler],
    execute: bool = False,
) -> None:
    fields = list(fields)
    for handler in _as_handlers(handlers):
        for field in fields:
            _register_on_change(field.attribute, handler)
    if execute:
        for field in fields:
            field.attribute.fire_on_change()
