"""Platform Web API adapters: connected HTTP client and disconnected store."""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from app import config
from xrmkit.guid import normalize_guid
from xrmkit.request_params import reference_parts
from xrmkit.wire_json import WireJsonTypeError, to_wire


_logger = logging.getLogger("xrmkit.webapi")

_ODATA_HEADERS = {
    "Accept": "application/json",
    "OData-MaxVersion": "4.0",
    "OData-Version": "4.0",
    "Prefer": 'odata.include-annotations="*"',
}


class WebApiError(RuntimeError):
    pass


def entity_set_name(entity_type: str, overrides: Dict[str, str] | None = None) -> str:
    if overrides and entity_type in overrides:
        return overrides[entity_type]
    if entity_type.endswith("y") and entity_type[-2:-1] not in ("a", "e", "i", "o", "u"):
        return f"{entity_type[:-1]}ies"
    if entity_type.endswith(("s", "x", "ch", "sh")):
        return f"{entity_type}es"
    return f"{entity_type}s"


def _query(options: str | None) -> str:
    if not options:
        return ""
    return options if options.startswith("?") else f"?{options}"


def _wire_body(values: dict) -> dict:
    return {key: to_wire(value, f"$.{key}") for key, value in values.items()}


def _quote(text: str) -> str:
    return "'" + text.replace("'", "''") + "'"


def _raise_for_status(res: httpx.Response, what: str) -> None:
    if res.status_code >= 400:
        raise WebApiError(f"{what}_failed:{res.status_code}:{res.text}")


class WebApiClient:
    """Connected Web API: remote operations plus record retrieve/update."""

    def __init__(
        self,
        base_url: str,
        access_token: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        api_version: str = "9.2",
        timeout_s: float = 30.0,
        entity_sets: Dict[str, str] | None = None,
    ) -> None:
        self.base_url = f"{base_url.rstrip('/')}/api/data/v{api_version}"
        self._entity_sets = dict(entity_sets or {})
        headers = dict(_ODATA_HEADERS)
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        self._client = client or httpx.AsyncClient(timeout=timeout_s)
        self._headers = headers
        self._owns_client = client is None

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def _record_path(self, entity_type: str, record_id: str) -> str:
        return f"{entity_set_name(entity_type, self._entity_sets)}({normalize_guid(record_id)})"

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path}"

    def _operation_path(self, metadata: dict, values: dict) -> str:
        name = metadata["operationName"]
        bound = metadata.get("boundParameter")
        if not bound:
            return name
        parts = reference_parts(values[bound])
        return f"{self._record_path(parts[1], parts[0])}/Microsoft.Dynamics.CRM.{name}"

    def _url_literal(self, value: Any, path: str = "$") -> str:
        """Render a function parameter as an OData URL literal.

        Strings are single-quoted, references become ``@odata.id`` objects,
        everything else follows the JSON wire form unquoted.
        """
        if value is None:
            return "null"
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, str):
            return _quote(value)
        parts = reference_parts(value)
        if parts is not None:
            return "{" + _quote("@odata.id") + ":" + _quote(self._record_path(parts[1], parts[0])) + "}"
        if isinstance(value, (list, tuple)):
            items = [self._url_literal(item, f"{path}[{idx}]") for idx, item in enumerate(value)]
            return f"[{','.join(items)}]"
        wired = to_wire(value, path)
        if isinstance(wired, (dict, list)):
            raise WireJsonTypeError(f"Unsupported function parameter at {path}: {type(value).__name__}")
        return str(wired)

    async def execute(self, request: Any) -> httpx.Response:
        metadata = request.get_metadata()
        values = dict(request.values)
        path = self._operation_path(metadata, values)
        bound = metadata.get("boundParameter")
        if bound:
            values.pop(bound, None)

        if metadata["operationType"] == 1:
            aliases = []
            params = {}
            for idx, (key, value) in enumerate(values.items(), start=1):
                aliases.append(f"{key}=@p{idx}")
                params[f"@p{idx}"] = self._url_literal(value, f"$.{key}")
            url = f"{path}({','.join(aliases)})"
            res = await self._client.get(self._url(url), params=params, headers=self._headers)
        else:
            res = await self._client.post(self._url(path), json=_wire_body(values), headers=self._headers)
        _logger.info(
            "webapi_execute name=%s status=%s",
            metadata["operationName"],
            res.status_code,
        )
        return res

    async def retrieve_record(self, entity_type: str, record_id: str, options: str | None = None) -> dict:
        url = f"{self._record_path(entity_type, record_id)}{_query(options)}"
        res = await self._client.get(self._url(url), headers=self._headers)
        _raise_for_status(res, "retrieve_record")
        return res.json()

    async def update_record(self, entity_type: str, record_id: str, data: dict) -> dict:
        headers = dict(self._headers)
        headers["If-Match"] = "*"
        res = await self._client.patch(self._url(self._record_path(entity_type, record_id)), json=_wire_body(data), headers=headers)
        _raise_for_status(res, "update_record")
        return {"entityType": entity_type, "id": normalize_guid(record_id)}


class MemoryOfflineStore:
    """Disconnected record store backed by an offline profile.

    ``profile`` maps entity types to whether they are enabled for offline
    use; entity types missing from it are indeterminate.
    """

    def __init__(self, profile: Dict[str, bool] | None = None) -> None:
        self._profile: Dict[str, bool] = dict(profile or {})
        self._records: Dict[str, Dict[str, dict]] = {}

    def is_available_offline(self, entity_type: str) -> bool | None:
        return self._profile.get(entity_type)

    def put_record(self, entity_type: str, record_id: str, values: dict) -> None:
        record = copy.deepcopy(values)
        record_id = normalize_guid(record_id)
        record[f"{entity_type}id"] = record_id
        self._records.setdefault(entity_type, {})[record_id] = record

    def get_record(self, entity_type: str, record_id: str) -> dict | None:
        rec = self._records.get(entity_type, {}).get(normalize_guid(record_id))
        return copy.deepcopy(rec) if rec else None

    async def retrieve_record(self, entity_type: str, record_id: str, options: str | None = None) -> dict:
        rec = self.get_record(entity_type, record_id)
        if rec is None:
            raise KeyError("record not found")
        return rec

    async def update_record(self, entity_type: str, record_id: str, data: dict) -> dict:
        record_id = normalize_guid(record_id)
        entity_records = self._records.get(entity_type, {})
        if record_id not in entity_records:
            raise KeyError("record not found")
        entity_records[record_id].update(copy.deepcopy(data))
        return {"entityType": entity_type, "id": record_id}


class ClientState:
    def __init__(self, mode: str = "online") -> None:
        if mode not in config.CLIENT_MODES:
            raise ValueError(f"Unknown client mode: {mode}")
        self.mode = mode

    def is_offline(self) -> bool:
        return self.mode == "offline"


@dataclass
class WebApi:
    online: Any
    offline: Any
    client: ClientState


def build_web_api(client: Optional[httpx.AsyncClient] = None) -> WebApi:
    online = WebApiClient(
        config.get_base_url(),
        access_token=config.get_access_token(),
        client=client,
        api_version=config.get_api_version(),
        timeout_s=config.get_http_timeout(),
    )
    offline = MemoryOfflineStore({entity: True for entity in config.get_offline_entities()})
    return WebApi(online=online, offline=offline, client=ClientState(config.get_client_mode()))
