"""Connected/disconnected storage path selection for record writes."""

from __future__ import annotations

import inspect
import logging
from enum import Enum
from typing import Any

from xrmkit.errors import CapabilityUndetermined, MissingEntityType, UnavailableOffline


_logger = logging.getLogger("xrmkit.offline")


class CapabilityFlag(Enum):
    UNKNOWN = "unknown"
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"


class OfflineCapability:
    """Memoized answer to "can this entity type be written offline?".

    The flag moves out of UNKNOWN at most once; later calls read the
    stored value without asking the platform again.
    """

    def __init__(self) -> None:
        self.flag = CapabilityFlag.UNKNOWN

    async def resolve(self, entity_type: str, offline_store: Any) -> CapabilityFlag:
        if self.flag is not CapabilityFlag.UNKNOWN:
            return self.flag
        result = offline_store.is_available_offline(entity_type)
        if inspect.isawaitable(result):
            result = await result
        if not isinstance(result, bool):
            raise CapabilityUndetermined(
                message=f"Unable to determine offline availability for entity: {entity_type}",
                entity_type=entity_type,
            )
        self.flag = CapabilityFlag.AVAILABLE if result else CapabilityFlag.UNAVAILABLE
        _logger.info("offline_capability entity=%s flag=%s", entity_type, self.flag.value)
        return self.flag


async def select_record_store(capability: OfflineCapability, entity_type: str | None, web_api: Any) -> Any:
    if web_api.client.is_offline() is not True:
        return web_api.online
    if not entity_type:
        raise MissingEntityType(message="Missing required property EntityType needed for offline methods")
    flag = await capability.resolve(entity_type, web_api.offline)
    if flag is CapabilityFlag.AVAILABLE:
        return web_api.offline
    raise UnavailableOffline(
        message=f"The entity {entity_type} is not available in offline mode",
        entity_type=entity_type,
    )
