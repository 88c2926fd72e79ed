from __future__ import annotations

from typing import Any


def normalize_guid(guid: Any) -> str:
    """Lowercase a GUID and drop surrounding braces."""
    if not isinstance(guid, str):
        raise TypeError(f"'{guid}' is not a string")
    return guid.lower().replace("{", "").replace("}", "")
