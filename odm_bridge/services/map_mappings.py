# odm_bridge/services/map_mappings.py

import json
from pathlib import Path
from typing import Dict

from odm_bridge.core.errors import InternalError, NotFoundError


def load_mappings(path: Path) -> Dict[str, str]:
    """
    Read the map name -> destination directory table.

    Read fresh on every call; the file is edited by hand alongside the
    map-serving configuration.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as exc:
        raise InternalError(
            "Failed to read map mappings",
            code="mapping-file-unreadable",
            details=str(exc),
        )

    if not isinstance(data, dict) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in data.items()
    ):
        raise InternalError(
            "Failed to read map mappings",
            code="mapping-file-unreadable",
            details=f"{path} must hold a JSON object of map name -> directory",
        )
    return data


def resolve_destination(map_name: str, mappings: Dict[str, str]) -> Path:
    dest = mappings.get(map_name)
    if not dest:
        raise NotFoundError(
            "Map name not found in mappings",
            code="map-not-found",
            requested=map_name,
            available_maps=sorted(mappings),
        )
    return Path(dest)
