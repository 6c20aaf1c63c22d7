# File: odm_bridge/gis/raster_info.py

"""
Footprint and shape of a raster on disk, reported back with a commit.
"""

from pathlib import Path
from typing import Any, Dict

import rasterio


def describe_raster(path: Path) -> Dict[str, Any]:
    with rasterio.open(path) as src:
        bounds = src.bounds
        return {
            "crs": src.crs.to_string() if src.crs else None,
            "bounds": {
                "west": bounds.left,
                "south": bounds.bottom,
                "east": bounds.right,
                "north": bounds.top,
            },
            "width": src.width,
            "height": src.height,
            "count": src.count,
            "dtype": src.dtypes[0] if src.dtypes else None,
            "resolution": list(src.res),
        }
