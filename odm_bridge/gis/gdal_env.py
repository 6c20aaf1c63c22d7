# ============================================================
# File: odm_bridge/gis/gdal_env.py
# Environment for running GDAL command-line tools
# ============================================================

"""
Builds the process environment the GDAL command-line tools need when they
come from a self-contained install rather than the system PATH.

Two layouts are understood:

``prefix``
    A conventional install prefix (conda env, /usr/local, OSGeo4W root):
    ``bin/``, ``share/gdal``, ``share/proj``, ``lib/gdalplugins``.

``ms4w``
    The MS4W bundle on Windows, where every tool has its own directory under
    ``tools/`` and GDAL's Python scripts run on the bundled interpreter.

This module does not touch the filesystem or spawn processes, so the
resulting mapping can be checked directly in tests.
"""

import ntpath
import os
from typing import Dict, Mapping, Optional

# MS4W subdirectories that hold executables or DLLs the GDAL tools load.
MS4W_PATH_DIRS = (
    r"Apache\cgi-bin",
    r"tools\gdal-ogr",
    r"tools\mapserv",
    r"tools\shapelib",
    r"tools\proj",
    r"tools\shp2tile",
    r"tools\geotiff",
    r"tools\jpeg",
    r"tools\libtiff",
    r"tools\geos",
    r"tools\sqlite",
    r"tools\spatialite",
    r"tools\curl",
    r"tools\openssl",
    r"tools\zstd",
    r"tools\deflate",
    r"tools\webp",
    r"tools\libxml2",
    r"gdalbindings\python\gdal",
    r"Python",
    r"Python\Scripts",
)

MS4W_PYTHONPATH_DIRS = (
    r"Apache\cgi-bin",
    r"Python\DLLs",
    r"Python\Lib",
    r"Python\Lib\site-packages",
    r"Python",
    r"Python\Lib\site-packages\osgeo_utils",
)


def _prepend(value: str, existing: Optional[str], sep: str) -> str:
    return f"{value}{sep}{existing}" if existing else value


def _prefix_env(root: str, env: Dict[str, str]) -> Dict[str, str]:
    env["PATH"] = _prepend(os.path.join(root, "bin"), env.get("PATH"), os.pathsep)
    env["GDAL_DATA"] = os.path.join(root, "share", "gdal")
    env["PROJ_DATA"] = os.path.join(root, "share", "proj")
    env["PROJ_LIB"] = env["PROJ_DATA"]
    env["GDAL_DRIVER_PATH"] = os.path.join(root, "lib", "gdalplugins")
    return env


def _ms4w_env(root: str, env: Dict[str, str]) -> Dict[str, str]:
    join = ntpath.join
    tool_path = ";".join(join(root, d) for d in MS4W_PATH_DIRS)
    python_path = ";".join(join(root, d) for d in MS4W_PYTHONPATH_DIRS)
    ca_bundle = join(root, r"Apache\conf\ca-bundle\cacert.pem")
    proj_data = join(root, r"share\proj")

    env["PATH"] = _prepend(tool_path, env.get("PATH"), ";")
    env["PYTHONPATH"] = _prepend(python_path, env.get("PYTHONPATH"), ";")
    env.update(
        {
            "USE_PATH_FOR_GDAL_PYTHON": "YES",
            "PYTHONHOME": join(root, "Python"),
            "PYTHONUTF8": "1",
            "GDAL_DATA": join(root, "gdaldata"),
            "GDAL_DRIVER_PATH": join(root, "gdalplugins"),
            "GDAL_FILENAME_IS_UTF8": "1",
            "VSI_CACHE": "TRUE",
            "VSI_CACHE_SIZE": "1000000",
            "PROJ_DATA": proj_data,
            "PROJ_USER_WRITABLE_DIRECTORY": proj_data,
            "CURL_CA_BUNDLE": ca_bundle,
            "SSL_CERT_FILE": ca_bundle,
            "OPENSSL_CONF": join(root, r"tools\openssl\openssl.cnf"),
            "MAPSERVER_CONFIG_FILE": join(root, "ms4w.conf"),
        }
    )
    return env


def build_gdal_env(
    gdal_root: Optional[str],
    layout: str = "prefix",
    base_env: Optional[Mapping[str, str]] = None,
) -> Dict[str, str]:
    """
    Return a copy of ``base_env`` (default: ``os.environ``) set up for the
    GDAL install at ``gdal_root``. Without a root the copy is unchanged and
    the tools are looked up on the existing PATH.
    """
    env = dict(os.environ if base_env is None else base_env)
    if not gdal_root:
        return env

    if layout == "ms4w":
        return _ms4w_env(gdal_root, env)
    if layout == "prefix":
        return _prefix_env(gdal_root, env)
    raise ValueError(f"Unknown GDAL layout: {layout!r}")
