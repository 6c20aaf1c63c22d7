# File: odm_bridge/core/config.py

import os
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, AnyHttpUrl, Field, field_validator


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value else default


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    return float(value) if value else default


class Settings(BaseModel):
    # Basic app info
    PROJECT_NAME: str = "ODM Map Bridge"
    VERSION: str = "0.1.0"

    api_prefix: str = "/api"
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # CORS
    backend_cors_origins: List[AnyHttpUrl] = Field(
        default=os.getenv(
            "BACKEND_CORS_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173",
        ),
        validate_default=True,
    )

    # WebODM server (root URL, endpoints live under /api/)
    webodm_url: str = os.getenv("WEBODM_URL", "http://localhost:8000")
    webodm_username: str = os.getenv("WEBODM_USERNAME", "")
    webodm_password: str = os.getenv("WEBODM_PASSWORD", "")
    http_timeout: float = _env_float("HTTP_TIMEOUT", 30.0)

    # Local GDAL toolchain
    gdal_root: Optional[str] = os.getenv("GDAL_ROOT") or os.getenv("OSGEO4W_ROOT") or None
    gdal_layout: str = Field(default=os.getenv("GDAL_LAYOUT", "prefix"), validate_default=True)
    gdaltindex_bin: str = os.getenv("GDALTINDEX_BIN", "gdaltindex")
    gdal_timeout: float = _env_float("GDAL_TIMEOUT", 60.0)

    # Map name -> destination directory table
    map_mappings_path: Path = Path(
        os.getenv("MAP_MAPPINGS_PATH", os.path.join("data", "map_mappings.json"))
    )

    # Upload staging and ceilings
    upload_dir: Path = Path(os.getenv("UPLOAD_DIR", "uploads"))
    max_upload_file_size: int = _env_int("MAX_UPLOAD_FILE_SIZE", 500 * 1024 * 1024)
    max_upload_files: int = _env_int("MAX_UPLOAD_FILES", 1000)
    max_upload_total_size: int = _env_int("MAX_UPLOAD_TOTAL_SIZE", 50 * 1024 * 1024 * 1024)

    @field_validator("backend_cors_origins", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v):
        if isinstance(v, str):
            return [i.strip() for i in v.split(",") if i.strip()]
        if isinstance(v, list):
            return v
        return []

    @field_validator("webodm_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("gdal_layout")
    @classmethod
    def check_layout(cls, v: str) -> str:
        v = v.lower()
        if v not in ("prefix", "ms4w"):
            raise ValueError("gdal_layout must be 'prefix' or 'ms4w'")
        return v


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
