# odm_bridge/gis/gdal_index.py
"""
Spatial index (tile index shapefile) generation with ``gdaltindex``.
"""

import logging
import shutil
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

from odm_bridge.core.config import Settings
from odm_bridge.gis.gdal_env import build_gdal_env

logger = logging.getLogger(__name__)

SHAPEFILE_SUFFIXES = (".shp", ".shx", ".dbf", ".prj", ".cpg")

Runner = Callable[..., subprocess.CompletedProcess]


def _text(value) -> str:
    if isinstance(value, bytes):
        return value.decode(errors="replace")
    return value or ""


@dataclass
class ToolResult:
    command: List[str]
    returncode: Optional[int] = None
    stdout: str = ""
    stderr: str = ""
    timed_out: bool = False
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.returncode == 0 and not self.timed_out and self.error is None

    def failure_reason(self) -> str:
        if self.timed_out:
            return f"{self.command[0]} timed out"
        if self.error:
            return self.error
        return (self.stderr or self.stdout).strip() or f"exit code {self.returncode}"


@dataclass
class IndexResult:
    index_path: Path
    tool: ToolResult
    files: List[Path] = field(default_factory=list)

    @property
    def created(self) -> bool:
        return self.tool.succeeded and self.index_path.exists()

    def failure_reason(self) -> str:
        if not self.tool.succeeded:
            return self.tool.failure_reason()
        return f"Shapefile was not created at expected location: {self.index_path}"


def run_tool(
    command: Sequence[str],
    *,
    env: Dict[str, str],
    cwd: Optional[Path] = None,
    timeout: float,
    runner: Runner = subprocess.run,
) -> ToolResult:
    """
    Run one GDAL command-line tool. Never raises for tool failures: a missing
    binary, a non-zero exit or a timeout all come back as a failed result.
    """
    command = list(command)
    # Resolve against the constructed PATH; the child's env does not affect lookup.
    resolved = shutil.which(command[0], path=env.get("PATH"))
    if resolved:
        command[0] = resolved

    try:
        proc = runner(
            command,
            capture_output=True,
            text=True,
            env=env,
            cwd=str(cwd) if cwd else None,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as exc:
        # subprocess.run kills the child before re-raising
        return ToolResult(
            command=command,
            stdout=_text(exc.stdout),
            stderr=_text(exc.stderr),
            timed_out=True,
        )
    except OSError as exc:
        return ToolResult(command=command, error=f"{command[0]} could not be started: {exc}")

    return ToolResult(
        command=command,
        returncode=proc.returncode,
        stdout=proc.stdout or "",
        stderr=proc.stderr or "",
    )


def index_files(index_path: Path) -> List[Path]:
    """The shapefile and whichever companion files exist beside it."""
    return [
        p for p in (index_path.with_suffix(s) for s in SHAPEFILE_SUFFIXES) if p.exists()
    ]


def remove_index_files(index_path: Path) -> None:
    # gdaltindex appends to an existing index, so a rerun would duplicate rows
    for p in index_files(index_path):
        p.unlink()


def build_index(
    raster_path: Path,
    index_path: Path,
    *,
    settings: Settings,
    runner: Runner = subprocess.run,
) -> IndexResult:
    """
    Index a single raster into ``index_path`` (ESRI Shapefile).

    The tool runs from the index directory, so a raster in that same
    directory is recorded by file name rather than by absolute path.
    """
    raster_path = Path(raster_path)
    index_path = Path(index_path)
    index_path.parent.mkdir(parents=True, exist_ok=True)
    remove_index_files(index_path)

    if raster_path.parent.resolve() == index_path.parent.resolve():
        location = raster_path.name
    else:
        location = str(raster_path.resolve())

    env = build_gdal_env(settings.gdal_root, settings.gdal_layout)
    command = [settings.gdaltindex_bin, "-f", "ESRI Shapefile", index_path.name, location]

    logger.info("Running %s in %s", " ".join(command), index_path.parent)
    tool = run_tool(
        command,
        env=env,
        cwd=index_path.parent,
        timeout=settings.gdal_timeout,
        runner=runner,
    )
    if tool.stderr:
        logger.debug("gdaltindex stderr: %s", tool.stderr.strip())

    result = IndexResult(index_path=index_path, tool=tool, files=index_files(index_path))
    if result.created:
        logger.info("Shapefile index created: %s", index_path)
    else:
        logger.error("gdaltindex failed: %s", result.failure_reason())
    return result


def gdal_tool_status(settings: Settings, runner: Runner = subprocess.run) -> Dict[str, object]:
    """Whether the index tool runs with the constructed environment."""
    env = build_gdal_env(settings.gdal_root, settings.gdal_layout)
    tool = run_tool(
        [settings.gdaltindex_bin, "--version"], env=env, timeout=10, runner=runner
    )
    return {
        "tool": settings.gdaltindex_bin,
        "gdal_root": settings.gdal_root,
        "gdal_layout": settings.gdal_layout,
        "available": tool.succeeded,
        "version": tool.stdout.strip() if tool.succeeded else None,
        "error": None if tool.succeeded else tool.failure_reason(),
    }
