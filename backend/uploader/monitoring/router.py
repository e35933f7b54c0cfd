"""Health check endpoints.

Endpoints:
    GET /monitoring/live:   the process is up
    GET /monitoring/ready:  the service can accept uploads
    GET /monitoring/health: same checks as ready

Readiness checks that the upload folder exists and is writable and that the
filesystem holding it has at least ``monitoring.min_free_space`` bytes free.
"""
import logging
import os
import shutil
from pathlib import Path
from typing import Any, Dict, List

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/monitoring", tags=["monitoring"])

UP = "UP"
DOWN = "DOWN"


class CheckResult(BaseModel):
    """Outcome of a single health check."""
    name: str
    state: str
    data: Dict[str, Any] = Field(default_factory=dict)


class HealthResponse(BaseModel):
    """Aggregated health status."""
    status: str
    checks: List[CheckResult] = Field(default_factory=list)


def check_upload_folder(folder: Path) -> CheckResult:
    """The upload folder must exist, be a directory and be writable."""
    ok = folder.is_dir() and os.access(folder, os.W_OK)
    return CheckResult(name="upload_folder", state=UP if ok else DOWN, data={"path": str(folder)})


def check_disk_space(folder: Path, min_free_space: int) -> CheckResult:
    """Free space on the filesystem holding *folder* must reach the threshold."""
    try:
        usage = shutil.disk_usage(folder)
    except OSError as e:
        logger.warning(f"Disk space check failed for {folder}: {e}")
        return CheckResult(name="disk_space", state=DOWN, data={"error": str(e)})

    return CheckResult(
        name="disk_space",
        state=UP if usage.free >= min_free_space else DOWN,
        data={"free": usage.free, "threshold": min_free_space},
    )


def run_checks(request: Request) -> JSONResponse:
    settings = request.app.state.settings
    folder = settings.upload.temp_directory
    checks = [
        check_upload_folder(folder),
        check_disk_space(folder, settings.monitoring.min_free_space),
    ]
    status = UP if all(c.state == UP for c in checks) else DOWN
    if status == DOWN:
        logger.warning("Health check failed: %s", [c.name for c in checks if c.state == DOWN])

    body = HealthResponse(status=status, checks=checks)
    return JSONResponse(status_code=200 if status == UP else 503, content=body.model_dump())


@router.get("/live")
async def live() -> dict:
    """Liveness probe.

    Returns:
        dict: Status object indicating the server is running.
    """
    return {"status": UP}


@router.get("/ready")
async def ready(request: Request) -> JSONResponse:
    """Readiness probe."""
    return run_checks(request)


@router.get("/health")
async def health(request: Request) -> JSONResponse:
    """Health probe."""
    return run_checks(request)
