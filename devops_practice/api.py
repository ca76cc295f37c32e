"""JSON endpoints: sample data, data creation and the liveness check."""

from __future__ import annotations

import time
from typing import Annotated, Final, cast

from fastapi import APIRouter, Depends, Request
from starlette.responses import JSONResponse
from vtjson import ValidationError, lax, set_name, validate

from devops_practice.http.boundary import read_json_body
from devops_practice.http.dependencies import get_settings
from devops_practice.http.settings import AppSettings
from devops_practice.util import memory_snapshot, process_uptime, utc_now_iso

router = APIRouter()

SettingsDep = Annotated[AppSettings, Depends(get_settings)]

SAMPLE_USERS: Final[tuple[dict[str, object], ...]] = (
    {"id": 1, "name": "Alice", "role": "Admin"},
    {"id": 2, "name": "Bob", "role": "User"},
    {"id": 3, "name": "Charlie", "role": "User"},
)
ACTIVE_USERS: Final[int] = 2

MISSING_FIELDS_ERROR: Final[str] = "Missing required fields: name and value"


def _is_present(value: object) -> bool:
    """False for null, false, zero and the empty string; true otherwise.

    Empty arrays and objects count as present.
    """
    if value is None or isinstance(value, bool):
        return bool(value)
    if isinstance(value, int | float):
        return value != 0
    if isinstance(value, str):
        return value != ""
    return True


# Both fields must be present; other keys are ignored.
present = set_name(_is_present, "present")
create_data_schema = lax({"name": present, "value": present})


@router.get("/api/data")
async def get_data() -> JSONResponse:
    return JSONResponse(
        {
            "success": True,
            "timestamp": utc_now_iso(),
            "data": {
                "users": [dict(user) for user in SAMPLE_USERS],
                "stats": {
                    "totalUsers": len(SAMPLE_USERS),
                    "activeUsers": ACTIVE_USERS,
                    "serverUptime": process_uptime(),
                },
            },
        },
    )


@router.post("/api/data")
async def create_data(request: Request, settings: SettingsDep) -> JSONResponse:
    body = await read_json_body(request, settings)
    try:
        validate(create_data_schema, body.value, "request")
    except ValidationError:
        return JSONResponse(
            {"success": False, "error": MISSING_FIELDS_ERROR},
            status_code=400,
        )

    payload = cast("dict[str, object]", body.value)
    return JSONResponse(
        {
            "success": True,
            "message": "Data created successfully",
            "data": {
                "name": payload["name"],
                "value": payload["value"],
                "id": int(time.time() * 1000),
            },
        },
        status_code=201,
    )


@router.get("/health")
async def health(settings: SettingsDep) -> JSONResponse:
    """Liveness stub: always 200, no checks."""
    return JSONResponse(
        {
            "status": "OK",
            "timestamp": utc_now_iso(),
            "uptime": process_uptime(),
            "memory": memory_snapshot(),
            "environment": settings.environment,
        },
        status_code=200,
    )
