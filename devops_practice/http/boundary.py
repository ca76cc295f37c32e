"""Shared HTTP boundary: body parsing with the configured size limit."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import TYPE_CHECKING

from devops_practice.http.errors import PayloadTooLargeFault, ValidationFault

if TYPE_CHECKING:
    from starlette.datastructures import FormData
    from starlette.requests import Request

    from devops_practice.http.settings import AppSettings


def _is_json_content_type(request: Request) -> bool:
    content_type = request.headers.get("content-type", "")
    media_type = content_type.split(";", 1)[0].strip().lower()
    return media_type == "application/json" or media_type.endswith("+json")


async def read_body(request: Request, settings: AppSettings) -> bytes:
    """Return the raw body, rejecting anything above ``max_body_bytes``."""
    limit = settings.limits.max_body_bytes
    declared = request.headers.get("content-length", "").strip()
    if declared.isdigit() and int(declared) > limit:
        raise PayloadTooLargeFault(
            f"Request body exceeds {settings.limits.max_body_size}",
        )
    body = await request.body()
    if len(body) > limit:
        raise PayloadTooLargeFault(
            f"Request body exceeds {settings.limits.max_body_size}",
        )
    return body


@dataclass(frozen=True)
class JsonBody:
    """Decoded JSON body."""

    value: object


def _reject_constant(name: str) -> object:
    # NaN and Infinity are not JSON.
    raise ValueError(name)


async def read_json_body(request: Request, settings: AppSettings) -> JsonBody:
    """Parse a JSON body.

    Non-JSON content types and empty bodies yield an empty object. Malformed
    JSON, including the non-standard ``NaN`` and ``Infinity`` literals, raises
    a `ValidationFault`.
    """
    if not _is_json_content_type(request):
        return JsonBody(value={})
    body = await read_body(request, settings)
    if not body.strip():
        return JsonBody(value={})
    try:
        value = json.loads(body, parse_constant=_reject_constant)
    except (ValueError, UnicodeDecodeError) as exc:
        message = "Malformed JSON in request body"
        raise ValidationFault(message, code="INVALID_JSON") from exc
    return JsonBody(value=value)


async def read_form(request: Request, settings: AppSettings) -> FormData:
    """Parse an urlencoded (or multipart) form body."""
    await read_body(request, settings)
    return await request.form()


def form_str(form: FormData, name: str) -> str | None:
    value = form.get(name)
    return value if isinstance(value, str) else None
