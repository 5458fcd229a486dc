"""Job sheet extraction endpoint."""

import base64
import binascii
import logging
import re
from typing import Optional, Tuple

from fastapi import APIRouter, Depends, Request, status
from pydantic import ValidationError
from starlette.datastructures import UploadFile

from app.api.deps import get_vision_provider
from app.config import settings
from app.core.errors import AppError
from app.core.security import SessionPrincipal, require_csrf
from app.schemas.vision import VisionExtractRequest, VisionExtractResponse
from app.services.vision import VisionProvider, build_form
from app.utils.constants import ALLOWED_IMAGE_MIME_TYPES

logger = logging.getLogger(__name__)

router = APIRouter()

_DATA_URI = re.compile(r"^data:([^;,]+);base64,", re.IGNORECASE)
_UNSUPPORTED = "Unsupported image format. Allowed: JPEG, PNG, WebP, GIF."


def decode_image_payload(payload: str) -> Tuple[bytes, str]:
    """Raw base64 or a data URI -> (bytes, mime type). Bare base64 is taken as JPEG."""
    mime_type = "image/jpeg"
    match = _DATA_URI.match(payload)
    if match:
        mime_type = match.group(1).lower()
        payload = payload[match.end():]
    elif "," in payload:
        payload = payload.split(",", 1)[1]

    if mime_type not in ALLOWED_IMAGE_MIME_TYPES:
        raise AppError(_UNSUPPORTED, status.HTTP_415_UNSUPPORTED_MEDIA_TYPE)

    try:
        data = base64.b64decode(payload, validate=False)
    except (binascii.Error, ValueError):
        raise AppError("Image is not valid base64")
    return data, mime_type


async def _read_upload(request: Request) -> Tuple[Optional[bytes], str]:
    content_type = request.headers.get("content-type", "")

    if content_type.startswith("multipart/form-data"):
        form = await request.form()
        upload = form.get("image")
        if not isinstance(upload, UploadFile):
            return None, ""
        mime_type = (upload.content_type or "").lower()
        if mime_type not in ALLOWED_IMAGE_MIME_TYPES:
            raise AppError(_UNSUPPORTED, status.HTTP_415_UNSUPPORTED_MEDIA_TYPE)
        # Read one byte past the limit so oversize files are detected without loading them whole
        return await upload.read(settings.VISION_MAX_UPLOAD_BYTES + 1), mime_type

    try:
        body = VisionExtractRequest.model_validate(await request.json())
    except (ValueError, ValidationError):
        return None, ""
    if not body.image:
        return None, ""
    return decode_image_payload(body.image)


@router.post("/extract", response_model=VisionExtractResponse)
async def extract(
    request: Request,
    principal: SessionPrincipal = Depends(require_csrf),
    provider: VisionProvider = Depends(get_vision_provider),
):
    """
    Extract job form fields from a photographed job sheet.

    Accepts a multipart upload in field `image`, or JSON `{"image": "<base64 or data URI>"}`.
    """
    image_bytes, mime_type = await _read_upload(request)
    if not image_bytes:
        raise AppError("No image provided")
    if len(image_bytes) > settings.VISION_MAX_UPLOAD_BYTES:
        raise AppError("File too large (max 5MB)")

    logger.info(f"Vision extraction by {principal.username} ({mime_type}, {len(image_bytes)} bytes)")
    raw = await provider.extract_form(image_bytes, mime_type)
    return {"success": True, "data": build_form(raw)}
