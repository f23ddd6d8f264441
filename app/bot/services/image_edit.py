"""
Purpose: photo edits through the OpenAI image edit endpoint.
Input bytes go up as-is (PNG/JPEG/WebP are accepted by the endpoint); the
result comes back base64-encoded and is returned as PNG bytes.
"""

from __future__ import annotations
import base64
import io
from typing import Any

from ..errors import ImageEditError

_EXTENSIONS = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/webp": "webp",
}


def edit_image(
    image_bytes: bytes,
    mime_type: str,
    prompt: str,
    llm: Any,
    *,
    model: str = "gpt-image-1",
    size: str = "1024x1024",
) -> bytes:
    client = getattr(llm, "client", llm)
    ext = _EXTENSIONS.get((mime_type or "").lower(), "png")
    with io.BytesIO(image_bytes) as buf:
        buf.name = f"input.{ext}"
        resp = client.images.edit(model=model, image=buf, prompt=prompt, size=size)

    data = getattr(resp, "data", None) or []
    b64 = getattr(data[0], "b64_json", None) if data else None
    if not b64:
        raise ImageEditError("Image edit failed")
    return base64.b64decode(b64)
