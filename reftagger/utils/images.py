"""
Image file checks, filename sanitising and thumbnail generation
"""
import io
import re
import uuid
from typing import List, Optional, Tuple

from PIL import Image

ALLOWED_CONTENT_TYPES = ("image/jpeg", "image/jpg", "image/png", "image/webp")
MAX_FILENAME_LENGTH = 100

_PIL_FORMATS = {
    "image/jpeg": "JPEG",
    "image/jpg": "JPEG",
    "image/png": "PNG",
    "image/webp": "WEBP",
}


def validate_image_file(
    filename: Optional[str],
    content_type: Optional[str],
    size: int,
    max_bytes: int = 10 * 1024 * 1024,
) -> List[str]:
    """Return a list of problems with an uploaded file (empty when valid)"""
    errors = []
    if size <= 0:
        errors.append("File is empty")
    elif size > max_bytes:
        errors.append(f"File size must be less than {max_bytes // (1024 * 1024)}MB")

    if (content_type or "").lower() not in ALLOWED_CONTENT_TYPES:
        errors.append("File must be a JPEG, PNG, or WEBP image")

    if not filename or len(filename) > 255:
        errors.append("Filename must be between 1 and 255 characters")
    return errors


def sanitize_filename(filename: str) -> str:
    """Make a filename safe for storage paths"""
    name = (filename or "").strip()
    if "." in name:
        base, extension = name.rsplit(".", 1)
    else:
        base, extension = name, ""

    extension = extension.lower()
    if not re.fullmatch(r"[a-z0-9]{1,10}", extension):
        extension = "bin"

    base = re.sub(r"[^a-zA-Z0-9\-_]", "-", base)
    base = re.sub(r"-+", "-", base).strip("-").lower()
    if not base:
        base = str(uuid.uuid4())

    max_base = MAX_FILENAME_LENGTH - len(extension) - 1
    return f"{base[:max_base]}.{extension}"


def generate_thumbnail(data: bytes, content_type: str, max_width: int = 800) -> Tuple[bytes, str]:
    """Scale an image down to max_width, keeping aspect ratio"""
    image_format = _PIL_FORMATS.get((content_type or "").lower(), "JPEG")

    with Image.open(io.BytesIO(data)) as img:
        if img.width > max_width:
            height = max(1, round(img.height * max_width / img.width))
            img = img.resize((max_width, height), Image.Resampling.LANCZOS)
        if image_format == "JPEG" and img.mode not in ("RGB", "L"):
            img = img.convert("RGB")

        buffer = io.BytesIO()
        img.save(buffer, format=image_format, quality=85)

    mime = "image/jpeg" if image_format == "JPEG" else content_type.lower()
    return buffer.getvalue(), mime
