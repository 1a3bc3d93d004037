import logging
from pathlib import Path, PurePosixPath
import uuid

from recipe_book.errors import Forbidden, RecipeBookError


logger = logging.getLogger(__name__)


MAX_IMAGE_BYTES = 5 * 1024 * 1024
IMAGE_TYPES = {
    "image/jpeg": ".jpeg",
    "image/png": ".png",
    "image/webp": ".webp",
    "image/gif": ".gif",
}
UPLOADS_URL = "/uploads"


class InvalidImage(RecipeBookError):
    status_code = 400


def save_image(
    content: bytes,
    *,
    content_type: str,
    uploads_dir: Path,
    owner: str,
) -> tuple[str, str]:
    """Store an uploaded image under its owner's directory.

    Returns the public url and the storage path, `<owner>/<name>`.
    """
    ext = IMAGE_TYPES.get(content_type)
    if ext is None:
        raise InvalidImage("Invalid file type. Please upload an image.")
    if not content:
        raise InvalidImage("The uploaded file is empty.")
    if len(content) > MAX_IMAGE_BYTES:
        raise InvalidImage("File too large. Maximum size is 5MB.")

    path = f"{owner}/{uuid.uuid4().hex}{ext}"
    target = resolve_image(path, uploads_dir=uploads_dir)
    target.parent.mkdir(parents=True, exist_ok=True)
    with open(target, "wb") as f:
        f.write(content)
    logger.info("Stored image %s (%d bytes)", path, len(content))
    return f"{UPLOADS_URL}/{path}", path


def image_owner(path: str) -> str | None:
    """The user a storage path belongs to, or None if it is not one of ours."""
    parts = PurePosixPath(path).parts
    if len(parts) != 2 or any(p in ("/", "..") for p in parts):
        return None
    return parts[0]


def resolve_image(path: str, *, uploads_dir: Path, owner: str | None = None) -> Path:
    path_owner = image_owner(path)
    if path_owner is None:
        raise InvalidImage("Invalid image path.")
    if owner is not None and path_owner != owner:
        raise Forbidden()
    root = uploads_dir.resolve()
    target = (root / path).resolve()
    if target.parent != root / path_owner:
        raise InvalidImage("Invalid image path.")
    return target


def delete_image(path: str, *, uploads_dir: Path, owner: str | None = None) -> bool:
    target = resolve_image(path, uploads_dir=uploads_dir, owner=owner)
    if not target.exists():
        return False
    target.unlink()
    logger.info("Deleted image %s", path)
    return True
