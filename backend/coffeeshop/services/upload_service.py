# Overview: Image upload validation and local storage under UPLOAD_FOLDER.

from __future__ import annotations

import os
import secrets
import time
from pathlib import Path

from flask import current_app
from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

from ..exceptions import ValidationError

ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png"}

# Leading bytes of the accepted formats
_SIGNATURES = {
    ".jpg": (b"\xff\xd8\xff",),
    ".jpeg": (b"\xff\xd8\xff",),
    ".png": (b"\x89PNG\r\n\x1a\n",),
}


def _read_checked(file: FileStorage, field: str) -> tuple[bytes, str, str]:
    filename = file.filename or ""
    stem, ext = os.path.splitext(filename)
    ext = ext.lower()
    if ext not in ALLOWED_EXTENSIONS:
        raise ValidationError({field: "Only .jpg, .jpeg and .png files are allowed"})

    max_bytes = current_app.config["MAX_UPLOAD_BYTES"]
    data = file.stream.read(max_bytes + 1)
    if not data:
        raise ValidationError({field: "File is empty"})
    if len(data) > max_bytes:
        raise ValidationError({field: f"File exceeds {max_bytes // (1024 * 1024)} MB"})
    if not data.startswith(_SIGNATURES[ext]):
        raise ValidationError({field: "File content does not match its extension"})
    return data, stem, ext


def _store(data: bytes, stem: str, ext: str, folder: str) -> str:
    safe_stem = secure_filename(stem) or "image"
    name = f"{time.time_ns()}_{secrets.token_hex(4)}_{safe_stem}{ext}"
    target_dir = Path(current_app.config["UPLOAD_FOLDER"]) / folder
    target_dir.mkdir(parents=True, exist_ok=True)
    (target_dir / name).write_bytes(data)
    return name


def save_image(file: FileStorage, folder: str, field: str = "image") -> str:
    """
    Validate and store one uploaded image; returns the stored file name.

    Names look like <ns-timestamp>_<random>_<sanitized-name><ext>, so two
    uploads of the same file never overwrite each other.
    """
    data, stem, ext = _read_checked(file, field)
    return _store(data, stem, ext, folder)


def save_images(files: list[FileStorage], folder: str, field: str = "images") -> list[str]:
    """Validate every file before writing any of them."""
    checked = [_read_checked(f, field) for f in files if f and f.filename]
    return [_store(data, stem, ext, folder) for data, stem, ext in checked]


def remove_files(folder: str, names: list[str]) -> None:
    """Delete stored files after their rows are gone; missing files are ignored."""
    target_dir = Path(current_app.config["UPLOAD_FOLDER"]) / folder
    for name in names:
        if not name:
            continue
        try:
            (target_dir / os.path.basename(name)).unlink(missing_ok=True)
        except OSError:
            current_app.logger.warning("Could not remove upload %s/%s", folder, name, exc_info=True)
