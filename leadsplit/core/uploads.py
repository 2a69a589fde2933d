from __future__ import annotations

import uuid
from pathlib import Path
from typing import BinaryIO

from leadsplit.core.errors import ValidationFault

CHUNK_SIZE = 64 * 1024


def ensure_upload_root(root: Path) -> Path:
    root.mkdir(parents=True, exist_ok=True)
    return root


def save_upload(root: Path, filename: str, source: BinaryIO, *, max_bytes: int) -> Path:
    """Persist an uploaded file under ``root`` and return its path.

    The stored name is prefixed with a random token so two uploads of the
    same file never overwrite each other.
    """

    safe_name = Path(filename).name
    target = ensure_upload_root(root) / f"{uuid.uuid4().hex[:12]}-{safe_name}"
    written = 0
    with target.open("wb") as buffer:
        while chunk := source.read(CHUNK_SIZE):
            written += len(chunk)
            if written > max_bytes:
                break
            buffer.write(chunk)
    if written > max_bytes:
        target.unlink(missing_ok=True)
        raise ValidationFault(f"File exceeds the maximum upload size of {max_bytes} bytes")
    return target
