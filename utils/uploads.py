"""
Staging of multipart uploads.

Files from request.files are written to UPLOAD_TEMP_DIR under a unique,
sanitized name; the controllers hand that local path to the media store,
which removes it once consumed.
"""
from __future__ import annotations

import os
import uuid
from typing import Optional

from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename


def stage_upload(file: Optional[FileStorage], temp_dir: str) -> Optional[str]:
    """Save an uploaded file to temp_dir and return its path, or None if nothing was sent."""
    if file is None or not file.filename:
        return None
    os.makedirs(temp_dir, exist_ok=True)
    name = secure_filename(file.filename) or "upload"
    path = os.path.join(temp_dir, f"{uuid.uuid4().hex}-{name}")
    file.save(path)
    return path
