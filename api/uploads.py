"""
api.uploads - Save a multipart upload to the temp upload directory.

The saved path is handed to import_engine, which deletes it once the
import finishes (successfully or not).
"""

import uuid
from pathlib import Path

from flask import current_app, request
from werkzeug.utils import secure_filename

from import_engine.errors import ImportFileError


def save_upload(extensions, field: str = "file") -> Path:
    """Store request.files[field] under UPLOAD_DIR and return its path."""
    file = request.files.get(field)
    if file is None or not file.filename:
        raise ImportFileError("No file uploaded")

    filename = secure_filename(file.filename)
    ext = Path(filename).suffix.lower()
    if ext not in extensions:
        raise ImportFileError(
            f"Unsupported file type {ext or '(none)'}; "
            f"expected {', '.join(sorted(extensions))}"
        )

    upload_dir = Path(current_app.config["UPLOAD_DIR"])
    upload_dir.mkdir(parents=True, exist_ok=True)
    dest = upload_dir / f"{uuid.uuid4().hex}_{filename}"
    file.save(dest)
    return dest
