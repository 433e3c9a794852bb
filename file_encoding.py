import base64
import mimetypes
import os
from typing import Iterable

from errors import FileTooLargeError, UnsupportedFileTypeError
from models import InlineData, PendingFile

DEFAULT_MIME_TYPE = "application/octet-stream"

def allowed_extension(filename: str, allowed: Iterable[str]) -> bool:
    return '.' in filename and filename.rsplit('.', 1)[1].lower() in set(allowed)

def guess_mime_type(filename: str, declared: str = None) -> str:
    """Prefer the browser-declared type, fall back to the file extension."""
    if declared and declared != DEFAULT_MIME_TYPE:
        return declared
    return mimetypes.guess_type(filename)[0] or DEFAULT_MIME_TYPE

def read_upload(file_storage, max_size: int, allowed_extensions: Iterable[str]) -> PendingFile:
    """Read a Werkzeug FileStorage into a PendingFile, enforcing type and size limits.

    Raises UnsupportedFileTypeError or FileTooLargeError before anything is stored.
    """
    filename = os.path.basename(file_storage.filename or "")
    if not allowed_extension(filename, allowed_extensions):
        raise UnsupportedFileTypeError(f"Unsupported file type: {filename or 'unknown'}")

    # Read one byte past the limit so oversized uploads are caught without loading them fully
    data = file_storage.stream.read(max_size + 1)
    if len(data) > max_size:
        raise FileTooLargeError(f"File too large (max {max_size // (1024 * 1024)}MB)")

    return PendingFile(
        name=filename,
        size=len(data),
        mime_type=guess_mime_type(filename, file_storage.mimetype),
        data=data,
    )

def to_data_url(pending: PendingFile) -> str:
    b64 = base64.b64encode(pending.data).decode()
    return f"data:{pending.mime_type};base64,{b64}"

def encode_file(pending: PendingFile) -> InlineData:
    """Encode a file as Gemini inline data: plain base64, data URL prefix removed."""
    b64 = to_data_url(pending).split(",", 1)[1]
    return InlineData(mime_type=pending.mime_type, data=b64)
