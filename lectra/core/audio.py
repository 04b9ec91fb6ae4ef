"""
Audio upload constraints shared by the server and the client.

The client pre-check and the server validation both read ``MAX_UPLOAD_BYTES``
so a file that passes locally is never rejected for size after upload.
"""

from pathlib import Path

MAX_UPLOAD_BYTES = 10 * 1024 * 1024

ALLOWED_MIME_TYPES: frozenset[str] = frozenset(
    {
        "audio/wav",
        "audio/x-wav",
        "audio/mpeg",
        "audio/mp3",
        "audio/mp4",
        "audio/m4a",
        "audio/x-m4a",
        "audio/ogg",
        "audio/webm",
        "audio/flac",
        "audio/3gpp",
        "audio/3gpp2",
        "audio/aac",
        "audio/x-caf",
    }
)

# Extension → MIME type used when uploading a local file
_EXTENSION_MIME_TYPES = {
    ".wav": "audio/wav",
    ".mp3": "audio/mpeg",
    ".m4a": "audio/m4a",
    ".mp4": "audio/mp4",
    ".ogg": "audio/ogg",
    ".webm": "audio/webm",
    ".flac": "audio/flac",
    ".3gp": "audio/3gpp",
    ".3g2": "audio/3gpp2",
    ".aac": "audio/aac",
    ".caf": "audio/x-caf",
}


def is_allowed_mime_type(mime_type: str | None) -> bool:
    """Return True if *mime_type* is on the upload allow-list."""
    return mime_type in ALLOWED_MIME_TYPES


def guess_mime_type(file_name: str) -> str:
    """Guess an upload MIME type from the file extension.

    Unknown extensions map to ``application/octet-stream``, which the
    server rejects.
    """
    return _EXTENSION_MIME_TYPES.get(Path(file_name).suffix.lower(), "application/octet-stream")
