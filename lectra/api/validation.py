"""
Upload and input validation for the transcription routes.

``validated_upload`` is a FastAPI dependency: it rejects the request before
any recognition, storage or database work happens.
"""

from fastapi import File, Form, UploadFile

from lectra.core.audio import ALLOWED_MIME_TYPES, MAX_UPLOAD_BYTES, is_allowed_mime_type
from lectra.core.exceptions import FileTooLargeError, ValidationFailedError
from lectra.core.languages import DEFAULT_LANGUAGE_CODE, is_valid_language_code
from lectra.services.pipeline import AudioUpload


def validate_language_code(code: str) -> str:
    """Return *code* if supported, otherwise raise a 400."""
    if not is_valid_language_code(code):
        raise ValidationFailedError(f"Invalid language code: {code}", code="INVALID_LANGUAGE")
    return code


async def validated_upload(
    audio: UploadFile | None = File(None),
    language_code: str | None = Form(None),
) -> AudioUpload:
    """Validate the multipart ``audio`` field and ``language_code``.

    Checks, in order: file present, MIME type allowed, non-empty,
    at most ``MAX_UPLOAD_BYTES`` (413), language supported.
    """
    if audio is None:
        raise ValidationFailedError("No audio file uploaded", code="NO_FILE")

    mime_type = audio.content_type or ""
    if not is_allowed_mime_type(mime_type):
        raise ValidationFailedError(
            f"Invalid file type. Allowed types: {', '.join(sorted(ALLOWED_MIME_TYPES))}",
            code="INVALID_FILE_TYPE",
        )

    # Read one byte past the limit so oversized uploads are detected without buffering them whole
    data = await audio.read(MAX_UPLOAD_BYTES + 1)
    if not data:
        raise ValidationFailedError("Uploaded file is empty", code="EMPTY_FILE")
    if len(data) > MAX_UPLOAD_BYTES:
        raise FileTooLargeError(MAX_UPLOAD_BYTES)

    code = validate_language_code(language_code or DEFAULT_LANGUAGE_CODE)
    return AudioUpload(
        file_name=audio.filename or "audio",
        mime_type=mime_type,
        data=data,
        language_code=code,
    )
