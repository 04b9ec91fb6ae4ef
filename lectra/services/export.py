"""
Plain-text export of a transcription.

Produces a banner-framed document with the source file, date, language and
word count followed by the transcript body.
"""

import re
import time
from datetime import datetime
from pathlib import PurePath

from lectra.core.languages import get_language_name
from lectra.core.utils import format_duration, format_file_size

_RULE_WIDTH = 60
_UNSAFE_NAME_CHARS = re.compile(r"[^a-zA-Z0-9_-]")


def render_text_export(transcription) -> str:
    """Render *transcription* (ORM row or record model) as a text document."""
    created: datetime = transcription.created_at
    lines = [
        "=" * _RULE_WIDTH,
        "LECTRA TRANSCRIPTION",
        "=" * _RULE_WIDTH,
        "",
        f"File: {transcription.audio_file_name}",
        f"Date: {created.strftime('%Y-%m-%d %H:%M')}",
        f"Language: {get_language_name(transcription.language_code)} "
        f"({transcription.language_code})",
    ]
    if transcription.audio_duration_seconds:
        lines.append(f"Duration: {format_duration(transcription.audio_duration_seconds)}")
    if transcription.audio_file_size_bytes:
        lines.append(f"File Size: {format_file_size(transcription.audio_file_size_bytes)}")
    if transcription.word_count:
        lines.append(f"Word Count: {transcription.word_count}")

    lines.extend(
        [
            "",
            "-" * _RULE_WIDTH,
            "TRANSCRIPTION",
            "-" * _RULE_WIDTH,
            "",
            transcription.transcription_text,
            "",
            "=" * _RULE_WIDTH,
            "Generated with Lectra AI Note Maker",
            "=" * _RULE_WIDTH,
        ]
    )
    return "\n".join(lines)


def export_file_name(audio_file_name: str, extension: str = "txt") -> str:
    """Build a safe download name: ``{stem[:50]}_{epoch_ms}.{extension}``.

    The audio extension is dropped and characters outside ``[a-zA-Z0-9_-]``
    become ``_``. An empty stem falls back to ``transcription``.
    """
    stem = _UNSAFE_NAME_CHARS.sub("_", PurePath(audio_file_name).stem)[:50]
    return f"{stem or 'transcription'}_{int(time.time() * 1000)}.{extension}"
