"""Local filtering of already-loaded transcriptions (no network calls)."""

from collections.abc import Iterable


def filter_transcriptions(items: Iterable[dict], query: str) -> list[dict]:
    """Keep items whose ``transcription_text`` contains *query*, ignoring case.

    A blank query returns every item.
    """
    needle = query.strip().casefold()
    if not needle:
        return list(items)
    return [
        item for item in items if needle in (item.get("transcription_text") or "").casefold()
    ]
