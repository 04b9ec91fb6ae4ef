"""
Structured cache keys for the client query cache.

A :class:`QueryKey` is ``(entity, view, params)``. Keys render to a canonical
``/``-separated string and compare segment-wise, so invalidating by a prefix
key reaches every cached entry below it. List-family views nest under
``list`` (``list/infinite``, ``list/search``): invalidating ``lists()`` marks
every page of every list stale in one call, while detail entries are
untouched.
"""

from dataclasses import dataclass
from urllib.parse import quote

ENTITY = "transcriptions"


@dataclass(frozen=True, order=True)
class QueryKey:
    entity: str
    view: str = ""
    params: tuple[tuple[str, str], ...] = ()

    @classmethod
    def of(cls, entity: str, view: str = "", **params: object) -> "QueryKey":
        """Build a key; params are sorted by name and ``None`` values dropped."""
        items = tuple(sorted((k, str(v)) for k, v in params.items() if v is not None))
        return cls(entity=entity, view=view, params=items)

    def segments(self) -> tuple[str, ...]:
        parts = [self.entity]
        if self.view:
            parts.extend(self.view.split("/"))
        parts.extend(f"{k}={quote(v, safe='')}" for k, v in self.params)
        return tuple(parts)

    def render(self) -> str:
        """Canonical string form, e.g. ``transcriptions/list/limit=20/offset=0``."""
        return "/".join(self.segments())

    def matches(self, prefix: "QueryKey") -> bool:
        """True if *prefix*'s segments are a leading run of this key's segments."""
        mine, theirs = self.segments(), prefix.segments()
        return mine[: len(theirs)] == theirs

    def __str__(self) -> str:
        return self.render()


# ---------------------------------------------------------------------------
# Transcription key factory
# ---------------------------------------------------------------------------


def all_keys() -> QueryKey:
    return QueryKey(ENTITY)


def lists() -> QueryKey:
    return QueryKey(ENTITY, "list")


def list_page(limit: int, offset: int) -> QueryKey:
    return QueryKey.of(ENTITY, "list", limit=limit, offset=offset)


def infinite(limit: int) -> QueryKey:
    return QueryKey.of(ENTITY, "list/infinite", limit=limit)


def search(term: str, limit: int, offset: int) -> QueryKey:
    return QueryKey.of(ENTITY, "list/search", q=term, limit=limit, offset=offset)


def details() -> QueryKey:
    return QueryKey(ENTITY, "detail")


def detail(transcription_id: str) -> QueryKey:
    return QueryKey.of(ENTITY, "detail", id=transcription_id)


HEALTH = QueryKey("health")
LANGUAGES = QueryKey("languages")
