from collections.abc import Iterable, Sequence
from datetime import datetime, timezone
from typing import Any, TypeVar

T = TypeVar("T")


def now_utc() -> datetime:
    """Server clock used for every persisted timestamp."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to a naive value; backends without time zone support return those."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def title_key(title: Any) -> str | None:
    """Trimmed, case-folded title used as the secondary dedup key."""
    if title is None:
        return None
    key = str(title).strip().casefold()
    return key or None


def chunked(items: Sequence[T], size: int) -> list[list[T]]:
    return [list(items[i : i + size]) for i in range(0, len(items), size)]


def unique_strings(values: Iterable[Any]) -> list[str]:
    """Stringify, drop empties and dedupe while keeping first-seen order."""
    seen: set[str] = set()
    out: list[str] = []
    for value in values:
        if value is None:
            continue
        text = str(value)
        if not text or text in seen:
            continue
        seen.add(text)
        out.append(text)
    return out
