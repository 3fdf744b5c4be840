"""Accept-header negotiation against the server's acceptable list.

The acceptable list is already ordered by server preference (see
``wren.formatters.merge_formatters``); the client's ``Accept`` header
ranks it further by quality value.
"""

from collections.abc import Sequence
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class MediaRange:
    """One entry of an ``Accept`` header, e.g. ``text/*;q=0.5``."""

    type: str
    subtype: str
    q: float = 1.0

    def matches(self, media_type: str) -> bool:
        main, _, sub = media_type.partition("/")
        if self.type != "*" and self.type != main:
            return False
        return self.subtype in ("*", sub)

    @property
    def specificity(self) -> int:
        return (self.type != "*") + (self.subtype != "*")


def parse_accept(header: str | None) -> list[MediaRange]:
    """Parse an ``Accept`` header into media ranges.

    A missing or empty header is treated as ``*/*``. Malformed quality
    values fall back to ``1.0``; entries without a ``/`` are skipped.
    """
    if not header or not header.strip():
        return [MediaRange("*", "*")]
    ranges: list[MediaRange] = []
    for part in header.split(","):
        media, *params = part.split(";")
        media = media.strip().lower()
        if "/" not in media:
            continue
        q = 1.0
        for param in params:
            key, _, value = param.strip().partition("=")
            if key.strip() == "q":
                try:
                    q = float(value)
                except ValueError:
                    q = 1.0
        main, _, sub = media.partition("/")
        ranges.append(MediaRange(main, sub, q))
    return ranges


def quality(ranges: Sequence[MediaRange], media_type: str) -> float:
    """Quality the client assigns to *media_type* (most specific range wins)."""
    best: MediaRange | None = None
    for media_range in ranges:
        if media_range.matches(media_type) and (
            best is None or media_range.specificity > best.specificity
        ):
            best = media_range
    return best.q if best is not None else 0.0


def negotiate_type(accept: str | None, acceptable: Sequence[str]) -> str | None:
    """Pick the acceptable type the client likes best.

    Ties on quality keep the server's order. Returns ``None`` when the
    client accepts none of them.
    """
    ranges = parse_accept(accept)
    best: str | None = None
    best_q = 0.0
    for media_type in acceptable:
        q = quality(ranges, media_type)
        if q > best_q:
            best = media_type
            best_q = q
    return best
