"""Formatters — content-type keyed serializers and their preference order.

``merge_formatters`` combines the defaults with user-supplied formatters
into the table and the acceptable list handed to every response.

Keys have the form ``type/subtype[; q=weight]`` or a bare alias such as
``"json"``. Without explicit weights, later entries outrank earlier ones,
so custom formatters outrank the defaults::

    table = merge_formatters({"text/csv; q=0.9": to_csv})
    table.acceptable  # ("text/csv", "application/json", ...)
"""

import mimetypes
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType

from wren._internal.types import Formatter
from wren.errors import ConfigurationError
from wren.formatters.builtin import DEFAULT_FORMATTERS

# Bare keys resolved before consulting the mimetypes table
MIME_ALIASES: dict[str, str] = {
    "json": "application/json",
    "jsonp": "application/javascript",
    "javascript": "application/javascript",
    "text": "text/plain",
    "txt": "text/plain",
    "html": "text/html",
    "binary": "application/octet-stream",
    "octet": "application/octet-stream",
}


@dataclass(frozen=True, slots=True)
class FormatterTable:
    """Merged formatters plus the acceptable types, most preferred first."""

    formatters: Mapping[str, Formatter]
    acceptable: tuple[str, ...]


def resolve_media_type(key: str) -> str:
    """Map a bare alias (``"json"``, ``"csv"``) to ``type/subtype``."""
    key = key.strip().lower()
    if "/" in key:
        return key
    if key in MIME_ALIASES:
        return MIME_ALIASES[key]
    guessed, _ = mimetypes.guess_type(f"file.{key}")
    if guessed is None:
        msg = f"Cannot resolve formatter key {key!r} to a media type."
        raise ConfigurationError(msg)
    return guessed


def parse_formatter_key(key: str) -> tuple[str, float | None]:
    """Split ``"type; q=weight"`` into the canonical type and the weight."""
    media, *params = key.split(";")
    weight: float | None = None
    for param in params:
        name, _, value = param.strip().partition("=")
        if name.strip() == "q":
            try:
                weight = float(value)
            except ValueError as exc:
                msg = f"Invalid quality value in formatter key {key!r}."
                raise ConfigurationError(msg) from exc
    return resolve_media_type(media), weight


def merge_formatters(
    custom: Mapping[str, Formatter] | None = None,
    defaults: Mapping[str, Formatter] = DEFAULT_FORMATTERS,
) -> FormatterTable:
    """Merge *custom* over *defaults* and rank the result.

    Explicit weights rank as ``weight * 10``; entries without one rank by
    insertion index offset by ``len(defaults)``. The sort is descending
    and stable, so exact ties keep declaration order. A type registered
    twice keeps the later function and its best-ranked position.
    """
    offset = len(defaults)
    table: dict[str, Formatter] = {}
    ranked: list[tuple[float, str]] = []

    entries = [*defaults.items(), *(custom or {}).items()]
    for index, (key, formatter) in enumerate(entries):
        if not callable(formatter):
            msg = f"Formatter for {key!r} must be callable, got {type(formatter).__name__}."
            raise ConfigurationError(msg)
        media_type, weight = parse_formatter_key(key)
        table[media_type] = formatter
        priority = weight * 10 if weight is not None else index + offset
        ranked.append((priority, media_type))

    ranked.sort(key=lambda entry: entry[0], reverse=True)

    acceptable: list[str] = []
    for _, media_type in ranked:
        if media_type not in acceptable:
            acceptable.append(media_type)

    return FormatterTable(formatters=MappingProxyType(table), acceptable=tuple(acceptable))


__all__ = [
    "DEFAULT_FORMATTERS",
    "FormatterTable",
    "merge_formatters",
    "parse_formatter_key",
    "resolve_media_type",
]
