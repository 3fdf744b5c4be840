"""Request headers, keyed by lower-cased name.

The ASGI scope hands over ``(name, value)`` byte pairs. They are folded
once into a plain dict: a name sent more than once keeps every value,
joined with ``", "`` in arrival order, which is how ``Accept`` and the
other list-valued headers wren reads are meant to be combined.
"""

from collections.abc import Iterable, Mapping


class Headers:
    """Read-only, case-insensitive request headers."""

    __slots__ = ("_fields",)

    def __init__(self, raw: Iterable[tuple[bytes, bytes]] = ()) -> None:
        fields: dict[str, str] = {}
        for name, value in raw:
            key = name.decode("latin-1").lower()
            text = value.decode("latin-1")
            fields[key] = f"{fields[key]}, {text}" if key in fields else text
        self._fields = fields

    @classmethod
    def from_dict(cls, headers: Mapping[str, str]) -> "Headers":
        """Build from a plain ``str -> str`` mapping (tests, tooling)."""
        return cls((name.encode("latin-1"), value.encode("latin-1")) for name, value in headers.items())

    def get(self, name: str, default: str | None = None) -> str | None:
        return self._fields.get(name.lower(), default)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._fields

    def to_dict(self) -> dict[str, str]:
        """Copy of the folded fields, as handed to trace probes."""
        return dict(self._fields)

    def __repr__(self) -> str:
        return f"Headers({self._fields!r})"
