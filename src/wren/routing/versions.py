"""Version matching for ``Accept-Version``.

Supports the range forms clients actually send::

    "*"            any version
    "1.2.3"        exact
    "1", "1.x"     any 1.*.*
    "1.2", "~1.2"  any 1.2.*
    "^1"           same as "1"

Routes mounted without versions satisfy every request.
"""

from collections.abc import Iterable


def _parts(version: str) -> list[str]:
    version = version.strip().lstrip("v")
    return [part for part in version.split(".") if part]


def version_key(version: str) -> tuple[int, ...]:
    """Sort key; non-numeric parts count as zero."""
    key: list[int] = []
    for part in _parts(version):
        digits = "".join(ch for ch in part if ch.isdigit())
        key.append(int(digits) if digits else 0)
    return tuple(key)


def satisfies(version: str, requested: str) -> bool:
    """Whether *version* falls inside the *requested* range."""
    requested = requested.strip()
    if requested in ("", "*", "x"):
        return True
    wanted = _parts(requested.lstrip("~^=").strip())
    have = _parts(version)
    for index, part in enumerate(wanted):
        if part in ("x", "X", "*"):
            return True
        if index >= len(have) or have[index] != part:
            return False
    return True


def max_satisfying(versions: Iterable[str], requested: str) -> str | None:
    """Highest of *versions* inside *requested*, or ``None``."""
    matching = [v for v in versions if satisfies(v, requested)]
    if not matching:
        return None
    return max(matching, key=version_key)
