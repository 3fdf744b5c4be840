"""Shared type aliases used across wren modules."""

from collections.abc import Callable
from typing import Any, TypeAlias

# Chain handler, called as handler(request, response, next)
Handler: TypeAlias = Callable[..., Any]

# Formatter, called as formatter(request, response, body) -> bytes | str
Formatter: TypeAlias = Callable[..., Any]

# Event listener; arguments depend on the event
Listener: TypeAlias = Callable[..., Any]
