"""Server import resolution — resolves ``"module:attribute"`` strings to Server instances.

Shared utility used by ``wren run`` and ``wren routes``.
"""

import importlib

from wren.app import Server


def resolve_server(import_string: str) -> Server:
    """Resolve an import string to a wren Server instance.

    Accepts ``"module:attribute"`` format. When the attribute portion
    is omitted, defaults to ``"server"`` (e.g. ``"myapi"`` resolves to
    ``myapi.server``).

    A callable that is not a Server is treated as a factory and called.

    Raises:
        ModuleNotFoundError: If the module cannot be imported.
        AttributeError: If the attribute does not exist on the module.
        TypeError: If the resolved object is not a wren ``Server``.
    """
    module_path, _, attr_name = import_string.partition(":")
    if not attr_name:
        attr_name = "server"

    module = importlib.import_module(module_path)
    obj = getattr(module, attr_name)

    if callable(obj) and not isinstance(obj, Server):
        try:
            obj = obj()
        except Exception as exc:
            msg = f"Factory function {import_string!r} raised an error: {exc}"
            raise TypeError(msg) from exc

    if not isinstance(obj, Server):
        msg = f"{import_string!r} resolved to {type(obj).__name__}, not a wren.Server instance"
        raise TypeError(msg)

    return obj
