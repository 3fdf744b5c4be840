"""HTML formatter backed by a kida template.

Not part of the defaults; pass it as a custom formatter::

    page = html_formatter("<h1>{{ status }}</h1><p>{{ body }}</p>")
    server = Server(ServerConfig(formatters={"text/html": page}))

The template sees ``body`` (the value passed to ``send``), ``error``
(the error body dict when an exception is sent, else ``None``),
``status`` and ``request``; for errors, ``code`` and ``message``
are also set.
"""

from typing import Any

from kida import Environment

from wren._internal.types import Formatter
from wren.formatters.builtin import error_body

DEFAULT_TEMPLATE = """<!DOCTYPE html>
<html>
<head><title>{{ status }}</title></head>
<body>
{% if error %}<h1>{{ code }}</h1>
<p>{{ message }}</p>{% else %}{{ body }}{% endif %}
</body>
</html>
"""


def html_formatter(
    source: str = DEFAULT_TEMPLATE,
    *,
    env: Environment | None = None,
) -> Formatter:
    """Compile *source* once and return a formatter rendering it."""
    environment = env or Environment(autoescape=True)
    template = environment.from_string(source)

    def format_html(request: Any, response: Any, body: Any) -> str:
        error = error_body(body) if isinstance(body, BaseException) else None
        return template.render(
            {
                "body": None if error is not None else body,
                "error": error,
                "code": error["code"] if error else None,
                "message": error["message"] if error else None,
                "status": getattr(response, "status_code", 200),
                "request": request,
            }
        )

    return format_html
