"""Message Interpolation

Placeholder substitution for constraint messages. ``{name}`` is replaced by
the parameter of that name; a placeholder with no matching parameter is kept
verbatim. ``\\{``, ``\\}`` and ``\\\\`` produce literal characters.

    render("size must be between {min} and {max}", {"min": 2, "max": 10})
    -> "size must be between 2 and 10"
"""
from __future__ import annotations

import re
from functools import lru_cache
from typing import Any, Mapping

_TOKEN = re.compile(r"\\([{}\\])|\{([A-Za-z_][A-Za-z0-9_]*)\}")


@lru_cache(maxsize=512)
def _parse(template: str) -> tuple[tuple[bool, str], ...]:
    """Split a template into (is_placeholder, text) parts."""
    parts: list[tuple[bool, str]] = []
    pos = 0
    for match in _TOKEN.finditer(template):
        if match.start() > pos:
            parts.append((False, template[pos:match.start()]))
        if match.group(1) is not None:
            parts.append((False, match.group(1)))
        else:
            parts.append((True, match.group(2)))
        pos = match.end()
    if pos < len(template):
        parts.append((False, template[pos:]))
    return tuple(parts)


def _format(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple, frozenset, set)):
        return ", ".join(_format(v) for v in value)
    return str(value)


class MessageInterpolator:
    """Renders message templates against constraint parameters.

    Stateless apart from the shared template parse cache, so one instance is
    safe to use from many threads.
    """

    def render(self, template: str, parameters: Mapping[str, Any]) -> str:
        out: list[str] = []
        for is_placeholder, text in _parse(template):
            if not is_placeholder:
                out.append(text)
            elif text in parameters and parameters[text] is not None:
                out.append(_format(parameters[text]))
            else:
                out.append("{" + text + "}")
        return "".join(out)


def render(template: str, parameters: Mapping[str, Any]) -> str:
    """Module-level shortcut around a default interpolator."""
    return _DEFAULT.render(template, parameters)


_DEFAULT = MessageInterpolator()
