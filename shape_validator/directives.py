"""
Tag directive parsing from documentation comments.

The schema generator attaches tags to each property from its doc comment:

    /**
     * Age in whole years.
     * @min 0
     * @max 99
     * @error {"max": "Nobody is that old"}
     */

Rules:
  - ``@name argument``: the argument runs to the end of the line, trimmed.
  - ``@error`` takes the REST of the comment (it may span lines), so it must
    be the last directive.
  - Comment gutters (``/**``, ``*``, ``*/``) and free text are ignored.
"""

from __future__ import annotations

import re

from .models import Tag
from .reporting import ERROR_TAG

_DIRECTIVE = re.compile(r"^@(?P<name>[A-Za-z_][\w-]*)(?:\s+(?P<argument>.*))?$")
_OPENING = re.compile(r"^/\*+")
_CLOSING = re.compile(r"\*+/$")
_GUTTER = re.compile(r"^\*+(?!/)\s?")


def _strip_gutter(line: str) -> str:
    line = line.strip()
    line = _OPENING.sub("", line)
    line = _CLOSING.sub("", line)
    return _GUTTER.sub("", line.strip()).strip()


def parse_tag_directives(text: str) -> list[Tag]:
    """Extract the ordered tag list from a documentation comment."""
    lines = [_strip_gutter(line) for line in text.splitlines()]
    tags: list[Tag] = []

    for index, line in enumerate(lines):
        match = _DIRECTIVE.match(line)
        if not match:
            continue
        name = match.group("name")
        argument = (match.group("argument") or "").strip()

        if name == ERROR_TAG:
            rest = [argument] + lines[index + 1:]
            tags.append(Tag(name=name, argument="\n".join(rest).strip()))
            break
        tags.append(Tag(name=name, argument=argument))

    return tags
