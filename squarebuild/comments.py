"""Comment syntax per file extension."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Optional


@dataclass(frozen=True)
class CommentStyle:
    """Delimiters used to open, continue and close a comment block."""

    header: str
    body: str
    footer: str


STYLES: Dict[str, CommentStyle] = {
    "block": CommentStyle(header="/*", body=" *", footer=" */"),
    "slashes": CommentStyle(header="//", body="//", footer=""),
    "hash": CommentStyle(header="#", body="#", footer=""),
    "triple-hash": CommentStyle(header="###", body="#", footer=" ###"),
    "markup": CommentStyle(header="<!--", body="  ", footer=" -->"),
}

EXTENSIONS: Dict[str, str] = {
    "js": "block",
    "mjs": "block",
    "cjs": "block",
    "ts": "block",
    "css": "block",
    "less": "block",
    "scss": "block",
    "styl": "block",
    "sass": "slashes",
    "coffee": "triple-hash",
    "html": "markup",
    "jade": "slashes",
}

_LINE_SPLIT = re.compile(r"\r\n|\n|\r")


def style_for(extension: str) -> Optional[CommentStyle]:
    """Return the comment style for an extension or a style name."""
    name = EXTENSIONS.get(extension, extension)
    return STYLES.get(name)


def comment_wrap(data: str, extension: str) -> str:
    """Wrap ``data`` in the comment syntax of ``extension``.

    Returns an empty string when the extension has no known comment syntax,
    so the annotation is dropped rather than corrupting the output.
    """
    style = style_for(extension)
    if style is None:
        return ""

    lines = _LINE_SPLIT.split(data)
    last = len(lines) - 1
    wrapped = []
    for index, line in enumerate(lines):
        header = index == 0
        footer = index == last
        if header and footer:
            wrapped.append(f"\n{style.header} {line}{style.footer}\n")
        elif header:
            wrapped.append(f"\n{style.header}\n{style.body} {line}")
        elif footer:
            closing = f"\n{style.footer}" if style.footer else ""
            wrapped.append(f"{style.body} {line}{closing}\n")
        else:
            wrapped.append(f"{style.body} {line}")
    return "\n".join(wrapped)


__all__ = ["CommentStyle", "EXTENSIONS", "STYLES", "comment_wrap", "style_for"]
