"""Build tags and ``{dotted.path}`` output templates."""

from __future__ import annotations

import hashlib
import re
from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from .git import VCSMetadata
from .models import Collection, Configuration
from .stores import ExpiringCache

_PLACEHOLDER = re.compile(r"\{([^{]+?)\}")

BRANCH_KEY = "git branch"
COMMIT_KEY = "git commit"


def lookup(data: Any, path: str) -> Any:
    """Return the value at a dotted ``path`` or ``None`` when it is missing.

    Numeric segments index into sequences. A key containing literal dots is
    used as a fallback when walking the path finds nothing.
    """
    current = data
    for segment in path.split("."):
        current = _step(current, segment)
        if current is None:
            break
    if current is None and isinstance(data, Mapping):
        return data.get(path)
    return current


def _step(value: Any, segment: str) -> Any:
    if isinstance(value, Mapping):
        if segment in value:
            return value[segment]
        if segment.isdigit():
            return value.get(int(segment))
        return None
    if isinstance(value, Sequence) and not isinstance(value, str) and segment.isdigit():
        index = int(segment)
        return value[index] if index < len(value) else None
    return None


def template(text: str, data: Mapping[str, Any]) -> str:
    """Replace ``{a.b.c}`` placeholders; unresolved ones become empty strings."""

    def _replace(match: "re.Match[str]") -> str:
        value = lookup(data, match.group(1).strip())
        return "" if value is None else str(value)

    return _PLACEHOLDER.sub(_replace, text)


class TagGenerator:
    """Builds the property bag used to render output paths and license headers."""

    def __init__(
        self,
        cache: ExpiringCache,
        vcs: VCSMetadata,
        *,
        env: str = "development",
        user: str = "anonymous",
        host: str = "localhost",
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.cache = cache
        self.vcs = vcs
        self.env = env
        self.user = user
        self.host = host
        self._clock = clock or datetime.now

    def tag(
        self,
        collection: Optional[Collection] = None,
        configuration: Optional[Configuration] = None,
    ) -> Dict[str, Any]:
        """Return the tag bag for ``collection``.

        ``type`` is the collection's distribution kind and falls back to
        ``min`` without a collection. Collection fields and the manifest
        ``tags`` are layered on top of the computed values, in that order.
        """
        fields = collection.as_dict() if collection is not None else {}
        content = fields.get("content") or ""
        now = self._clock()

        bag: Dict[str, Any] = {
            "type": fields.get("distribution") or "min",
            "md5": hashlib.md5(content.encode("utf-8")).hexdigest(),
            "branch": self._memoized(BRANCH_KEY, self.vcs.branch),
            "sha": self._memoized(COMMIT_KEY, self.vcs.commit),
            "ext": fields.get("extension") or "js",
            "date": now.date().isoformat(),
            "year": now.year,
            "user": self.user,
            "host": self.host,
            "env": self.env,
        }
        bag.update({key: value for key, value in fields.items() if value is not None})
        if configuration is not None:
            bag.update(configuration.tags)
        return bag

    def _memoized(self, key: str, fetch: Callable[[], str]) -> str:
        if self.cache.has(key):
            return self.cache.get(key, "")
        return self.cache.set(key, fetch() or "")


__all__ = ["TagGenerator", "lookup", "template"]
