"""Per-bundle preprocessing and per-extension concatenation."""

from __future__ import annotations

from collections import Counter
from pathlib import Path
from typing import Callable, Dict, Iterable

from .comments import comment_wrap
from .compilers import CompileDetails
from .directives import DirectiveResolver, is_script, read_text, terminate
from .errors import CompileError, ManifestError
from .logging import get_logger
from .models import Bundle, DependencyTree


class Reducer:
    """Builds one concatenated document per requested output extension."""

    def __init__(
        self,
        resolver: DirectiveResolver | None = None,
        reader: Callable[[Path], str] | None = None,
    ) -> None:
        self._read = reader or read_text
        self.resolver = resolver or DirectiveResolver(reader=self._read)
        self.logger = get_logger("reducer")

    def preprocess(self, bundle: Bundle, details: CompileDetails) -> str:
        """Assemble dependencies and bundle content, inline directives, compile."""
        meta = bundle.meta
        content = ""

        if bundle.dependencies:
            content += "\n".join(
                comment_wrap(f"[square] dependency: {dependency}", meta.extension)
                + self._read_dependency(bundle, dependency)
                for dependency in bundle.dependencies
            )

        content += comment_wrap(f"[square] bundle: {meta.location}", meta.extension)
        content += meta.content
        content = self.resolver.resolve(
            content, meta.extension, meta.directory, frozenset({meta.location})
        )

        if meta.compiler is None:
            return content

        try:
            compiled = meta.compiler.compile(content, details, bundle)
        except CompileError:
            raise
        except Exception as exc:
            raise CompileError(
                f"Failed to compile {meta.location} from {meta.extension} to {meta.output}: {exc}",
                meta.location,
            ) from exc

        return compiled + comment_wrap(
            f"[square] the code above is compiled from {meta.extension} to {meta.output}\n"
            f"[square] see {meta.location}",
            meta.output,
        )

    def _read_dependency(self, bundle: Bundle, dependency: str) -> str:
        try:
            return self._read(Path(dependency))
        except (OSError, UnicodeDecodeError) as exc:
            raise ManifestError(
                f"Failed to read the dependency {dependency} of the {bundle.key} bundle: {exc}"
            ) from exc

    def reduce(
        self, tree: DependencyTree, platform: str, extensions: Iterable[str]
    ) -> Dict[str, str]:
        """Concatenate bundles in tree order for every requested output extension.

        ``index``/``count`` passed to compilers are computed over bundles that
        share the *source* extension, and every bundle in the tree advances the
        position whether or not its output was requested.
        """
        wanted = set(extensions)
        totals = Counter(bundle.meta.extension for bundle in tree.tree)
        remaining = dict(totals)
        documents: Dict[str, str] = {}

        for bundle in tree.tree:
            extension = bundle.meta.extension
            output = bundle.meta.output
            total = totals[extension]
            details = CompileDetails(
                index=total - remaining[extension],
                count=total,
                platform=platform,
            )
            remaining[extension] -= 1

            if output not in wanted:
                continue

            self.logger.debug("Preprocessing %s (%d/%d)", bundle.key, details.index + 1, total)
            content = self.preprocess(bundle, details)
            document = documents.get(output, "")
            if is_script(output):
                document = terminate(document)
            documents[output] = f"{document}\n{content}".strip()

        return documents


__all__ = ["Reducer"]
