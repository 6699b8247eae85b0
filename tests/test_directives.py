"""Tests for squarebuild.directives."""

from __future__ import annotations

import pytest

from squarebuild.directives import DirectiveResolver, terminate
from squarebuild.errors import CycleError, DirectiveError
from tests._fixtures.project_builder import ProjectBuilder


def _resolve(project: ProjectBuilder, name: str, extension: str) -> str:
    text = (project.path() / name).read_text(encoding="utf-8")
    return DirectiveResolver().resolve(text, extension, project.path())


def test_import_inlines_file_and_repairs_previous_statement(project: ProjectBuilder) -> None:
    project.write(
        {
            "main.js": 'var a = 1\n// [square] @import "lib.js"\nvar c = 3;',
            "lib.js": "var b = 2\n",
        }
    )

    result = _resolve(project, "main.js", "js")

    marker = f"/* [square] directive: {project.location('lib.js')} */"
    assert result == f"var a = 1;\n{marker}\nvar b = 2\nvar c = 3;"


def test_stylesheets_are_not_terminated(project: ProjectBuilder) -> None:
    project.write(
        {
            "main.css": 'a { color: red }\n/* [square] @include "b.css" */',
            "b.css": "b {}",
        }
    )

    result = _resolve(project, "main.css", "css")

    marker = f"/* [square] directive: {project.location('b.css')} */"
    assert result == f"a {{ color: red }}\n{marker}\nb {{}}"


def test_nested_directives_resolve_relative_to_including_file(project: ProjectBuilder) -> None:
    project.write(
        {
            "main.js": '// [square] @require "vendor/outer.js"',
            "vendor/outer.js": '// [square] @require "inner.js"',
            "vendor/inner.js": "var inner = true;",
        }
    )

    result = _resolve(project, "main.js", "js")

    assert project.location("vendor/inner.js") in result
    assert result.endswith("var inner = true;")


def test_text_before_directive_is_kept(project: ProjectBuilder) -> None:
    project.write(
        {
            "main.js": 'var x = 1; // [square] @import "lib.js"',
            "lib.js": "var y = 2;",
        }
    )

    result = _resolve(project, "main.js", "js")

    assert result.startswith("var x = 1; /* [square] directive:")
    assert result.endswith("var y = 2;")


def test_siblings_may_include_the_same_file(project: ProjectBuilder) -> None:
    project.write(
        {
            "main.js": '// [square] @include "shared.js"\n// [square] @include "shared.js"',
            "shared.js": "var shared = 1;",
        }
    )

    result = _resolve(project, "main.js", "js")

    assert result.count("var shared = 1;") == 2


def test_missing_target_raises_directive_error(project: ProjectBuilder) -> None:
    project.write({"main.js": '// [square] @import "nope.js"'})

    with pytest.raises(DirectiveError) as excinfo:
        _resolve(project, "main.js", "js")

    assert not isinstance(excinfo.value, CycleError)
    assert "nope.js" in str(excinfo.value)


def test_directive_without_file_raises(project: ProjectBuilder) -> None:
    project.write({"main.js": '// [square] @import ""'})

    with pytest.raises(DirectiveError):
        _resolve(project, "main.js", "js")


def test_mutual_inclusion_is_a_cycle(project: ProjectBuilder) -> None:
    project.write(
        {
            "a.js": '// [square] @include "b.js"',
            "b.js": '// [square] @include "a.js"',
        }
    )

    with pytest.raises(CycleError) as excinfo:
        _resolve(project, "a.js", "js")

    assert excinfo.value.chain[-1] == project.location("b.js")


def test_seen_seeds_the_inclusion_chain(project: ProjectBuilder) -> None:
    project.write({"self.js": '// [square] @include "self.js"'})
    text = (project.path() / "self.js").read_text(encoding="utf-8")

    with pytest.raises(CycleError):
        DirectiveResolver().resolve(
            text, "js", project.path(), frozenset({project.location("self.js")})
        )


def test_custom_reader_is_used(project: ProjectBuilder) -> None:
    project.write({"lib.js": "ignored"})
    reads = []

    def reader(path):
        reads.append(path)
        return "var from_reader = 1;"

    result = DirectiveResolver(reader=reader).resolve(
        '// [square] @import "lib.js"', "js", project.path()
    )

    assert result.endswith("var from_reader = 1;")
    assert [str(path) for path in reads] == [project.location("lib.js")]


def test_terminate_appends_semicolon_when_missing() -> None:
    assert terminate("var a = 1") == "var a = 1;"
    assert terminate("var a = 1;") == "var a = 1;"
    assert terminate("fn()\n  ") == "fn();"
    assert terminate("") == ""


def test_undecodable_target_raises_directive_error(project: ProjectBuilder) -> None:
    project.write({"main.js": '// [square] @import "binary.js"'})
    (project.path() / "binary.js").write_bytes(b"var b = '\xff';")

    with pytest.raises(DirectiveError, match="cannot be read") as excinfo:
        _resolve(project, "main.js", "js")

    assert isinstance(excinfo.value.__cause__, UnicodeDecodeError)
