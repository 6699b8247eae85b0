"""Tests for squarebuild.manifest."""

from __future__ import annotations

import logging

import pytest

from squarebuild.compilers import CompilerRegistry
from squarebuild.errors import ManifestError
from squarebuild.manifest import ManifestParser, strip_json_comments
from tests._fixtures.doubles import RecordingCompiler
from tests._fixtures.project_builder import ProjectBuilder


def test_strip_json_comments_keeps_string_contents() -> None:
    text = '{\n  // line comment\n  "url": "http://example.com/*x*/", /* block */ "a": 1\n}'

    stripped = strip_json_comments(text)

    assert "line comment" not in stripped
    assert "block" not in stripped
    assert '"http://example.com/*x*/"' in stripped


def test_parse_commented_json_manifest(project: ProjectBuilder) -> None:
    project.write(
        {
            "a.js": "var a = 1;",
            "b.css": "b {}",
            "square.json": """
            {
              // scripts first
              "bundle": {
                "a.js": {"description": "entry"},
                /* then styles */
                "b.css": {}
              }
            }
            """,
        }
    )

    package = ManifestParser().parse(project.path() / "square.json")

    assert package.path == project.path().resolve()
    assert package.location == (project.path() / "square.json").resolve()
    assert list(package.bundles) == ["a.js", "b.css"]
    assert package.bundles["a.js"].description == "entry"
    assert package.configuration.dist == {
        "min": "bundle.{type}.{ext}",
        "dev": "bundle.{type}.{ext}",
    }
    assert package.meta.extensions == {"js": ["a.js"], "css": ["b.css"]}
    assert package.meta.files == [project.location("a.js"), project.location("b.css")]


def test_manifest_path_without_suffix_falls_back_to_json(project: ProjectBuilder) -> None:
    project.write({"a.js": "var a;"})
    project.manifest({"bundle": {"a.js": {}}})

    package = ManifestParser().parse(project.path() / "square")

    assert list(package.bundles) == ["a.js"]


def test_missing_manifest_raises(project: ProjectBuilder) -> None:
    with pytest.raises(ManifestError, match="does not exist"):
        ManifestParser().parse(project.path() / "missing.json")


def test_invalid_json_raises(project: ProjectBuilder) -> None:
    project.write({"square.json": "{ not json"})

    with pytest.raises(ManifestError, match="Failed to parse JSON"):
        ManifestParser().parse(project.path() / "square.json")


def test_missing_bundle_file_raises(project: ProjectBuilder) -> None:
    manifest = project.manifest({"bundle": {"ghost.js": {}}})

    with pytest.raises(ManifestError, match="ghost.js"):
        ManifestParser().parse(manifest)


def test_yaml_manifest_is_supported(project: ProjectBuilder) -> None:
    project.write(
        {
            "a.css": "a {}",
            "square.yml": """
            configuration:
              dist: "dist/{ext}/{type}.{ext}"
              tags:
                name: demo
            bundle:
              a.css:
                weight: 3
            """,
        }
    )

    package = ManifestParser().parse(project.path() / "square.yml")

    assert package.bundles["a.css"].weight == 3
    assert package.configuration.tags == {"name": "demo"}
    assert package.configuration.dist["min"] == "dist/{ext}/{type}.{ext}"


def test_list_bundles_keep_declaration_order(project: ProjectBuilder) -> None:
    project.write({"c.js": "c", "a.js": "a", "b.js": "b"})
    manifest = project.manifest({"bundle": ["c.js", "a.js", "b.js"]})

    package = ManifestParser().parse(manifest)

    assert [bundle.key for bundle in package.meta.tree] == ["c.js", "a.js", "b.js"]
    assert [bundle.weight for bundle in package.meta.tree] == [3, 2, 1]
    assert "generated" in package.bundles["a.js"].description


def test_dist_mapping_is_kept_per_kind(project: ProjectBuilder) -> None:
    project.write({"a.js": "a"})
    manifest = project.manifest(
        {
            "configuration": {"dist": {"min": "out/{type}.{ext}", "dev": "out/dev.{ext}"}},
            "bundle": {"a.js": {}},
        }
    )

    package = ManifestParser().parse(manifest)

    assert package.configuration.dist == {"min": "out/{type}.{ext}", "dev": "out/dev.{ext}"}


def test_invalid_dist_raises(project: ProjectBuilder) -> None:
    project.write({"a.js": "a"})
    manifest = project.manifest({"configuration": {"dist": 3}, "bundle": {"a.js": {}}})

    with pytest.raises(ManifestError, match="dist"):
        ManifestParser().parse(manifest)


def test_license_is_loaded_from_file(project: ProjectBuilder) -> None:
    project.write({"a.js": "a", "LICENSE": "(c) {year} {user}"})
    manifest = project.manifest(
        {"configuration": {"license": "LICENSE"}, "bundle": {"a.js": {}}}
    )

    package = ManifestParser().parse(manifest)

    assert package.configuration.license == "(c) {year} {user}"


def test_missing_license_is_dropped_with_warning(
    project: ProjectBuilder, caplog: pytest.LogCaptureFixture
) -> None:
    project.write({"a.js": "a"})
    manifest = project.manifest(
        {"configuration": {"license": "NOPE"}, "bundle": {"a.js": {}}}
    )

    with caplog.at_level(logging.WARNING, logger="squarebuild"):
        package = ManifestParser().parse(manifest)

    assert package.configuration.license is None
    assert "does not exist" in caplog.text


def test_imports_merge_bundles_relative_to_their_manifest(project: ProjectBuilder) -> None:
    project.write(
        {
            "a.js": "a",
            "vendor/x.js": "x",
            "vendor/square.json": '{"bundle": {"x.js": {"weight": 10}}}',
        }
    )
    manifest = project.manifest(
        {"configuration": {"import": ["vendor/square.json"]}, "bundle": {"a.js": {}}}
    )

    package = ManifestParser().parse(manifest)

    assert package.configuration.imports == ["vendor/square.json"]
    assert package.bundles["x.js"].meta.location == project.location("vendor/x.js")
    assert [bundle.key for bundle in package.meta.tree] == ["x.js", "a.js"]


def test_import_cycles_raise(project: ProjectBuilder) -> None:
    project.write(
        {
            "a.js": "a",
            "other.json": '{"configuration": {"import": "square.json"}}',
        }
    )
    manifest = project.manifest(
        {"configuration": {"import": "other.json"}, "bundle": {"a.js": {}}}
    )

    with pytest.raises(ManifestError, match="imports itself"):
        ManifestParser().parse(manifest)


def test_mapping_source_resolves_against_path(project: ProjectBuilder) -> None:
    project.write({"a.js": "a"})

    package = ManifestParser().parse(
        {"path": str(project.path()), "bundle": {"a.js": {}}, "name": "demo"}
    )

    assert package.location is None
    assert package.bundles["a.js"].meta.location == project.location("a.js")
    assert package.extra == {"name": "demo"}


def test_mapping_source_defaults_to_cwd(project: ProjectBuilder) -> None:
    project.write({"a.js": "a"})

    package = ManifestParser(cwd=project.path()).parse({"bundle": {"a.js": {}}})

    assert package.path == project.path().resolve()


def test_unknown_configuration_keys_are_kept(project: ProjectBuilder) -> None:
    project.write({"a.js": "a"})
    manifest = project.manifest(
        {"configuration": {"banner": True, "noupdate": True}, "bundle": {"a.js": {}}}
    )

    configuration = ManifestParser().parse(manifest).configuration

    assert configuration.noupdate is True
    assert configuration.extra == {"banner": True}


def test_compiler_decides_output_extension(project: ProjectBuilder) -> None:
    project.write({"app.coffee": "x = 1", "lib.js": "var y;"})
    manifest = project.manifest({"bundle": {"app.coffee": {}, "lib.js": {}}})
    compilers = CompilerRegistry({"coffee": RecordingCompiler(("js", "ts"))})

    package = ManifestParser(compilers=compilers).parse(manifest)

    assert package.bundles["app.coffee"].meta.output == "js"
    assert package.meta.extensions == {"js": ["app.coffee", "lib.js"]}


def test_as_selects_alternative_compiler_output(project: ProjectBuilder) -> None:
    project.write({"app.coffee": "x = 1"})
    manifest = project.manifest({"bundle": {"app.coffee": {"as": "ts"}}})
    compilers = CompilerRegistry({"coffee": RecordingCompiler(("js", "ts"))})

    package = ManifestParser(compilers=compilers).parse(manifest)

    assert package.bundles["app.coffee"].meta.output == "ts"
    assert package.bundles["app.coffee"].output_override == "ts"


def test_undecodable_manifest_raises_manifest_error(project: ProjectBuilder) -> None:
    (project.path() / "square.json").write_bytes(b'{"bundle": ["\xff\xfe.js"]}')

    with pytest.raises(ManifestError, match="Failed to read manifest") as excinfo:
        ManifestParser().parse(project.path() / "square.json")

    assert isinstance(excinfo.value.__cause__, UnicodeDecodeError)


def test_undecodable_bundle_raises_manifest_error(project: ProjectBuilder) -> None:
    (project.path() / "a.js").write_bytes(b"var a = '\xff';")
    manifest = project.manifest({"bundle": ["a.js"]})

    with pytest.raises(ManifestError, match="a.js bundle"):
        ManifestParser().parse(manifest)


def test_mapping_source_without_root_raises(project: ProjectBuilder) -> None:
    with pytest.raises(ManifestError, match="working directory"):
        ManifestParser().parse({"bundle": {}})


def test_home_prefixed_manifest_path_uses_configured_home(project: ProjectBuilder) -> None:
    project.write({"a.js": "a"})
    project.manifest({"bundle": ["a.js"]})

    package = ManifestParser(home=str(project.path())).parse("~/square.json")

    assert package.location == (project.path() / "square.json").resolve()


def test_home_prefixed_manifest_path_without_home_raises(project: ProjectBuilder) -> None:
    with pytest.raises(ManifestError, match="no home directory"):
        ManifestParser().parse("~/square.json")
