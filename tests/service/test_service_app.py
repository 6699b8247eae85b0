"""Tests for the FastAPI service mode."""

from __future__ import annotations

import pytest

try:
    from fastapi.testclient import TestClient
except ModuleNotFoundError:  # pragma: no cover - optional dependency
    pytest.skip("fastapi not installed", allow_module_level=True)

from squarebuild import __version__
from squarebuild.config import EngineOptions
from squarebuild.engine import Engine
from squarebuild.service import create_app
from tests._fixtures.doubles import RecordingStorage, RecordingVCS
from tests._fixtures.project_builder import ProjectBuilder


class _EngineFactory:
    def __init__(self, project: ProjectBuilder) -> None:
        self.project = project
        self.storage = RecordingStorage()
        self.requests: list[bool] = []

    def __call__(self, write: bool) -> Engine:
        self.requests.append(write)
        engine = Engine(
            EngineOptions(cwd=self.project.path(), writable=write),
            vcs=RecordingVCS(),
        )
        engine.storage(self.storage)
        return engine


def test_health_endpoint_reports_version(project: ProjectBuilder) -> None:
    client = TestClient(create_app(_EngineFactory(project)))

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "version": __version__}


def test_plugins_endpoint(project: ProjectBuilder) -> None:
    client = TestClient(create_app(_EngineFactory(project)))

    response = client.get("/plugins")

    assert response.status_code == 200
    assert "whitespace" in [item["name"] for item in response.json()]


def test_build_endpoint_returns_files(project: ProjectBuilder) -> None:
    project.write({"a.css": "a {}"})
    manifest = project.manifest({"bundle": ["a.css"]})
    factory = _EngineFactory(project)
    client = TestClient(create_app(factory))

    response = client.post("/build", json={"manifest": str(manifest)})

    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "ok"
    assert [item["basename"] for item in payload["files"]] == ["bundle.min.css"]
    assert payload["files"][0]["content"].endswith("a {}")
    assert factory.requests == [False]
    assert factory.storage.stored == []


def test_build_endpoint_writes_when_asked(project: ProjectBuilder) -> None:
    project.write({"a.css": "a {}"})
    manifest = project.manifest({"bundle": ["a.css"]})
    factory = _EngineFactory(project)
    client = TestClient(create_app(factory))

    response = client.post(
        "/build", json={"manifest": str(manifest), "write": True, "plugins": ["whitespace"]}
    )

    assert response.status_code == 200
    assert len(factory.storage.stored) == 1
    assert factory.storage.stored[0].content.endswith("a {}\n")


def test_build_endpoint_maps_build_errors(project: ProjectBuilder) -> None:
    client = TestClient(create_app(_EngineFactory(project)))

    response = client.post("/build", json={"manifest": str(project.path() / "missing.json")})

    assert response.status_code == 400
    assert response.json()["error"] == "ManifestError"
