"""FastAPI application entrypoint for squarebuild service mode."""

from __future__ import annotations

import asyncio
import hashlib
from typing import Any, Callable, Dict, List, Optional

from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from .. import __version__
from ..config import EngineOptions
from ..engine import Engine
from ..errors import SquareError
from ..models import Collection

EngineFactory = Callable[[bool], Engine]


class BuildRequest(BaseModel):
    manifest: str
    platform: str = "web"
    extensions: Optional[List[str]] = None
    distribution: str = "min"
    plugins: List[str] = Field(default_factory=list)
    write: bool = False


class BuiltFile(BaseModel):
    basename: str
    file: Optional[str] = None
    extension: str
    md5: str
    size: int
    content: str


class BuildResponse(BaseModel):
    status: str
    files: List[BuiltFile]


class PluginResponse(BaseModel):
    name: str
    description: str


class HealthResponse(BaseModel):
    status: str
    version: str


def _default_engine(write: bool) -> Engine:
    options = EngineOptions.from_environment(writable=write, storages=["disk"])
    return Engine(options)


def create_app(engine_factory: EngineFactory = _default_engine) -> FastAPI:
    """Create the FastAPI application exposing build operations."""
    app = FastAPI(title="squarebuild service", version=__version__)

    async def get_factory() -> EngineFactory:
        return engine_factory

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok", version=__version__)

    @app.get("/plugins", response_model=List[PluginResponse])
    async def plugins(factory: EngineFactory = Depends(get_factory)) -> List[PluginResponse]:
        engine = factory(False)
        return [PluginResponse(name=info.name, description=info.description) for info in engine.plugins()]

    @app.post("/build", response_model=BuildResponse)
    async def build(
        payload: BuildRequest,
        factory: EngineFactory = Depends(get_factory),
    ) -> BuildResponse:
        def _run_build() -> Dict[str, Collection]:
            # A fresh engine per request keeps builds isolated from each other.
            engine = factory(payload.write)
            engine.parse(payload.manifest)
            for name in payload.plugins:
                engine.plugin(name)
            return engine.build(payload.platform, payload.extensions, payload.distribution)

        loop = asyncio.get_running_loop()
        files = await loop.run_in_executor(None, _run_build)
        return BuildResponse(
            status="ok",
            files=[_describe(basename, collection) for basename, collection in files.items()],
        )

    @app.exception_handler(FileNotFoundError)
    async def file_not_found_handler(
        _: Any, exc: FileNotFoundError
    ) -> JSONResponse:  # pragma: no cover - simple mapping
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(SquareError)
    async def build_error_handler(_: Any, exc: SquareError) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={"detail": str(exc), "error": type(exc).__name__},
        )

    return app


def _describe(basename: str, collection: Collection) -> BuiltFile:
    return BuiltFile(
        basename=basename,
        file=collection.file,
        extension=collection.extension,
        md5=hashlib.md5(collection.content.encode("utf-8")).hexdigest(),
        size=len(collection.content.encode("utf-8")),
        content=collection.content,
    )


def run_service(
    host: str = "127.0.0.1", port: int = 8000
) -> None:  # pragma: no cover - integration path
    import uvicorn

    uvicorn.run(create_app(), host=host, port=port)
