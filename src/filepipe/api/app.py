"""FastAPI application factory."""
from __future__ import annotations
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from filepipe import __version__
from filepipe.domain.exceptions import ConflictError, NotFoundError, UploadRejectedError
from filepipe.logging import logger


def create_app() -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        from filepipe.db import init_db
        init_db()
        logger.info("Database ready; accepting uploads")
        yield

    app = FastAPI(
        title="filepipe upload API",
        version=__version__,
        lifespan=lifespan,
    )

    # Import routers inside create_app() to avoid circular imports at module load time
    from filepipe.api.routers.files import router as files_router

    app.include_router(files_router)

    @app.exception_handler(NotFoundError)
    def _not_found(request: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": exc.message})

    @app.exception_handler(ConflictError)
    def _conflict(request: Request, exc: ConflictError) -> JSONResponse:
        return JSONResponse(status_code=409, content={"detail": exc.message})

    @app.exception_handler(UploadRejectedError)
    def _rejected(request: Request, exc: UploadRejectedError) -> JSONResponse:
        return JSONResponse(
            status_code=400, content={"detail": exc.message, "errors": exc.errors},
        )

    @app.get("/health", tags=["ops"])
    def health() -> dict:
        return {"status": "ok"}

    return app
