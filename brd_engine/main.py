"""FastAPI application entry point."""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from brd_engine.api import router as api_router
from brd_engine.api.deps import status_code_for
from brd_engine.core.config import get_settings
from brd_engine.core.errors import BrdEngineError
from brd_engine.core.logging import get_logger

logger = get_logger(__name__)

app = FastAPI(
    title="BRD Engine",
    description="Document knowledge base with RAG chat and Business Requirements Document generation",
    version="0.1.0",
)


@app.exception_handler(BrdEngineError)
async def domain_error_handler(request: Request, exc: BrdEngineError) -> JSONResponse:
    """Domain errors a route did not translate itself."""
    status_code = status_code_for(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


@app.get("/health")
async def health_check() -> JSONResponse:
    """Liveness probe with the running environment."""
    return JSONResponse(
        content={"status": "ok", "environment": get_settings().BRD_ENGINE_ENV},
        status_code=200,
    )


app.include_router(api_router, prefix="/v1", tags=["v1"])
