import logging

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from davemode import __version__
from davemode.api import schemas
from davemode.api.dependencies import require_api_token
from davemode.api.routes import clarifications, learning, tasks
from davemode.config import get_config
from davemode.errors import DaveModeError, EntityNotFoundError, ValidationError
from davemode.logging import get_logger, json_logging_from_env, setup_logging

logger = get_logger(__name__)

config = get_config()
setup_logging(config.log_level, json_output=config.log_json or json_logging_from_env())

app = FastAPI(
    title="DaveMode API",
    description="REST API for adaptive multi-agent code creation and analysis",
    version=__version__,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_allow_origins or [],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routes
auth_deps = [Depends(require_api_token)]
error_responses = {404: {"model": schemas.ErrorOut}, 500: {"model": schemas.ErrorOut}}
app.include_router(
    tasks.router, prefix="/api", tags=["Tasks"], dependencies=auth_deps, responses=error_responses
)
app.include_router(
    clarifications.router, prefix="/api", tags=["Clarifications"], dependencies=auth_deps, responses=error_responses
)
app.include_router(
    learning.router, prefix="/api", tags=["Learning"], dependencies=auth_deps, responses=error_responses
)


def error_status(exc: DaveModeError) -> int:
    if isinstance(exc, EntityNotFoundError):
        return 404
    if isinstance(exc, ValidationError):
        return 422
    return 500


@app.exception_handler(DaveModeError)
def davemode_error_handler(request: Request, exc: DaveModeError) -> JSONResponse:
    status = error_status(exc)
    logger.log(
        logging.ERROR if status >= 500 else logging.WARNING,
        "request_failed",
        extra={"path": request.url.path, "error": str(exc), "category": exc.category, "status": status},
    )
    return JSONResponse(status_code=status, content={"error": str(exc)})


@app.exception_handler(Exception)
def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("request_crashed", extra={"path": request.url.path})
    return JSONResponse(status_code=500, content={"error": str(exc)})


@app.get("/api/health", response_model=schemas.Health)
def health_check():
    """Health check endpoint."""
    return schemas.Health()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
