from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import CONFIG
from .errors import UsratiError
from .routes import links as links_routes
from .routes import profile as profile_routes
from .routes import records as records_routes
from .routes import summary as summary_routes

logging.basicConfig(level=CONFIG.log_level.upper())
logger = logging.getLogger(__name__)

app = FastAPI(
    title=CONFIG.app_name,
    version="0.1.0",
    description="Guardian access to dependents' records, scoped by active guardian links",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CONFIG.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
    allow_credentials=False,
)

app.include_router(profile_routes.router)
app.include_router(links_routes.router)
app.include_router(records_routes.router)
app.include_router(summary_routes.router)


@app.exception_handler(UsratiError)
async def usrati_error_handler(request: Request, exc: UsratiError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.warning(
            "store failure",
            extra={"method": request.method, "path": request.url.path, "error": exc.code},
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.code, "detail": exc.detail},
    )


@app.get("/health")
async def health() -> dict:
    return {"status": "ok"}


@app.get("/")
async def root() -> dict:
    return {"message": "Usrati API ready"}
