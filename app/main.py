import time

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from loguru import logger

from app.api import index
from app.api import auth
from app.api import dropdowns
from app.api import materials
from app.api import dashboard

from app.core.config import settings
from app.core.logging import setup_logging
from app.utils.file_storage import UPLOAD_URL_PREFIX

setup_logging()

app = FastAPI(title=settings.app_name, debug=settings.debug)

# Middlewares
origins = []

if settings.allowed_hosts:
    origins = [o.strip() for o in settings.allowed_hosts.split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    try:
        response = await call_next(request)
        status_code = response.status_code
        return response
    finally:
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.debug(
            f"{request.method} {request.url.path} -> {status_code} ({elapsed_ms:.1f} ms)")


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.opt(exception=exc).error(
        f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


# Register routes
app.include_router(index.router)
app.include_router(auth.router, prefix="/api/auth", tags=["Auth"])
app.include_router(
    dropdowns.router, prefix="/api/dropdowns", tags=["Dropdowns"])
app.include_router(
    materials.router, prefix="/api/materials", tags=["Materials"])
app.include_router(
    dashboard.router, prefix="/api/dashboard", tags=["Dashboard"])

# Uploaded images
app.mount(UPLOAD_URL_PREFIX, StaticFiles(
    directory=settings.upload_dir), name="uploads")

if __name__ == "__main__":
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_config=None,
        log_level=None,
    )
