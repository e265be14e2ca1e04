from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from .config import CAROUSEL_DIR, CORS_ORIGINS, LOG_LEVEL, UPLOAD_DIR
from .db import init_db
from .errors import ServiceError
from .routes import (
    activities,
    appointments,
    auth,
    content,
    finance,
    frequency_requests,
    medical_history,
    messages,
    patients,
    posts,
    professionals,
    stats,
    status_requests,
    upload,
    users,
)
from .seed import seed_base

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Crea tablas y cuentas demo (idempotente)
    init_db()
    seed_base()
    yield


app = FastAPI(title="IPPL API", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    logger.warning(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # mismo contrato que los errores de servicio: 400 con un único mensaje
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(p) for p in first.get("loc", ())[1:])
    message = str(first.get("msg", "Datos no válidos"))
    if field:
        message = f"{field}: {message}"
    logger.warning(f"{request.method} {request.url.path} -> 400: {message}")
    return JSONResponse(status_code=400, content={"detail": message})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Error no controlado en {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"detail": "Error interno del servidor"})


for router in (
    auth.router,
    users.router,
    professionals.router,
    patients.router,
    status_requests.router,
    frequency_requests.router,
    appointments.router,
    posts.router,
    messages.router,
    activities.router,
    medical_history.router,
    finance.router,
    stats.router,
    upload.router,
    content.router,
):
    app.include_router(router)


# Archivos subidos (audios, miniaturas) e imágenes del carrusel
UPLOAD_DIR.mkdir(parents=True, exist_ok=True)
CAROUSEL_DIR.mkdir(parents=True, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=UPLOAD_DIR), name="uploads")
app.mount("/images/carousel", StaticFiles(directory=CAROUSEL_DIR), name="carousel")


@app.get("/api/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
