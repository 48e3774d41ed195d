import logging
import os
import threading

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from app.routes import tasks, assignments
from app.database.base import Base
from app.database.session import engine
from app.models import task, user, assignment  # noqa: F401
from app.core.config import (
    CORS_ORIGINS,
    CORS_ORIGIN_REGEX,
    parse_cors_origins,
)
from app.core.errors import EngineError, engine_error_handler

logger = logging.getLogger("uvicorn.error")
app = FastAPI(title="Acompanhamento de Estagiários")

cors_origins = parse_cors_origins(CORS_ORIGINS)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_origin_regex=CORS_ORIGIN_REGEX,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"]
)
app.add_exception_handler(EngineError, engine_error_handler)


@app.middleware("http")
async def ensure_utf8_json_charset(request: Request, call_next):
    response = await call_next(request)
    content_type = str(response.headers.get("content-type", ""))
    if content_type.startswith("application/json") and "charset=" not in content_type.lower():
        response.headers["content-type"] = "application/json; charset=utf-8"
    return response


def run_db_bootstrap() -> None:
    try:
        Base.metadata.create_all(bind=engine)
    except Exception:  # pragma: no cover - startup hardening
        logger.exception("Falha ao executar bootstrap do banco (etapa: create_all)")


_bootstrap_lock = threading.Lock()
_bootstrap_started = False


def trigger_db_bootstrap() -> None:
    global _bootstrap_started
    with _bootstrap_lock:
        if _bootstrap_started:
            return
        _bootstrap_started = True

    mode = str(os.getenv("DB_BOOTSTRAP_MODE", "background") or "background").strip().lower()
    if mode == "off":
        logger.info("DB bootstrap desativado (DB_BOOTSTRAP_MODE=off).")
        return
    if mode == "sync":
        logger.info("Executando DB bootstrap em modo sincronizado.")
        run_db_bootstrap()
        return

    logger.info("Executando DB bootstrap em background.")
    threading.Thread(target=run_db_bootstrap, daemon=True, name="db-bootstrap").start()


app.include_router(tasks.router)
app.include_router(assignments.router)

@app.get("/")
def root():
    return {"message": "API rodando corretamente!"}


@app.get("/health")
def healthcheck():
    return {"status": "ok"}


@app.get("/health/db")
def healthcheck_db():
    with engine.connect() as connection:
        connection.execute(text("SELECT 1"))
    return {"status": "ok"}


@app.on_event("startup")
def startup_event():
    trigger_db_bootstrap()
