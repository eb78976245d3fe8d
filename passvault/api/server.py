"""
passvault HTTP API — FastAPI adapter over the record services.

One router per record kind, mounted at ``/api/<table>``:

  GET    /api/logins            list (search, search_field, order, direction, offset, limit)
  GET    /api/logins/{id}
  POST   /api/logins
  PUT    /api/logins/{id}
  DELETE /api/logins/{id}

Start:
  passvault serve
  # or
  uvicorn passvault.api.server:create_app --factory --port 3625

Routes are plain ``def`` so blocking storage I/O runs in the threadpool.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import APIRouter, Body, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from passvault import __version__
from passvault.config import Config, get_config
from passvault.errors import VaultError
from passvault.records.models import KINDS, RecordKind
from passvault.records.service import RecordService, build_services
from passvault.records.store import Store

logger = logging.getLogger(__name__)


def _error_body(code: str, message: str) -> dict[str, str]:
    return {"status": "error", "code": code, "message": message}


def _kind_router(kind: RecordKind, service: RecordService) -> APIRouter:
    router = APIRouter(prefix=f"/api/{kind.table}", tags=[kind.table])

    @router.get("")
    def list_records(request: Request) -> list[dict[str, Any]]:
        records = service.find_all(dict(request.query_params))
        return [r.model_dump(mode="json") for r in records]

    @router.get("/{record_id}")
    def get_record(record_id: str) -> dict[str, Any]:
        return service.find_by_id(record_id).model_dump(mode="json")

    @router.post("")
    def create_record(payload: Any = Body(None)) -> dict[str, Any]:
        return service.create(payload).model_dump(mode="json")

    @router.put("/{record_id}")
    def update_record(record_id: str, payload: Any = Body(None)) -> dict[str, Any]:
        return service.update(record_id, payload).model_dump(mode="json")

    @router.delete("/{record_id}")
    def delete_record(record_id: str) -> dict[str, Any]:
        service.delete(record_id)
        return {"code": 200, "status": "Success", "message": f"{kind.label} deleted successfully!"}

    return router


def create_app(
    store: Store | None = None,
    config: Config | None = None,
) -> FastAPI:
    """Build the API app. Defaults come from the process configuration."""
    cfg = config or get_config()
    store = store or Store.from_config(cfg)
    services = build_services(store, cfg.passphrase, decrypt_failures=cfg.decrypt_failures)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        if store.backend == "postgres":
            from passvault.db.connection import close_pool

            close_pool()

    app = FastAPI(
        title="passvault",
        description="Self-hosted credential vault with field-level encryption.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.services = services

    @app.exception_handler(VaultError)
    async def vault_error_handler(request: Request, exc: VaultError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s on %s %s: %s", exc.code, request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=_error_body(exc.code, exc.message))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content=_error_body("VALIDATION", "Invalid request payload"))

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok", "storage": store.backend, "version": __version__}

    for name, kind in KINDS.items():
        app.include_router(_kind_router(kind, services[name]))

    return app
