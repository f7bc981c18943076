from __future__ import annotations

from uuid import uuid4

import uvicorn
from fastapi import FastAPI

from symbiosis.core.logging import configure_logging
from symbiosis.core.logging.context import log_context

from . import deps
from .routes_chat import router as chat_router
from .routes_session import router as session_router

app = FastAPI(title="Symbiosis API")
configure_logging()

app.include_router(chat_router, prefix="/chat", tags=["chat"])
app.include_router(session_router, prefix="/session", tags=["session"])


@app.middleware("http")
async def request_context_middleware(request, call_next):
    correlation_id = request.headers.get("X-Correlation-ID") or str(uuid4())
    with log_context(correlation_id=correlation_id):
        response = await call_next(request)
    response.headers["X-Correlation-ID"] = correlation_id
    return response


@app.on_event("shutdown")
def shutdown() -> None:
    if deps.get_pipeline.cache_info().currsize:
        deps.get_pipeline().close()


@app.get("/healthz")
def healthz() -> dict[str, bool]:
    return {"ok": True}


def run() -> None:
    uvicorn.run("symbiosis.apps.api.main:app", host="127.0.0.1", port=8000)
