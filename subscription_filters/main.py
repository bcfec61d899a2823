from __future__ import annotations
import logging, sys

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import settings
from .errors import StoreError, SubscriptionFilterError
from .query.builder import ask_store_alive
from .routes import close_services, constraints_router, filters_router, get_services
from .services import Services

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
log = logging.getLogger("subscriptions.api")

app = FastAPI(title="Subscription Filter Service", version="1.0.0")

app.include_router(filters_router)
app.include_router(constraints_router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ALLOW_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
    allow_credentials=True,
)


def _error_response(status: int, title: str, detail: str) -> JSONResponse:
    return JSONResponse(
        status_code=status,
        content={"errors": [{"status": str(status), "title": title, "detail": detail}]},
    )


@app.exception_handler(SubscriptionFilterError)
async def _subscription_error(request: Request, exc: SubscriptionFilterError):
    if isinstance(exc, StoreError):
        # cause stays in the log; clients only get the generic detail
        log.error("%s %s failed: %s", request.method, request.url.path, exc, exc_info=exc)
    else:
        log.info("%s %s rejected: %s", request.method, request.url.path, exc.detail)
    return _error_response(exc.status_code, exc.title, exc.detail)


@app.exception_handler(RequestValidationError)
async def _request_error(request: Request, exc: RequestValidationError):
    fields = [str(e["loc"][-1]) for e in exc.errors() if e.get("loc")]
    return _error_response(400, "Invalid request", f"Malformed request: {', '.join(fields) or 'body'}.")


@app.on_event("shutdown")
async def _shutdown():
    await close_services()


@app.get("/healthz")
async def health(services: Services = Depends(get_services)):
    try:
        await services.store.ask(ask_store_alive())
        return {"ok": True, "store": "reachable"}
    except StoreError:
        return JSONResponse(status_code=503, content={"ok": False, "store": "unreachable"})
