"""HTTP API for dashboards and schedulers.

Run with ``uvicorn richlist.api:create_app --factory`` or ``richlist serve``.
"""

import traceback
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from richlist.balances.models import BalanceRecord
from richlist.helpers.config import RichListSettings
from richlist.helpers.logging import get_logger
from richlist.refresh.models import RefreshResult
from richlist.service import RichListService


logger = get_logger(__name__)

EMPTY_TOP_MESSAGE = "No data yet. Visit /refresh to initialize."


class BalancesRequest(BaseModel):
    addresses: list[str] | None = Field(
        default=None, description="Addresses to look up"
    )


class BalancesResponse(BaseModel):
    results: list[BalanceRecord]


def _error(message: str, status_code: int = 500, **extra: Any) -> JSONResponse:
    return JSONResponse({"error": message, **extra}, status_code=status_code)


def create_app(service: RichListService | None = None) -> FastAPI:
    """Build the FastAPI application.

    Args:
        service: Service to expose; built from the environment if omitted

    Returns:
        Configured FastAPI instance
    """
    if service is None:
        service = RichListService(RichListSettings.from_env())

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        logger.info(
            "startup top_n=%s proactive=%s catch_up_threshold=%s",
            service.settings.top_n,
            service.settings.proactive_mode,
            service.settings.catch_up_threshold,
        )
        try:
            yield
        finally:
            await service.aclose()

    app = FastAPI(title="Rich List API", version="0.1", lifespan=lifespan)
    app.state.service = service
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_http_request(request: Request, call_next):  # type: ignore[no-untyped-def]
        logger.debug("http request method=%s path=%s", request.method, request.url.path)
        response = await call_next(request)
        logger.debug(
            "http response status=%s path=%s", response.status_code, request.url.path
        )
        return response

    @app.exception_handler(RequestValidationError)
    async def invalid_request(request: Request, exc: RequestValidationError) -> JSONResponse:
        if request.url.path == "/balances":
            return _error("addresses[]", status_code=400)
        return await request_validation_exception_handler(request, exc)

    @app.get("/height", response_model=None)
    async def height() -> dict[str, int] | JSONResponse:
        try:
            return {"height": await service.get_height()}
        except Exception as e:
            logger.error("Height query failed: %s", e)
            return _error(str(e))

    @app.post("/balances", response_model=None)
    async def balances(req: BalancesRequest) -> BalancesResponse | JSONResponse:
        if not req.addresses:
            return _error("addresses[]", status_code=400)
        logger.info("Balance request for %d addresses", len(req.addresses))
        try:
            results = await service.get_balances(req.addresses)
        except Exception as e:
            logger.error("Balance request failed: %s", e)
            return _error(str(e))
        return BalancesResponse(results=results)

    @app.get("/top", response_model=None)
    async def top() -> dict[str, Any] | JSONResponse:
        try:
            snapshot = await service.get_snapshot()
        except Exception as e:
            logger.error("Error fetching snapshot: %s", e)
            return _error(str(e), height=None, updated_at=None, entries=[])

        if snapshot is None:
            logger.info("No snapshot yet, needs initialization via /refresh")
            return {
                "height": None,
                "updated_at": None,
                "entries": [],
                "message": EMPTY_TOP_MESSAGE,
            }
        return snapshot.model_dump()

    @app.get("/refresh", response_model=None)
    async def refresh() -> RefreshResult | JSONResponse:
        try:
            return await service.refresh()
        except Exception as e:
            logger.exception("Refresh failed")
            return JSONResponse(
                {"ok": False, "error": str(e), "stack": traceback.format_exc()},
                status_code=500,
            )

    return app


__all__ = ["create_app"]
