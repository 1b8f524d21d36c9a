from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from stocksy.config import Settings
from stocksy.errors import StocksyError, UpstreamError
from stocksy.pipeline import Services, run_backtest, run_sentiment

logger = logging.getLogger(__name__)


class PromptRequest(BaseModel):
    prompt: Optional[str] = None


def _guarded(label: str, runner: Callable[[], Dict[str, Any]]) -> Dict[str, Any]:
    try:
        return runner()
    except StocksyError:
        raise
    except Exception as exc:
        logger.exception("%s request failed", label)
        raise UpstreamError(str(exc) or f"Failed to process {label} request") from exc


def create_app(settings: Settings, services: Optional[Services] = None) -> FastAPI:
    app = FastAPI(title="Stocksy")
    services = services or Services.from_settings(settings)

    @app.exception_handler(StocksyError)
    def stocksy_error_handler(request: Request, exc: StocksyError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse({"error": exc.message}, status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse({"error": "Prompt is required"}, status_code=400)

    @app.exception_handler(StarletteHTTPException)
    def http_error_handler(request: Request, exc: StarletteHTTPException):
        message = "Method not allowed" if exc.status_code == 405 else str(exc.detail)
        return JSONResponse({"error": message}, status_code=exc.status_code, headers=getattr(exc, "headers", None))

    @app.post("/api/sentiment")
    def sentiment_api(body: PromptRequest):
        return _guarded("sentiment", lambda: run_sentiment(services, body.prompt))

    @app.post("/api/backtest")
    def backtest_api(body: PromptRequest):
        return _guarded("backtest", lambda: run_backtest(services, body.prompt))

    return app
