from __future__ import annotations

import logging
import os
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from common.audit_rules.store import RuleStoreError

from . import parser, rules


APP_VERSION = "1.0.0"


def create_app() -> FastAPI:
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    app = FastAPI(title="Audit Rule Builder", version=APP_VERSION)
    app.include_router(parser.router)
    app.include_router(rules.router)

    @app.exception_handler(RuleStoreError)
    async def rule_store_error(request: Request, exc: RuleStoreError):
        return JSONResponse(status_code=500, content={"detail": str(exc)})

    @app.get("/health", tags=["health"])
    def health():
        return {
            "status": "OK",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "version": APP_VERSION,
        }

    return app


app = create_app()
