from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from enrollview.api import enrollments, observability
from enrollview.core.config import SETTINGS
from enrollview.core.logging import setup_logging
from enrollview.db.engine import lifespan_db
from enrollview.middleware.metrics import MetricsMiddleware
from enrollview.middleware.request_context import (
    RequestContextMiddleware,
    install_log_filter,
)

setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)
install_log_filter()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    async with lifespan_db():
        yield


app = FastAPI(
    title="enrollview",
    lifespan=lifespan,
    docs_url="/docs" if SETTINGS.is_dev else None,
    redoc_url=None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173"],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
)
# Outermost last: request ids exist before metrics are recorded.
app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestContextMiddleware)

app.include_router(observability.router)
app.include_router(enrollments.router)

logger.info(
    "enrollview ready  env=%s port=%d store=%s page_size=%d",
    SETTINGS.app_env,
    SETTINGS.port,
    "postgres" if SETTINGS.database_url else "memory",
    SETTINGS.default_page_size,
)
