"""Probes and the Prometheus scrape endpoint.

  GET /health   always 200; status "degraded" when a configured database
                does not answer.  Reports "not_configured" on the
                in-memory store.
  GET /ready    503 while a configured database is unreachable.
  GET /metrics  Prometheus text exposition.
"""

from __future__ import annotations

from fastapi import APIRouter, Response, status
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from enrollview.db.engine import engine, ping_database

router = APIRouter(tags=["observability"])


async def _database_status() -> str:
    if engine is None:
        return "not_configured"
    return "ok" if await ping_database() else "degraded"


@router.get("/health")
async def health() -> dict:
    database = await _database_status()
    return {
        "status": "degraded" if database == "degraded" else "ok",
        "checks": {"database": database},
    }


@router.get("/ready")
async def ready() -> Response:
    if await _database_status() == "degraded":
        return Response(status_code=status.HTTP_503_SERVICE_UNAVAILABLE)
    return Response(status_code=status.HTTP_200_OK)


@router.get("/metrics", include_in_schema=False)
async def metrics() -> Response:
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
