from __future__ import annotations

from fastapi import APIRouter

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check() -> dict:
    """Liveness probe for load balancers and monitoring.

    Excluded from rate limiting by default so probes are never throttled.
    """

    return {"status": "ok"}
