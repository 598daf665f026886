from __future__ import annotations

from app.api.routes.admission import router as admission_router
from app.api.routes.health import router as health_router

__all__ = ["admission_router", "health_router"]
