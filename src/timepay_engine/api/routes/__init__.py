"""API routes."""

from timepay_engine.api.routes.health import router as health_router
from timepay_engine.api.routes.labor import router as labor_router
from timepay_engine.api.routes.payroll import router as payroll_router
from timepay_engine.api.routes.punches import router as punches_router
from timepay_engine.api.routes.tips import router as tips_router

__all__ = ["health_router", "labor_router", "payroll_router", "punches_router", "tips_router"]
