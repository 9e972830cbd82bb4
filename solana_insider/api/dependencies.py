"""FastAPI dependency providers.

The analysis context is created once in the application lifespan and kept on
``app.state``; services are cheap wrappers built per request from it.
"""

from fastapi import Depends, Request

from solana_insider.services.activity_service import ActivityService
from solana_insider.services.context import AnalysisContext
from solana_insider.services.insider_service import InsiderService
from solana_insider.services.rug_check_service import RugCheckService


def get_context(request: Request) -> AnalysisContext:
    """Get the process-wide analysis context."""
    context = getattr(request.app.state, "context", None)
    if context is None:
        raise RuntimeError("Analysis context is not initialized")
    return context


def get_insider_service(context: AnalysisContext = Depends(get_context)) -> InsiderService:
    return InsiderService(context)


def get_rug_check_service(context: AnalysisContext = Depends(get_context)) -> RugCheckService:
    return RugCheckService(context)


def get_activity_service(context: AnalysisContext = Depends(get_context)) -> ActivityService:
    return ActivityService(context)
