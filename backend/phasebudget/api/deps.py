from typing import Annotated

from fastapi import Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from phasebudget.core.config import settings
from phasebudget.core.database import get_session_factory
from phasebudget.core.exceptions import TransientFetchError
from phasebudget.services.budget_records import PhaseScope
from phasebudget.services.budget_repository import SqlBudgetRepository
from phasebudget.services.fetch_policy import FetchPolicy


def get_repository(
    session_factory: Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)],
) -> SqlBudgetRepository:
    return SqlBudgetRepository(session_factory, scope=PhaseScope(settings.BUDGET_PHASE_SCOPE))


def get_fetch_policy() -> FetchPolicy:
    return FetchPolicy.from_settings()


def service_unavailable(exc: TransientFetchError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=f"Budget data temporarily unavailable: {exc}",
    )


Repository = Annotated[SqlBudgetRepository, Depends(get_repository)]
Policy = Annotated[FetchPolicy, Depends(get_fetch_policy)]
