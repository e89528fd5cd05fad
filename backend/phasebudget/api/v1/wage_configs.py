"""
Wage configuration API – worker defaults and phase overrides
"""
import uuid

from fastapi import APIRouter, HTTPException

from phasebudget.api.deps import Repository
from phasebudget.core.exceptions import InvalidWageConfigError, WorkerNotFoundError
from phasebudget.schemas.wage_config import WageConfigIn, WageConfigOut
from phasebudget.services.wage_config_service import WageConfigService

router = APIRouter(prefix="/workers", tags=["wage-config"])


@router.get("/{worker_id}/wage-config", response_model=WageConfigOut)
async def get_wage_config(worker_id: uuid.UUID, repository: Repository, phase_id: uuid.UUID | None = None):
    """Without phase_id the worker default, otherwise the override of that phase only."""
    config = await WageConfigService(repository).get(worker_id, phase_id)
    if config is None:
        raise HTTPException(status_code=404, detail="Wage configuration not found")
    return WageConfigOut.model_validate(config)


@router.put("/{worker_id}/wage-config", response_model=WageConfigOut)
async def put_wage_config(
    worker_id: uuid.UUID,
    payload: WageConfigIn,
    repository: Repository,
    phase_id: uuid.UUID | None = None,
):
    service = WageConfigService(repository)
    try:
        saved = await service.save(
            worker_id,
            payload.wage_type,
            daily_rate=payload.daily_rate,
            monthly_salary=payload.monthly_salary,
            default_working_days_per_month=payload.default_working_days_per_month,
            phase_id=phase_id,
        )
    except WorkerNotFoundError:
        raise HTTPException(status_code=404, detail="Worker not found")
    except InvalidWageConfigError as exc:
        raise HTTPException(status_code=422, detail=exc.reason)
    return WageConfigOut.model_validate(saved)
