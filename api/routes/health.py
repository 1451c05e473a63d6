from typing import Annotated

from fastapi import APIRouter, Depends

from api.dependencies import get_supervisor
from api.schemas import HealthResponse
from application.services import ServiceStatus, ServiceSupervisor

router = APIRouter(tags=['health'])


@router.get('/health', response_model=HealthResponse, summary='Service health')
async def health(
	supervisor: Annotated[ServiceSupervisor, Depends(get_supervisor)],
) -> HealthResponse:
	if supervisor.status is not ServiceStatus.RUNNING:
		return HealthResponse(status=supervisor.status.value)

	service = supervisor.service
	last_updated = await service.last_updated()
	return HealthResponse(
		status=supervisor.status.value,
		namespace=service.namespace,
		latest_rates_available=await service.latest_rates_available(),
		last_updated=last_updated.value if last_updated.is_successful else None,
	)
