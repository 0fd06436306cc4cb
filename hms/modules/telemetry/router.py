from fastapi import APIRouter, Depends
from hms.core.db import engine
from hms.core.security import require_scopes
from hms.modules.telemetry.collectors import DBMSDataCollector
from hms.modules.telemetry.gateway import TelemetryGatewayService
from hms.modules.telemetry.service import TelemetryService

router = APIRouter()

def get_telemetry_service() -> TelemetryService:
    return TelemetryService([DBMSDataCollector(engine)], TelemetryGatewayService())

@router.get("/collect", dependencies=[Depends(require_scopes("telemetry:read"))])
async def collect(service: TelemetryService = Depends(get_telemetry_service)):
    return await service.collect()

@router.post("/send", dependencies=[Depends(require_scopes("telemetry:send"))])
async def send(service: TelemetryService = Depends(get_telemetry_service)):
    sent = await service.collect_and_send()
    return {"sent": sent}
