from fastapi import APIRouter
from hms.modules.patients.router import router as patients_router
from hms.modules.telemetry.router import router as telemetry_router

api_router = APIRouter()
api_router.include_router(patients_router, prefix="/patients", tags=["patients"])
api_router.include_router(telemetry_router, prefix="/telemetry", tags=["telemetry"])

@api_router.get("/health", tags=["health"])
async def health():
    return {"status": "ok"}
