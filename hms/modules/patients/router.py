from fastapi import APIRouter, Depends, File, HTTPException, Response, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession
from hms.core.db import get_session
from hms.core.security import require_scopes
from hms.modules.patients.schemas import (
    PatientCreate, PatientUpdate, PatientOut, PatientDetailOut, MergeRequest, MergeOut,
)
from hms.modules.patients.service import PatientService

router = APIRouter()

def svc(session: AsyncSession = Depends(get_session)) -> PatientService:
    return PatientService(session)

@router.get("", response_model=list[PatientOut], dependencies=[Depends(require_scopes("patients:read"))])
async def list_patients(
    limit: int | None = None, offset: int = 0,
    service: PatientService = Depends(svc),
):
    return await service.list(limit, offset)

@router.get("/search", response_model=PatientDetailOut, dependencies=[Depends(require_scopes("patients:read"))])
async def find_patient_by_name(name: str, service: PatientService = Depends(svc)):
    obj = await service.get_by_name(name)
    if not obj:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Patient not found")
    return obj

@router.get("/name-exists", dependencies=[Depends(require_scopes("patients:read"))])
async def name_exists(name: str, service: PatientService = Depends(svc)):
    return {"present": await service.is_name_present(name)}

@router.get("/next-code", dependencies=[Depends(require_scopes("patients:read"))])
async def next_code(service: PatientService = Depends(svc)):
    return {"code": await service.next_code()}

@router.get("/measured", response_model=list[PatientOut], dependencies=[Depends(require_scopes("patients:read"))])
async def list_measured(pattern: str | None = None, service: PatientService = Depends(svc)):
    return await service.list_measured(pattern)

@router.get("/measured/head", response_model=list[PatientOut], dependencies=[Depends(require_scopes("patients:read"))])
async def list_measured_head(service: PatientService = Depends(svc)):
    return await service.list_measured_head()

@router.post("", response_model=PatientOut, status_code=201, dependencies=[Depends(require_scopes("patients:write"))])
async def create_patient(payload: PatientCreate, service: PatientService = Depends(svc)):
    return await service.create(payload)

@router.get("/{code}", response_model=PatientDetailOut, dependencies=[Depends(require_scopes("patients:read"))])
async def get_patient(code: int, include_deleted: bool = False, service: PatientService = Depends(svc)):
    obj = await (service.get_any(code) if include_deleted else service.get(code))
    if not obj:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Patient not found")
    return obj

@router.get("/{code}/exists", dependencies=[Depends(require_scopes("patients:read"))])
async def code_exists(code: int, service: PatientService = Depends(svc)):
    return {"present": await service.is_code_present(code)}

@router.patch("/{code}", response_model=PatientOut, dependencies=[Depends(require_scopes("patients:write"))])
async def update_patient(code: int, payload: PatientUpdate, service: PatientService = Depends(svc)):
    obj = await service.update(code, payload)
    if not obj:
        raise HTTPException(status_code=404, detail="Patient not found")
    return obj

@router.delete("/{code}", status_code=204, dependencies=[Depends(require_scopes("patients:write"))])
async def delete_patient(code: int, service: PatientService = Depends(svc)):
    ok = await service.delete(code)
    if not ok:
        raise HTTPException(status_code=404, detail="Patient not found")
    return

@router.put("/{code}/photo", status_code=204, dependencies=[Depends(require_scopes("patients:write"))])
async def upload_photo(code: int, file: UploadFile = File(...), service: PatientService = Depends(svc)):
    await service.set_photo(code, await file.read())
    return

@router.get("/{code}/photo", dependencies=[Depends(require_scopes("patients:read"))])
async def download_photo(code: int, service: PatientService = Depends(svc)):
    data = await service.get_photo(code)
    if data is None:
        raise HTTPException(status_code=404, detail="Photo not found")
    return Response(content=data, media_type="image/jpeg")

@router.post("/{code}/merge", response_model=MergeOut, dependencies=[Depends(require_scopes("patients:write"))])
async def merge_patient(code: int, payload: MergeRequest, service: PatientService = Depends(svc)):
    result = await service.merge(code, payload.obsolete_code)
    return MergeOut(
        survivor_code=result.survivor_code,
        obsolete_code=result.obsolete_code,
        merged=result.merged,
        total=result.total,
        obsolete_deleted=result.deleted > 0,
        rows={c.value: n for c, n in result.rows.items()},
    )
