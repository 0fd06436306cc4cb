from typing import Sequence
from sqlalchemy import select, update, exists, func
from sqlalchemy.orm import selectinload
from sqlalchemy.ext.asyncio import AsyncSession
from hms.core.base import utcnow
from hms.modules.patients.models import Patient, PatientProfilePhoto
from hms.modules.history.models import PatientExamination

def _measured():
    return exists().where(
        PatientExamination.patient_code == Patient.code,
        PatientExamination.height.is_not(None),
        PatientExamination.weight.is_not(None),
    )

class PatientRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, **data) -> Patient:
        obj = Patient(**data)
        self.session.add(obj)
        await self.session.flush()
        return obj

    async def get(self, code: int) -> Patient | None:
        q = select(Patient).options(selectinload(Patient.photo)).where(
            Patient.code == code,
            Patient.deleted_at.is_(None),
        )
        res = await self.session.execute(q)
        return res.scalar_one_or_none()

    async def get_any(self, code: int) -> Patient | None:
        q = select(Patient).options(selectinload(Patient.photo)).where(Patient.code == code)
        res = await self.session.execute(q)
        return res.scalar_one_or_none()

    async def get_by_name(self, name: str) -> Patient | None:
        # several active patients may share a name; the most recently coded one wins
        q = select(Patient).options(selectinload(Patient.photo)).where(
            Patient.name == name,
            Patient.deleted_at.is_(None),
        ).order_by(Patient.code.desc()).limit(1)
        res = await self.session.execute(q)
        return res.scalar_one_or_none()

    async def list_active(self, limit: int | None = None, offset: int = 0) -> Sequence[Patient]:
        q = select(Patient).where(Patient.deleted_at.is_(None))
        if limit is None:
            q = q.order_by(Patient.code.asc())
        else:
            q = q.order_by(Patient.name.asc(), Patient.code.asc()).limit(limit).offset(offset)
        res = await self.session.execute(q)
        return res.scalars().all()

    async def list_with_height_and_weight(self, pattern: str | None = None) -> Sequence[Patient]:
        cond = [Patient.deleted_at.is_(None), _measured()]
        if pattern:
            cond.append(Patient.name.ilike(f"%{pattern}%"))
        q = select(Patient).where(*cond).order_by(Patient.name.asc(), Patient.code.asc())
        res = await self.session.execute(q)
        return res.scalars().all()

    async def list_head_with_height_and_weight(self, limit: int) -> Sequence[Patient]:
        q = select(Patient).where(
            Patient.deleted_at.is_(None),
            _measured(),
        ).order_by(Patient.code.desc()).limit(limit)
        res = await self.session.execute(q)
        return res.scalars().all()

    async def update(self, code: int, **data) -> Patient | None:
        obj = await self.get(code)
        if not obj:
            return None
        for k, v in data.items():
            setattr(obj, k, v)
        await self.session.flush()
        return obj

    async def soft_delete(self, code: int) -> bool:
        q = (
            update(Patient)
            .where(Patient.code == code, Patient.deleted_at.is_(None))
            .values(deleted_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        res = await self.session.execute(q)
        return (res.rowcount or 0) > 0

    async def name_exists(self, name: str) -> bool:
        res = await self.session.execute(select(exists().where(Patient.name == name)))
        return bool(res.scalar())

    async def code_exists(self, code: int) -> bool:
        res = await self.session.execute(select(exists().where(Patient.code == code)))
        return bool(res.scalar())

    async def max_code(self) -> int:
        res = await self.session.execute(select(func.coalesce(func.max(Patient.code), 0)))
        return int(res.scalar_one())

    async def get_photo(self, code: int) -> bytes | None:
        obj = await self.session.get(PatientProfilePhoto, code)
        return obj.photo if obj else None

    async def put_photo(self, patient: Patient, data: bytes) -> None:
        # patient must have been loaded with its photo (see get)
        if patient.photo:
            patient.photo.photo = data
        else:
            patient.photo = PatientProfilePhoto(photo=data)
        await self.session.flush()
