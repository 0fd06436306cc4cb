from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from hms.core.base import utcnow
from hms.modules.patients.models import Patient
from hms.modules.history.models import (
    Admission, PatientExamination, Laboratory, Opd, Bill,
    MedicalStockMovement, Therapy, Visit, PatientVaccine,
)

class PatientHistoryRepository:
    """SQL implementation of RecordStore: one bulk UPDATE per record table."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _reassign(self, model, new_code: int, old_code: int, **denormalized) -> int:
        q = (
            update(model)
            .where(model.patient_code == old_code)
            .values(patient_code=new_code, **denormalized)
            .execution_options(synchronize_session=False)
        )
        res = await self.session.execute(q)
        return res.rowcount or 0

    async def update_admission(self, new_code: int, old_code: int) -> int:
        return await self._reassign(Admission, new_code, old_code)

    async def update_examination(self, new_code: int, old_code: int) -> int:
        return await self._reassign(PatientExamination, new_code, old_code)

    async def update_laboratory(self, new_code: int, name: str, age: int, sex: str, old_code: int) -> int:
        return await self._reassign(Laboratory, new_code, old_code, patient_name=name, age=age, sex=sex)

    async def update_outpatient(self, new_code: int, age: int, sex: str, old_code: int) -> int:
        return await self._reassign(Opd, new_code, old_code, age=age, sex=sex)

    async def update_billing(self, new_code: int, name: str, old_code: int) -> int:
        return await self._reassign(Bill, new_code, old_code, patient_name=name)

    async def update_medical_stock(self, new_code: int, old_code: int) -> int:
        return await self._reassign(MedicalStockMovement, new_code, old_code)

    async def update_therapy(self, new_code: int, old_code: int) -> int:
        return await self._reassign(Therapy, new_code, old_code)

    async def update_visit(self, new_code: int, old_code: int) -> int:
        return await self._reassign(Visit, new_code, old_code)

    async def update_vaccine(self, new_code: int, old_code: int) -> int:
        return await self._reassign(PatientVaccine, new_code, old_code)

    async def mark_deleted(self, code: int) -> int:
        q = (
            update(Patient)
            .where(Patient.code == code)
            .values(deleted_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        res = await self.session.execute(q)
        return res.rowcount or 0
