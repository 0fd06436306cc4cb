"""Patient identity merge.

Two patient records that turn out to describe the same person are consolidated
by moving every record owned by the obsolete code onto the surviving code and
then logically deleting the obsolete patient.

The categories and the survivor attributes each one copies are kept in
``MERGE_PLAN`` so the sequence can be read (and tested) as data.
"""
import enum
import logging
from dataclasses import dataclass, field

from hms.core.errors import PatientMergeError
from hms.platform.ports.record_store import RecordStore

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class PatientIdentity:
    code: int
    name: str
    age: int
    sex: str

    @classmethod
    def from_patient(cls, patient) -> "PatientIdentity":
        return cls(code=patient.code, name=patient.name, age=patient.age, sex=patient.sex)


class MergeTargetCategory(str, enum.Enum):
    ADMISSION = "admission"
    EXAMINATION = "examination"
    LABORATORY = "laboratory"
    OUTPATIENT = "outpatient"
    BILLING = "billing"
    MEDICAL_STOCK = "medical_stock"
    THERAPY = "therapy"
    VISIT = "visit"
    VACCINE = "vaccine"


@dataclass(frozen=True)
class MergeStep:
    category: MergeTargetCategory
    operation: str  # RecordStore method name
    survivor_fields: tuple[str, ...] = ()

    async def apply(self, store: RecordStore, survivor: PatientIdentity, obsolete_code: int) -> int:
        extra = [getattr(survivor, f) for f in self.survivor_fields]
        return await getattr(store, self.operation)(survivor.code, *extra, obsolete_code)


MERGE_PLAN: tuple[MergeStep, ...] = (
    MergeStep(MergeTargetCategory.ADMISSION, "update_admission"),
    MergeStep(MergeTargetCategory.EXAMINATION, "update_examination"),
    MergeStep(MergeTargetCategory.LABORATORY, "update_laboratory", ("name", "age", "sex")),
    MergeStep(MergeTargetCategory.OUTPATIENT, "update_outpatient", ("age", "sex")),
    MergeStep(MergeTargetCategory.BILLING, "update_billing", ("name",)),
    MergeStep(MergeTargetCategory.MEDICAL_STOCK, "update_medical_stock"),
    MergeStep(MergeTargetCategory.THERAPY, "update_therapy"),
    MergeStep(MergeTargetCategory.VISIT, "update_visit"),
    MergeStep(MergeTargetCategory.VACCINE, "update_vaccine"),
)


@dataclass
class MergeResult:
    survivor_code: int
    obsolete_code: int
    rows: dict[MergeTargetCategory, int] = field(default_factory=dict)
    deleted: int = 0

    @property
    def total(self) -> int:
        """Rows moved across all categories; the logical delete is not counted."""
        return sum(self.rows.values())

    @property
    def merged(self) -> bool:
        # Coarse flag: cannot tell "nothing to move" from a category that matched nothing.
        return self.total > 0


class PatientMerger:
    def __init__(self, store: RecordStore, plan: tuple[MergeStep, ...] = MERGE_PLAN):
        self.store = store
        self.plan = plan

    async def merge(self, survivor: PatientIdentity, obsolete: PatientIdentity) -> MergeResult:
        """
        Move every record of ``obsolete`` onto ``survivor``, then mark ``obsolete`` deleted.

        Store errors propagate as raised; steps already applied are not undone here,
        the caller's transaction decides whether they stick.
        """
        if survivor.code == obsolete.code:
            raise PatientMergeError(f"Cannot merge patient {survivor.code} into itself")

        result = MergeResult(survivor_code=survivor.code, obsolete_code=obsolete.code)
        for step in self.plan:
            result.rows[step.category] = await step.apply(self.store, survivor, obsolete.code)
        result.deleted = await self.store.mark_deleted(obsolete.code)

        log.info(
            f"Merged patient {obsolete.code} into {survivor.code}: "
            f"rows={result.total} deleted={result.deleted}"
        )
        return result

    async def merge_history(self, survivor: PatientIdentity, obsolete: PatientIdentity) -> bool:
        result = await self.merge(survivor, obsolete)
        return result.merged
