import io
import logging
from PIL import Image, UnidentifiedImageError
from sqlalchemy.ext.asyncio import AsyncSession
from hms.core.config import settings
from hms.core.errors import (
    PatientConflictError, PatientNotFoundError, PatientPhotoError, translate_service_errors,
)
from hms.modules.history.repository import PatientHistoryRepository
from hms.modules.patients.merge import MergeResult, PatientIdentity, PatientMerger
from hms.modules.patients.models import Patient
from hms.modules.patients.repository import PatientRepository
from hms.modules.patients.schemas import PatientCreate, PatientUpdate

logger = logging.getLogger(__name__)

# columns that cannot be cleared; an explicit null for them is ignored on update
REQUIRED_FIELDS = ("first_name", "second_name", "name", "age", "sex")


def encode_jpeg(data: bytes, quality: int, max_pixels: int | None = None) -> bytes:
    """Decode any Pillow-readable image and re-encode it as an RGB JPEG.

    The pixel count is checked from the header, before any pixel data is decoded.
    """
    try:
        with Image.open(io.BytesIO(data)) as img:
            if max_pixels is not None and img.width * img.height > max_pixels:
                raise PatientPhotoError(f"Photo exceeds {max_pixels} pixels")
            rgb = img.convert("RGB")
    except Image.DecompressionBombError as e:
        raise PatientPhotoError("Photo exceeds the decoder pixel limit") from e
    except (UnidentifiedImageError, OSError) as e:
        raise PatientPhotoError("Photo is not a readable image") from e
    out = io.BytesIO()
    rgb.save(out, format="JPEG", quality=quality)
    return out.getvalue()


class PatientService:
    def __init__(self, session: AsyncSession):
        self.repo = PatientRepository(session)
        self.history = PatientHistoryRepository(session)
        self.session = session

    @translate_service_errors
    async def list(self, limit: int | None = None, offset: int = 0):
        return await self.repo.list_active(limit, offset)

    @translate_service_errors
    async def list_measured(self, pattern: str | None = None):
        return await self.repo.list_with_height_and_weight(pattern)

    @translate_service_errors
    async def list_measured_head(self):
        return await self.repo.list_head_with_height_and_weight(settings.PATIENT_HEAD_LIMIT)

    @translate_service_errors
    async def get(self, code: int) -> Patient | None:
        return await self.repo.get(code)

    @translate_service_errors
    async def get_any(self, code: int) -> Patient | None:
        return await self.repo.get_any(code)

    @translate_service_errors
    async def get_by_name(self, name: str) -> Patient | None:
        return await self.repo.get_by_name(name)

    @translate_service_errors
    async def is_name_present(self, name: str) -> bool:
        return await self.repo.name_exists(name)

    @translate_service_errors
    async def is_code_present(self, code: int) -> bool:
        return await self.repo.code_exists(code)

    @translate_service_errors
    async def next_code(self) -> int:
        return await self.repo.max_code() + 1

    @translate_service_errors
    async def create(self, payload: PatientCreate) -> Patient:
        data = payload.model_dump()
        code = data.pop("code")
        if code is None:
            code = await self.repo.max_code() + 1
        elif await self.repo.code_exists(code):
            raise PatientConflictError(f"Patient code {code} is already in use")
        if not data.get("name"):
            data["name"] = f"{payload.first_name} {payload.second_name}"
        obj = await self.repo.create(code=code, **data)
        await self.session.commit()
        logger.info(f"Patient created: code={code}")
        return obj

    @translate_service_errors
    async def update(self, code: int, payload: PatientUpdate) -> Patient | None:
        data = {
            k: v for k, v in payload.model_dump(exclude_unset=True).items()
            if v is not None or k not in REQUIRED_FIELDS
        }
        current = await self.repo.get(code)
        if not current:
            return None
        if not data.get("name") and ("first_name" in data or "second_name" in data):
            first = data.get("first_name") or current.first_name
            second = data.get("second_name") or current.second_name
            data["name"] = f"{first} {second}"
        obj = await self.repo.update(code, **data)
        await self.session.commit()
        return obj

    @translate_service_errors
    async def delete(self, code: int) -> bool:
        ok = await self.repo.soft_delete(code)
        if ok:
            await self.session.commit()
            logger.info(f"Patient deleted (logical): code={code}")
        return ok

    @translate_service_errors
    async def set_photo(self, code: int, data: bytes) -> None:
        if len(data) > settings.PHOTO_MAX_BYTES:
            raise PatientPhotoError(f"Photo exceeds {settings.PHOTO_MAX_BYTES} bytes")
        patient = await self.repo.get(code)
        if not patient:
            raise PatientNotFoundError(code)
        jpeg = encode_jpeg(data, settings.PHOTO_JPEG_QUALITY, settings.PHOTO_MAX_PIXELS)
        await self.repo.put_photo(patient, jpeg)
        await self.session.commit()

    @translate_service_errors
    async def get_photo(self, code: int) -> bytes | None:
        return await self.repo.get_photo(code)

    @translate_service_errors
    async def merge(self, survivor_code: int, obsolete_code: int) -> MergeResult:
        """
        Merge the clinical history of ``obsolete_code`` into ``survivor_code``.

        The survivor must be active; the obsolete patient may already be deleted,
        in which case nothing is left to move and the result is not ``merged``.
        All updates run in this session's transaction and are rolled back together
        on failure.
        """
        survivor = await self.repo.get(survivor_code)
        if not survivor:
            raise PatientNotFoundError(survivor_code)
        obsolete = await self.repo.get_any(obsolete_code)
        if not obsolete:
            raise PatientNotFoundError(obsolete_code)

        merger = PatientMerger(self.history)
        try:
            result = await merger.merge(
                PatientIdentity.from_patient(survivor),
                PatientIdentity.from_patient(obsolete),
            )
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
        return result

    async def merge_history(self, survivor_code: int, obsolete_code: int) -> bool:
        result = await self.merge(survivor_code, obsolete_code)
        return result.merged
