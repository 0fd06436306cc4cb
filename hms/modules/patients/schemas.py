from datetime import date
from pydantic import BaseModel, ConfigDict, Field

class PatientCreate(BaseModel):
    code: int | None = Field(default=None, gt=0)
    first_name: str = Field(..., min_length=1, max_length=50)
    second_name: str = Field(..., min_length=1, max_length=50)
    name: str | None = Field(default=None, max_length=100)
    birth_date: date | None = None
    age: int = Field(default=0, ge=0)
    sex: str = Field(..., pattern="^[MF]$")
    address: str | None = None
    city: str | None = None
    telephone: str | None = None
    note: str | None = None
    mother_name: str | None = None
    father_name: str | None = None
    blood_type: str | None = Field(default=None, max_length=4)

class PatientUpdate(BaseModel):
    first_name: str | None = Field(default=None, max_length=50)
    second_name: str | None = Field(default=None, max_length=50)
    name: str | None = Field(default=None, max_length=100)
    birth_date: date | None = None
    age: int | None = Field(default=None, ge=0)
    sex: str | None = Field(default=None, pattern="^[MF]$")
    address: str | None = None
    city: str | None = None
    telephone: str | None = None
    note: str | None = None
    mother_name: str | None = None
    father_name: str | None = None
    blood_type: str | None = Field(default=None, max_length=4)

class PatientOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    code: int
    first_name: str
    second_name: str
    name: str
    birth_date: date | None
    age: int
    sex: str
    address: str | None
    city: str | None
    telephone: str | None
    note: str | None
    mother_name: str | None
    father_name: str | None
    blood_type: str | None

class PatientDetailOut(PatientOut):
    has_photo: bool

class MergeRequest(BaseModel):
    obsolete_code: int = Field(..., gt=0)

class MergeOut(BaseModel):
    survivor_code: int
    obsolete_code: int
    merged: bool
    total: int
    obsolete_deleted: bool
    rows: dict[str, int]
