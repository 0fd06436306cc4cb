from datetime import date
from typing import Optional
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import String, Integer, Date, Text, LargeBinary, ForeignKey
from hms.core.base import Base, TimestampedMixin

class Patient(Base, TimestampedMixin):
    __tablename__ = "patient"

    # Codes are allocated by the service (max + 1), never by the database.
    code: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    first_name: Mapped[str] = mapped_column(String(50))
    second_name: Mapped[str] = mapped_column(String(50))
    name: Mapped[str] = mapped_column(String(100), index=True)  # display name, "first second"
    birth_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    age: Mapped[int] = mapped_column(Integer, default=0)
    sex: Mapped[str] = mapped_column(String(1))  # M | F
    address: Mapped[str | None] = mapped_column(String(50), nullable=True)
    city: Mapped[str | None] = mapped_column(String(50), nullable=True)
    telephone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)
    mother_name: Mapped[str | None] = mapped_column(String(50), nullable=True)
    father_name: Mapped[str | None] = mapped_column(String(50), nullable=True)
    blood_type: Mapped[str | None] = mapped_column(String(4), nullable=True)

    # Never loaded implicitly; readers must ask for it with selectinload().
    photo: Mapped[Optional["PatientProfilePhoto"]] = relationship(
        back_populates="patient", lazy="raise", uselist=False, cascade="all, delete-orphan"
    )

    @property
    def has_photo(self) -> bool:
        return self.photo is not None


class PatientProfilePhoto(Base):
    __tablename__ = "patient_profile_photo"

    patient_code: Mapped[int] = mapped_column(ForeignKey("patient.code"), primary_key=True)
    photo: Mapped[bytes] = mapped_column(LargeBinary)

    patient: Mapped[Patient] = relationship(back_populates="photo", lazy="raise")
