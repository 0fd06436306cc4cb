"""Clinical and administrative records that reference a patient by code.

These are the tables touched when two patient identities are merged. Only the
columns the patient service reads or rewrites are mapped here.
"""
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Integer, Float, TIMESTAMP, ForeignKey, text
from hms.core.base import Base

class PatientRecordMixin:
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    patient_code: Mapped[int] = mapped_column(ForeignKey("patient.code"), index=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=text("CURRENT_TIMESTAMP")
    )


class Admission(Base, PatientRecordMixin):
    __tablename__ = "admission"
    ward: Mapped[str | None] = mapped_column(String(32), nullable=True)


class PatientExamination(Base, PatientRecordMixin):
    __tablename__ = "patient_examination"
    height: Mapped[float | None] = mapped_column(Float, nullable=True)  # cm
    weight: Mapped[float | None] = mapped_column(Float, nullable=True)  # kg
    examined_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)


class Laboratory(Base, PatientRecordMixin):
    __tablename__ = "laboratory"
    exam_code: Mapped[str | None] = mapped_column(String(32), nullable=True)
    # denormalized copies of the owning patient
    patient_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    age: Mapped[int | None] = mapped_column(Integer, nullable=True)
    sex: Mapped[str | None] = mapped_column(String(1), nullable=True)


class Opd(Base, PatientRecordMixin):
    __tablename__ = "opd"
    disease_code: Mapped[str | None] = mapped_column(String(32), nullable=True)
    age: Mapped[int | None] = mapped_column(Integer, nullable=True)
    sex: Mapped[str | None] = mapped_column(String(1), nullable=True)


class Bill(Base, PatientRecordMixin):
    __tablename__ = "bill"
    amount: Mapped[float] = mapped_column(Float, default=0.0)
    patient_name: Mapped[str | None] = mapped_column(String(100), nullable=True)


class MedicalStockMovement(Base, PatientRecordMixin):
    __tablename__ = "medical_stock_movement"
    medical_code: Mapped[str | None] = mapped_column(String(32), nullable=True)
    quantity: Mapped[int] = mapped_column(Integer, default=0)


class Therapy(Base, PatientRecordMixin):
    __tablename__ = "therapy"
    medical_code: Mapped[str | None] = mapped_column(String(32), nullable=True)


class Visit(Base, PatientRecordMixin):
    __tablename__ = "visit"
    note: Mapped[str | None] = mapped_column(String(200), nullable=True)


class PatientVaccine(Base, PatientRecordMixin):
    __tablename__ = "patient_vaccine"
    vaccine_code: Mapped[str | None] = mapped_column(String(32), nullable=True)
