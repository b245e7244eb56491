from sqlalchemy import Column, String, Date, DateTime, ForeignKey, Enum
import enum

from rxportal.core.time_utils import now_utc as utcnow
from rxportal.infrastructure.database import Base, gen_uuid


class UserRole(str, enum.Enum):
    DOCTOR = "doctor"
    PATIENT = "patient"


class Profile(Base):
    """Identity-scoped attributes shared by every role. Role never changes after sign-up."""
    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True, default=gen_uuid)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    full_name = Column(String(200), nullable=False)
    phone = Column(String(20), nullable=True)
    role = Column(Enum(UserRole), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


class Doctor(Base):
    __tablename__ = "doctors"

    id = Column(String(36), ForeignKey("profiles.id"), primary_key=True)
    specialization = Column(String(100), nullable=False)
    license_number = Column(String(50), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)



class Patient(Base):
    __tablename__ = "patients"

    id = Column(String(36), ForeignKey("profiles.id"), primary_key=True)
    date_of_birth = Column(Date, nullable=True)
    medical_record_number = Column(String(50), nullable=True)
    emergency_contact = Column(String(200), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
