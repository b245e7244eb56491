from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Enum, JSON
import enum

from rxportal.core.time_utils import now_utc as utcnow
from rxportal.infrastructure.database import Base, gen_uuid


class PrescriptionStatus(str, enum.Enum):
    ACTIVE = "active"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class Prescription(Base):
    __tablename__ = "prescriptions"

    id = Column(String(36), primary_key=True, default=gen_uuid)
    doctor_id = Column(String(36), ForeignKey("doctors.id"), nullable=False, index=True)
    patient_id = Column(String(36), ForeignKey("patients.id"), nullable=False, index=True)
    date_issued = Column(DateTime(timezone=True), default=utcnow)
    diagnosis = Column(Text, nullable=False)
    # Ordered list of {name, dosage, frequency, duration, instructions}
    medications = Column(JSON, nullable=False, default=list)
    notes = Column(Text, nullable=True)
    pdf_url = Column(String(500), nullable=True)
    status = Column(Enum(PrescriptionStatus), nullable=False, default=PrescriptionStatus.ACTIVE)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
