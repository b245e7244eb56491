from typing import Optional, List
from pydantic import BaseModel

from rxportal.domain.prescriptions.models import PrescriptionStatus
from rxportal.schemas.identity import DoctorView, PatientView


class Medication(BaseModel):
    name: str
    dosage: str
    frequency: str
    duration: str
    instructions: Optional[str] = None


class PrescriptionView(BaseModel):
    """Denormalized read model: a prescription plus the counterparty relation for the caller's role."""
    id: str
    doctor_id: str
    patient_id: str
    date_issued: str
    diagnosis: str
    medications: List[Medication] = []
    notes: Optional[str] = None
    pdf_url: Optional[str] = None
    status: PrescriptionStatus
    created_at: str
    updated_at: str
    doctor: Optional[DoctorView] = None
    patient: Optional[PatientView] = None


class PrescriptionCreate(BaseModel):
    patient_id: str
    diagnosis: str
    medications: List[Medication] = []
    notes: Optional[str] = None
    status: PrescriptionStatus = PrescriptionStatus.ACTIVE


class PrescriptionUpdate(BaseModel):
    diagnosis: Optional[str] = None
    medications: Optional[List[Medication]] = None
    notes: Optional[str] = None
    status: Optional[PrescriptionStatus] = None


class PrescriptionStats(BaseModel):
    total: int
    active: int
    this_month: int
