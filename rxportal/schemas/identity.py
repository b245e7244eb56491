from typing import Optional
from pydantic import BaseModel

from rxportal.core.time_utils import to_iso
from rxportal.domain.identity.models import UserRole


class ProfileView(BaseModel):
    id: str
    email: str
    full_name: str
    phone: Optional[str] = None
    role: UserRole
    created_at: str
    updated_at: str


class DoctorView(BaseModel):
    id: str
    specialization: str
    license_number: Optional[str] = None
    created_at: str
    updated_at: str
    profiles: ProfileView


class PatientView(BaseModel):
    id: str
    date_of_birth: Optional[str] = None
    medical_record_number: Optional[str] = None
    emergency_contact: Optional[str] = None
    created_at: str
    updated_at: str
    profiles: ProfileView


def build_profile_view(profile, now=None) -> ProfileView:
    return ProfileView(
        id=profile.id,
        email=profile.email,
        full_name=profile.full_name,
        phone=profile.phone,
        role=profile.role,
        created_at=to_iso(profile.created_at, now),
        updated_at=to_iso(profile.updated_at, now),
    )


def build_doctor_view(doctor, profile, now=None) -> DoctorView:
    return DoctorView(
        id=doctor.id,
        specialization=doctor.specialization,
        license_number=doctor.license_number,
        created_at=to_iso(doctor.created_at, now),
        updated_at=to_iso(doctor.updated_at, now),
        profiles=build_profile_view(profile, now),
    )


def build_patient_view(patient, profile, now=None) -> PatientView:
    return PatientView(
        id=patient.id,
        date_of_birth=patient.date_of_birth.isoformat() if patient.date_of_birth else None,
        medical_record_number=patient.medical_record_number,
        emergency_contact=patient.emergency_contact,
        created_at=to_iso(patient.created_at, now),
        updated_at=to_iso(patient.updated_at, now),
        profiles=build_profile_view(profile, now),
    )
