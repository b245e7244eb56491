from typing import Optional
from pydantic import BaseModel, EmailStr, Field

from rxportal.domain.identity.models import UserRole
from rxportal.schemas.identity import ProfileView


class SignUpRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    full_name: str = Field(..., min_length=1, max_length=200)
    phone: Optional[str] = Field(None, max_length=20)
    role: UserRole = UserRole.PATIENT
    # doctor only
    specialization: Optional[str] = Field(None, max_length=100)
    license_number: Optional[str] = Field(None, max_length=50)
    # patient only
    date_of_birth: Optional[str] = None
    medical_record_number: Optional[str] = Field(None, max_length=50)
    emergency_contact: Optional[str] = Field(None, max_length=200)


class SignInRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    profile: ProfileView
