from typing import Optional, List
from datetime import date
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from rxportal.core.exceptions import (
    AuthenticationError, AuthorizationError, ConflictError, NotFoundError, ValidationError
)
from rxportal.core.permissions import CallerContext, Permissions
from rxportal.core.security import create_access_token, get_password_hash, verify_password
from rxportal.domain.identity.models import UserRole, Profile
from rxportal.domain.identity.repository import IdentityRepository
from rxportal.api.v1.auth.schemas import SignUpRequest, TokenResponse
from rxportal.schemas.identity import (
    ProfileView, PatientView, build_profile_view, build_patient_view
)


class IdentityService:
    """Sign-up, sign-in and profile lookups"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.repo = IdentityRepository(db)

    def _issue_token(self, profile: Profile) -> TokenResponse:
        token = create_access_token(profile.id, {"role": profile.role.value})
        return TokenResponse(access_token=token, profile=build_profile_view(profile))

    async def sign_up(self, data: SignUpRequest) -> TokenResponse:
        if await self.repo.get_profile_by_email(data.email):
            raise ConflictError("User already registered")

        if data.role == UserRole.DOCTOR:
            if not data.specialization or not data.specialization.strip():
                raise ValidationError("Specialization is required for doctors")
            role_data = {
                "specialization": data.specialization.strip(),
                "license_number": data.license_number or None,
            }
        else:
            role_data = {
                "date_of_birth": self._parse_date_of_birth(data.date_of_birth),
                "medical_record_number": data.medical_record_number or None,
                "emergency_contact": data.emergency_contact or None,
            }

        profile = await self.repo.create_identity(
            {
                "email": data.email,
                "password_hash": get_password_hash(data.password),
                "full_name": data.full_name,
                "phone": data.phone or None,
                "role": data.role,
            },
            role_data,
        )
        logger.info(f"Registered {profile.role.value} identity {profile.id}")
        return self._issue_token(profile)

    async def sign_in(self, email: str, password: str) -> TokenResponse:
        profile = await self.repo.get_profile_by_email(email)
        if not profile or not verify_password(password, profile.password_hash):
            raise AuthenticationError("Invalid login credentials")
        return self._issue_token(profile)

    async def get_profile(self, identity: CallerContext) -> ProfileView:
        profile = await self.repo.get_profile(identity.identity_id)
        if not profile:
            raise NotFoundError("Profile not found")
        return build_profile_view(profile)

    async def list_patients(
        self,
        identity: CallerContext,
        search: Optional[str] = None
    ) -> List[PatientView]:
        """Patient picker for the authoring form"""
        if Permissions.PATIENTS_READ not in identity.permissions:
            raise AuthorizationError("Insufficient permissions")
        rows = await self.repo.list_patients_with_profiles(search.strip() if search else None)
        return [build_patient_view(patient, profile) for patient, profile in rows]

    @staticmethod
    def _parse_date_of_birth(value: Optional[str]) -> Optional[date]:
        if not value:
            return None
        try:
            return date.fromisoformat(value)
        except ValueError:
            raise ValidationError(
                "Invalid date_of_birth format. Use YYYY-MM-DD",
                details={"field": "date_of_birth", "value": value}
            )
