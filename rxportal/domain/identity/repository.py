from typing import Optional, List, Tuple
from sqlalchemy import select, or_, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from rxportal.core.exceptions import handle_store_error
from rxportal.domain.identity.models import Profile, Doctor, Patient, UserRole


class IdentityRepository:
    """Data access for profiles and their role specialization rows"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_profile(self, profile_id: str) -> Optional[Profile]:
        result = await self.db.execute(select(Profile).where(Profile.id == profile_id))
        return result.scalar_one_or_none()

    async def get_profile_by_email(self, email: str) -> Optional[Profile]:
        result = await self.db.execute(
            select(Profile).where(func.lower(Profile.email) == email.lower())
        )
        return result.scalar_one_or_none()

    async def create_identity(self, profile_data: dict, role_data: dict) -> Profile:
        """Create a profile and its doctor or patient row in one transaction"""
        try:
            profile = Profile(**profile_data)
            self.db.add(profile)
            await self.db.flush()

            if profile.role == UserRole.DOCTOR:
                self.db.add(Doctor(id=profile.id, **role_data))
            else:
                self.db.add(Patient(id=profile.id, **role_data))

            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise handle_store_error(e, "sign up")

        await self.db.refresh(profile)
        return profile

    async def list_patients_with_profiles(
        self,
        search: Optional[str] = None
    ) -> List[Tuple[Patient, Profile]]:
        """Patients joined with their profile; patients without a profile are left out"""
        query = select(Patient, Profile).join(Profile, Profile.id == Patient.id)

        if search:
            term = f"%{search.lower()}%"
            query = query.where(
                or_(
                    func.lower(Profile.full_name).like(term),
                    func.lower(Profile.email).like(term)
                )
            )

        try:
            result = await self.db.execute(query.order_by(Profile.full_name))
        except SQLAlchemyError as e:
            raise handle_store_error(e, "list patients")
        return [(row[0], row[1]) for row in result.all()]
