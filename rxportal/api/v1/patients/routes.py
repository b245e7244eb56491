from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from rxportal.api.deps import get_db, require_permissions
from rxportal.core.permissions import CallerContext, Permissions
from rxportal.domain.identity.service import IdentityService
from rxportal.schemas.identity import PatientView

router = APIRouter(prefix="/patients", tags=["Patients"])


@router.get("/", response_model=List[PatientView])
async def list_patients(
    search: Optional[str] = Query(None, max_length=200),
    identity: CallerContext = Depends(require_permissions([Permissions.PATIENTS_READ])),
    db: AsyncSession = Depends(get_db)
):
    """Patients with profiles, filtered by name or email"""
    return await IdentityService(db).list_patients(identity, search)
