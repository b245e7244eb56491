from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from rxportal.api.deps import get_db, get_optional_identity, require_permissions
from rxportal.core.exceptions import NotFoundError
from rxportal.core.permissions import CallerContext, Permissions
from rxportal.domain.prescriptions.assembler import PrescriptionAssembler, summarize
from rxportal.domain.prescriptions.renderer import DocumentRenderer
from rxportal.domain.prescriptions.service import PrescriptionService
from rxportal.schemas.prescription import (
    PrescriptionCreate, PrescriptionStats, PrescriptionUpdate, PrescriptionView
)

router = APIRouter(prefix="/prescriptions", tags=["Prescriptions"])

read_access = require_permissions([Permissions.PRESCRIPTIONS_READ_OWN])


@router.get("/", response_model=List[PrescriptionView])
async def list_prescriptions(
    identity: CallerContext = Depends(read_access),
    db: AsyncSession = Depends(get_db)
):
    """Prescriptions visible to the caller, newest first"""
    return await PrescriptionAssembler(db, identity).assemble()


@router.get("/stats", response_model=PrescriptionStats)
async def prescription_stats(
    identity: CallerContext = Depends(read_access),
    db: AsyncSession = Depends(get_db)
):
    views = await PrescriptionAssembler(db, identity).assemble()
    return summarize(views)


@router.get("/{prescription_id}", response_model=PrescriptionView)
async def read_prescription(
    prescription_id: str,
    identity: CallerContext = Depends(read_access),
    db: AsyncSession = Depends(get_db)
):
    view = await PrescriptionAssembler(db, identity).assemble_one(prescription_id)
    if view is None:
        raise NotFoundError("Prescription not found")
    return view


@router.post("/", response_model=PrescriptionView, status_code=status.HTTP_201_CREATED)
async def create_prescription(
    prescription_in: PrescriptionCreate,
    identity: Optional[CallerContext] = Depends(get_optional_identity),
    db: AsyncSession = Depends(get_db)
):
    return await PrescriptionService(db).create_prescription(identity, prescription_in)


@router.put("/{prescription_id}", response_model=PrescriptionView)
async def update_prescription(
    prescription_id: str,
    prescription_in: PrescriptionUpdate,
    identity: Optional[CallerContext] = Depends(get_optional_identity),
    db: AsyncSession = Depends(get_db)
):
    return await PrescriptionService(db).update_prescription(identity, prescription_id, prescription_in)


@router.get("/{prescription_id}/document")
async def download_prescription_document(
    prescription_id: str,
    identity: CallerContext = Depends(require_permissions([Permissions.PRESCRIPTIONS_EXPORT])),
    db: AsyncSession = Depends(get_db)
):
    """Rendered prescription as a file attachment"""
    view = await PrescriptionAssembler(db, identity).assemble_one(prescription_id)
    if view is None:
        raise NotFoundError("Prescription not found")

    renderer = DocumentRenderer()
    return Response(
        content=renderer.render(view),
        media_type="text/html; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{renderer.filename_for(view)}"'}
    )
