from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from rxportal.api.deps import get_db, require_permissions
from rxportal.api.v1.auth.schemas import SignInRequest, SignUpRequest, TokenResponse
from rxportal.core.permissions import CallerContext, Permissions
from rxportal.domain.identity.service import IdentityService
from rxportal.schemas.identity import ProfileView

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/signup", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def sign_up(
    signup_data: SignUpRequest,
    db: AsyncSession = Depends(get_db)
):
    """Register a doctor or patient identity"""
    return await IdentityService(db).sign_up(signup_data)


@router.post("/login", response_model=TokenResponse, status_code=status.HTTP_200_OK)
async def login(
    login_data: SignInRequest,
    db: AsyncSession = Depends(get_db)
):
    """Authenticate and return an access token"""
    return await IdentityService(db).sign_in(login_data.email, login_data.password)


@router.get("/me", response_model=ProfileView)
async def read_me(
    identity: CallerContext = Depends(require_permissions([Permissions.PROFILE_READ_OWN])),
    db: AsyncSession = Depends(get_db)
):
    return await IdentityService(db).get_profile(identity)
