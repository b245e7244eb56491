import pytest
from datetime import date
from typing import AsyncGenerator, Awaitable, Callable, Optional
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from rxportal.main import app
from rxportal.infrastructure.database import get_db, Base
from rxportal.core.permissions import CallerContext
from rxportal.core.security import create_access_token
from rxportal.domain.identity.models import Profile, Doctor, Patient, UserRole
from rxportal.domain.prescriptions.models import Prescription


# Test database URL
TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest.fixture(scope="function")
async def test_engine():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture(scope="function")
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh database session for each test."""
    session_factory = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client with database dependency override."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


IdentityFactory = Callable[..., Awaitable[CallerContext]]


@pytest.fixture(scope="function")
def make_identity(db_session: AsyncSession) -> IdentityFactory:
    """Insert a profile plus its doctor/patient row and return the caller context."""

    async def factory(
        identity_id: str,
        role: UserRole,
        full_name: str,
        *,
        with_profile: bool = True,
        specialization: str = "General Practice",
        license_number: Optional[str] = None,
        date_of_birth: Optional[date] = None,
    ) -> CallerContext:
        if with_profile:
            db_session.add(Profile(
                id=identity_id,
                email=f"{identity_id.lower()}@example.com",
                password_hash="not-a-real-hash",
                full_name=full_name,
                role=role,
            ))
        if role == UserRole.DOCTOR:
            db_session.add(Doctor(
                id=identity_id,
                specialization=specialization,
                license_number=license_number,
            ))
        else:
            db_session.add(Patient(id=identity_id, date_of_birth=date_of_birth))
        await db_session.commit()
        return CallerContext(identity_id=identity_id, role=role)

    return factory


@pytest.fixture(scope="function")
async def doctor(make_identity: IdentityFactory) -> CallerContext:
    return await make_identity(
        "D1", UserRole.DOCTOR, "Gregory House",
        specialization="Diagnostic Medicine", license_number="LIC-1001",
    )


@pytest.fixture(scope="function")
async def patient(make_identity: IdentityFactory) -> CallerContext:
    return await make_identity(
        "P1", UserRole.PATIENT, "Jane Roe", date_of_birth=date(1990, 1, 1)
    )


@pytest.fixture(scope="function")
def auth_headers() -> Callable[[CallerContext], dict]:
    """Bearer headers for a caller, as issued at sign-in."""

    def build(identity: CallerContext) -> dict:
        token = create_access_token(identity.identity_id, {"role": identity.role.value})
        return {"Authorization": f"Bearer {token}"}

    return build


@pytest.fixture(scope="function")
def amoxicillin() -> dict:
    return {
        "name": "Amoxicillin",
        "dosage": "500mg",
        "frequency": "3x daily",
        "duration": "7 days",
    }


@pytest.fixture(scope="function")
def ibuprofen() -> dict:
    return {
        "name": "Ibuprofen",
        "dosage": "200mg",
        "frequency": "as needed",
        "duration": "5 days",
        "instructions": "Take with food",
    }


@pytest.fixture(scope="function")
def make_prescription(db_session: AsyncSession):
    """Insert a prescription row directly, bypassing the authoring rules."""

    async def factory(doctor_id: str, patient_id: str, **fields) -> Prescription:
        fields.setdefault("diagnosis", "Common cold")
        fields.setdefault("medications", [{
            "name": "Paracetamol",
            "dosage": "500mg",
            "frequency": "2x daily",
            "duration": "3 days",
            "instructions": None,
        }])
        prescription = Prescription(doctor_id=doctor_id, patient_id=patient_id, **fields)
        db_session.add(prescription)
        await db_session.commit()
        await db_session.refresh(prescription)
        return prescription

    return factory
