from fastapi import APIRouter
from rxportal.api.v1.auth import routes as auth
from rxportal.api.v1.patients import routes as patients
from rxportal.api.v1.prescriptions import routes as prescriptions

api_router = APIRouter()
api_router.include_router(auth.router)
api_router.include_router(patients.router)
api_router.include_router(prescriptions.router)
