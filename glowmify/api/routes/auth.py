from fastapi import APIRouter, Depends

from glowmify.api.dependencies.store import get_user_store
from glowmify.models.dto.auth import LoginRequest, RegisterRequest, VerifyEmailRequest
from glowmify.models.dto.common import StatusResponse
from glowmify.repositories.user_repo import UserStore
from glowmify.services import auth_service

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=StatusResponse, status_code=201)
async def register(body: RegisterRequest, store: UserStore = Depends(get_user_store)):
    payload = await auth_service.register(store, body)
    return {
        "status": "success",
        "message": "Registration successful. Please check your email to verify your account.",
        "data": payload.model_dump(by_alias=True),
    }


@router.post("/login", response_model=StatusResponse)
async def login(body: LoginRequest, store: UserStore = Depends(get_user_store)):
    payload = await auth_service.login(store, body)
    return {
        "status": "success",
        "message": "Login successful",
        "data": payload.model_dump(by_alias=True),
    }


@router.post("/verify-email", response_model=StatusResponse)
async def verify_email(body: VerifyEmailRequest, store: UserStore = Depends(get_user_store)):
    await auth_service.verify_email(store, body)
    return {"status": "success", "message": "Email verified successfully"}
