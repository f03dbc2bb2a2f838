import logging

from glowmify.core.exceptions import BadRequestError, NotFoundError, UnauthorizedError
from glowmify.core.security import (
    create_access_token,
    create_refresh_token,
    hash_password,
    verify_password,
)
from glowmify.models.dto.auth import (
    AuthPayload,
    LoginRequest,
    RegisterRequest,
    UserResponse,
    VerifyEmailRequest,
)
from glowmify.repositories import user_repo
from glowmify.repositories.user_repo import MockUser, UserStore

logger = logging.getLogger(__name__)

VERIFICATION_CODE_LENGTH = 6


def _auth_payload(user: MockUser) -> AuthPayload:
    return AuthPayload(
        user=UserResponse.model_validate(user),
        token=create_access_token(user.id),
        refresh_token=create_refresh_token(user.id),
    )


async def register(store: UserStore, body: RegisterRequest) -> AuthPayload:
    if not (body.email and body.password and body.user_id and body.phone):
        raise BadRequestError("Missing required fields")
    if await user_repo.get_by_email(store, body.email):
        raise BadRequestError("User already exists")

    user = await user_repo.create(store, MockUser(
        email=body.email,
        password_hash=hash_password(body.password),
        user_id=body.user_id,
        phone=body.phone,
        is_business=body.is_business,
    ))
    logger.info("Mock user registered: %s", user.id)
    return _auth_payload(user)


async def login(store: UserStore, body: LoginRequest) -> AuthPayload:
    if not (body.email and body.password):
        raise BadRequestError("Email and password are required")
    user = await user_repo.get_by_email(store, body.email)
    if not user or not verify_password(body.password, user.password_hash):
        raise UnauthorizedError("Invalid email or password")
    logger.info("Mock user logged in: %s", user.id)
    return _auth_payload(user)


async def verify_email(store: UserStore, body: VerifyEmailRequest) -> MockUser:
    if not (body.email and body.code):
        raise BadRequestError("Email and code are required")
    user = await user_repo.get_by_email(store, body.email)
    if not user:
        raise NotFoundError("User not found")
    # Any code of the right length is accepted.
    if len(body.code) != VERIFICATION_CODE_LENGTH:
        raise BadRequestError("Invalid verification code")
    return await user_repo.mark_email_verified(store, user)
