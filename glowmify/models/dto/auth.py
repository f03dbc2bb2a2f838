from datetime import datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


# Fields are optional so the mock server can answer with its own
# "Missing required fields" message instead of a 422.
class RegisterRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: str | None = None
    password: str | None = None
    user_id: str | None = None
    phone: str | None = None
    is_business: bool = Field(default=False, validation_alias=AliasChoices("is_business", "isBusiness"))


class LoginRequest(BaseModel):
    email: str | None = None
    password: str | None = None


class VerifyEmailRequest(BaseModel):
    email: str | None = None
    code: str | None = None


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: str
    email: str
    user_id: str
    phone: str
    is_business: bool = Field(serialization_alias="isBusiness")
    is_email_verified: bool = Field(serialization_alias="isEmailVerified")
    created_at: datetime = Field(serialization_alias="createdAt")


class AuthPayload(BaseModel):
    user: UserResponse
    token: str
    refresh_token: str = Field(serialization_alias="refreshToken")
