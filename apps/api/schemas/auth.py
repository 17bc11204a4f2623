"""Request and response models for sign-in, MFA and access control."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from finops.domain.session import AppRole


class SignInBody(BaseModel):
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=1, max_length=128)


class SignInResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    requires_mfa: bool
    user_id: str
    email: str
    role: AppRole
    name: Optional[str] = None


class MFAChallengeBody(BaseModel):
    code: str = Field(..., pattern=r"^\d{6}$", description="Six-digit code from the authenticator app")


class RegisterBody(BaseModel):
    email: str = Field(..., min_length=3, max_length=255)
    name: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=8, max_length=128)


class AccountResponse(BaseModel):
    id: str
    email: str
    name: str


class SessionResponse(BaseModel):
    """Who the caller is and what they may do."""

    user_id: str
    email: str
    name: Optional[str] = None
    role: AppRole
    capabilities: list[str]
    mfa_verified: bool


class MFAEnrollBody(BaseModel):
    friendly_name: Optional[str] = Field(None, max_length=100)


class MFAEnrollResponse(BaseModel):
    factor_id: str
    secret: str
    provisioning_uri: str


class MFAVerifyBody(BaseModel):
    code: str = Field(..., pattern=r"^\d{6}$")


class MFAFactorResponse(BaseModel):
    id: str
    friendly_name: Optional[str] = None
    status: str


class AllowedUserCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    email: str = Field(..., min_length=3, max_length=255)
    role: AppRole = AppRole.VIEWER


class AllowedUserUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    role: Optional[AppRole] = None
    active: Optional[bool] = None
