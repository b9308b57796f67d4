from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from schemas.user_schema import UserResponse, normalize_username


class SignupRequest(BaseModel):
    email: EmailStr
    redirect_to: str | None = None


class RedirectToResponse(BaseModel):
    redirect_to: str


class OnboardingRequest(BaseModel):
    onboarding_token: str
    username: str
    name: str = Field(min_length=3, max_length=40)
    password: str = Field(min_length=6, max_length=100)
    confirm_password: str = Field(min_length=6, max_length=100)
    agree_to_terms_of_service_and_privacy_policy: bool
    redirect_to: str | None = None

    @field_validator("username")
    @classmethod
    def username_valid(cls, v: str) -> str:
        return normalize_username(v)

    @field_validator("agree_to_terms_of_service_and_privacy_policy")
    @classmethod
    def terms_accepted(cls, v: bool) -> bool:
        if not v:
            raise ValueError("You must agree to the terms of service and privacy policy")
        return v

    @model_validator(mode="after")
    def passwords_match(self):
        if self.password != self.confirm_password:
            raise ValueError("The passwords must match")
        return self


class LoginRequest(BaseModel):
    username: str = Field(min_length=4)
    password: str
    redirect_to: str | None = None

    @field_validator("username")
    @classmethod
    def lowercase(cls, v: str) -> str:
        return v.strip().lower()


class AuthTokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse
    redirect_to: str = "/"


class ForgotPasswordRequest(BaseModel):
    username_or_email: str = Field(min_length=3)
    redirect_to: str | None = None


class ResetPasswordRequest(BaseModel):
    reset_token: str
    password: str = Field(min_length=6, max_length=100)
    confirm_password: str = Field(min_length=6, max_length=100)

    @model_validator(mode="after")
    def passwords_match(self):
        if self.password != self.confirm_password:
            raise ValueError("The passwords must match")
        return self
