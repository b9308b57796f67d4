from pydantic import BaseModel, Field, model_validator

from core.verification import VerificationType


class VerifyRequest(BaseModel):
    code: str = Field(min_length=6, max_length=6)
    type: VerificationType
    target: str
    redirect_to: str | None = None

    @model_validator(mode="after")
    def normalize_target(self):
        # Onboarding targets are stored lowercased by signup.
        if self.type == VerificationType.ONBOARDING:
            self.target = self.target.strip().lower()
        return self


class VerifyResponse(BaseModel):
    status: str = "verified"
    type: VerificationType
    # Signed proof of the verified target, redeemed by the next step.
    token: str
    redirect_to: str
