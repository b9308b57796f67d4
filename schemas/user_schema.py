import re

from pydantic import BaseModel

USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_]+$")


def normalize_username(value: str) -> str:
    value = value.strip()
    if not 3 <= len(value) <= 20:
        raise ValueError("Username must be between 3 and 20 characters")
    if not USERNAME_PATTERN.match(value):
        raise ValueError("Username can only include letters, numbers, and underscores")
    return value.lower()


class UserBase(BaseModel):
    username: str
    email: str
    name: str | None = None


class UserResponse(UserBase):
    id: str

    model_config = {
        "from_attributes": True,
    }
