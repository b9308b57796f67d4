from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Either a full URL or the DB_* parts below (MySQL).
    DATABASE_URL: str = ""
    DB_USER: str = ""
    DB_PASSWORD: str = ""
    DB_HOST: str = ""
    DB_PORT: str = "3306"
    DB_NAME: str = ""

    # Comma separated; the first one signs, all of them verify.
    SESSION_SECRETS: str = "dev-session-secret-change-me"
    SESSION_EXPIRATION_DAYS: int = 30

    ADMIN_EMAIL: str = ""
    RESEND_API_KEY: str = ""
    EMAIL_FROM: str = "Community Hub <noreply@communityhub.dev>"

    VERIFICATION_PERIOD_SECONDS: int = 10 * 60
    VERIFIED_TOKEN_MAX_AGE_SECONDS: int = 10 * 60

    LOG_LEVEL: str = "INFO"

    @property
    def SQLALCHEMY_DATABASE_URI(self):
        if self.DATABASE_URL:
            return self.DATABASE_URL
        if self.DB_HOST and self.DB_NAME:
            return (
                f"mysql+pymysql://{self.DB_USER}:{self.DB_PASSWORD}"
                f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
            )
        return "sqlite:///./community_hub.db"

    @property
    def session_secrets(self) -> List[str]:
        return [s.strip() for s in self.SESSION_SECRETS.split(",") if s.strip()]

    class Config:
        env_file = ".env"

settings = Settings()
