import uuid
from sqlalchemy import Column, String, Integer, DateTime, UniqueConstraint
from models.base import Base, TimestampMixin

class Verification(Base, TimestampMixin):
    """One active one-time-password configuration per (type, target)."""

    __tablename__ = "verifications"
    __table_args__ = (
        UniqueConstraint("type", "target", name="uq_verifications_type_target"),
    )

    id = Column(String(64), primary_key=True, default=lambda: str(uuid.uuid4()))
    type = Column(String(32), nullable=False)  # onboarding, reset-password
    target = Column(String(255), nullable=False)  # email or phone
    secret = Column(String(128), nullable=False)
    algorithm = Column(String(16), nullable=False)
    digits = Column(Integer, nullable=False)
    period = Column(Integer, nullable=False)
    char_set = Column(String(128), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=True)
