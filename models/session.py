import uuid
from sqlalchemy import Column, String, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship
from models.base import Base, TimestampMixin

class Session(Base, TimestampMixin):
    __tablename__ = "sessions"

    # The id doubles as the bearer token handed to the client.
    id = Column(String(64), primary_key=True, default=lambda: uuid.uuid4().hex)
    agent = Column(String(512), nullable=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    user_id = Column(String(64), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    user = relationship("User", back_populates="sessions")

Index("idx_sessions_user_id", Session.user_id)
