from sqlalchemy import Column, String, ForeignKey
from sqlalchemy.orm import relationship
from models.base import Base, TimestampMixin

class Password(Base, TimestampMixin):
    __tablename__ = "passwords"

    user_id = Column(String(64), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    hash = Column(String(255), nullable=False)

    user = relationship("User", back_populates="password")
