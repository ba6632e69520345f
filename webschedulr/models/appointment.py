from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Text
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from ..core.database import Base


class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    # Appointment details
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    start = Column(DateTime, nullable=False, index=True)
    end = Column(DateTime, nullable=False)

    # Tracking
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    user = relationship("User", back_populates="appointments")

    def __repr__(self):
        return f"<Appointment(id={self.id}, user_id={self.user_id}, start='{self.start}')>"
