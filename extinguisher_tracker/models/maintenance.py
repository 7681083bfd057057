from __future__ import annotations

from sqlalchemy import Column, Date, ForeignKey, Integer, Text
from sqlalchemy.orm import relationship

from ..db.session import Base, UTCDateTime


class MaintenanceLogRow(Base):
    """One maintenance event. Rows are inserted and never updated."""

    __tablename__ = "maintenance_logs"

    id = Column(Text, primary_key=True)
    # Insertion counter; breaks ties between entries sharing a timestamp.
    seq = Column(Integer, nullable=False, index=True)
    extinguisher_id = Column(Text, ForeignKey("fire_extinguishers.id"), nullable=False, index=True)
    date_work_done = Column(Date, nullable=False)
    remarks = Column(Text, nullable=False)
    user = Column(Text, nullable=False)
    created_at = Column(UTCDateTime, nullable=False)

    extinguisher = relationship("FireExtinguisherRow", back_populates="maintenance_logs")
