from __future__ import annotations

from sqlalchemy import Column, Date, Text
from sqlalchemy.orm import relationship

from ..db.session import Base, UTCDateTime


class FireExtinguisherRow(Base):
    __tablename__ = "fire_extinguishers"

    id = Column(Text, primary_key=True)
    barcode = Column(Text, nullable=False, index=True, unique=True)
    extinguisher_no = Column(Text, nullable=False)
    location = Column(Text, nullable=False)
    date_of_testing = Column(Date, nullable=False)
    created_at = Column(UTCDateTime, nullable=False)

    maintenance_logs = relationship("MaintenanceLogRow", back_populates="extinguisher", lazy="select")
