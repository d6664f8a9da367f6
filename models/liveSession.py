# models/liveSession.py
from sqlalchemy import Column, Integer, String, Float, Boolean, DateTime, ForeignKey, Index, text
from sqlalchemy.orm import relationship
from db.extensions import db
from services.live_status import utcnow


class VendorLiveSession(db.Model):
    """One row per "go live"; at most one active row per vendor."""
    __tablename__ = 'vendor_live_sessions'
    __table_args__ = (
        Index(
            'uq_vendor_live_sessions_one_active',
            'vendor_id',
            unique=True,
            postgresql_where=text('is_active'),
            sqlite_where=text('is_active = 1'),
        ),
    )

    id = Column(Integer, primary_key=True)
    vendor_id = Column(Integer, ForeignKey('vendors.id'), nullable=False, index=True)

    start_time = Column(DateTime, nullable=False, default=utcnow)
    end_time = Column(DateTime, nullable=True)
    auto_end_time = Column(DateTime, nullable=True)
    was_scheduled_duration = Column(Integer, nullable=True)  # minutes
    estimated_customers = Column(Integer, nullable=True)

    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    address = Column(String(512), nullable=True)

    is_active = Column(Boolean, nullable=False, default=True)
    ended_by = Column(String(20), nullable=True)  # 'vendor', 'timer' or 'admin'
    created_at = Column(DateTime, default=utcnow)

    vendor = relationship('Vendor', back_populates='live_sessions')

    def to_dict(self):
        return {
            'id': self.id,
            'vendor_id': self.vendor_id,
            'start_time': self.start_time.isoformat() if self.start_time else None,
            'end_time': self.end_time.isoformat() if self.end_time else None,
            'auto_end_time': self.auto_end_time.isoformat() if self.auto_end_time else None,
            'was_scheduled_duration': self.was_scheduled_duration,
            'estimated_customers': self.estimated_customers,
            'latitude': self.latitude,
            'longitude': self.longitude,
            'address': self.address,
            'is_active': self.is_active,
            'ended_by': self.ended_by,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<VendorLiveSession(id={self.id}, vendor_id={self.vendor_id}, is_active={self.is_active})>"
