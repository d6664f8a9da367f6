from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from db.extensions import db
from services.live_status import utcnow


class VendorAnnouncement(db.Model):
    __tablename__ = 'vendor_announcements'

    id = Column(Integer, primary_key=True)
    vendor_id = Column(Integer, ForeignKey('vendors.id'), nullable=False, index=True)
    message = Column(String(500), nullable=False)
    image_url = Column(String(512), nullable=True)
    created_at = Column(DateTime, default=utcnow)

    vendor = relationship('Vendor', back_populates='announcements')

    def to_dict(self):
        return {
            'id': self.id,
            'vendor_id': self.vendor_id,
            'message': self.message,
            'image_url': self.image_url,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
