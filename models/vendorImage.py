# models/vendorImage.py
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from db.extensions import db
from services.live_status import utcnow


class VendorImage(db.Model):
    """Gallery image stored in Cloudinary."""
    __tablename__ = 'vendor_images'

    id = Column(Integer, primary_key=True)
    vendor_id = Column(Integer, ForeignKey('vendors.id'), nullable=False, index=True)
    url = Column(String(512), nullable=False)
    public_id = Column(String(255), nullable=False)
    title = Column(String(100), nullable=False, default='')
    caption = Column(String(500), nullable=False, default='')
    position = Column(Integer, nullable=False, default=0)
    uploaded_at = Column(DateTime, default=utcnow)

    vendor = relationship('Vendor', back_populates='images')

    def to_dict(self):
        return {
            'id': self.id,
            'url': self.url,
            'title': self.title,
            'caption': self.caption,
            'position': self.position,
            'uploaded_at': self.uploaded_at.isoformat() if self.uploaded_at else None,
        }
