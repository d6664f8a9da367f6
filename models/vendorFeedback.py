# models/vendorFeedback.py
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from db.extensions import db
from services.live_status import utcnow

FEEDBACK_TYPES = ('GENERAL', 'FEATURE', 'BUG')
FEEDBACK_PRIORITIES = ('low', 'medium', 'high')
FEEDBACK_STATUSES = ('pending', 'reviewed', 'resolved', 'dismissed')


class VendorFeedback(db.Model):
    __tablename__ = 'vendor_feedback'

    id = Column(Integer, primary_key=True)
    vendor_id = Column(Integer, ForeignKey('vendors.id'), nullable=False, index=True)
    message = Column(Text, nullable=False)
    feedback_type = Column(String(20), nullable=False, default='GENERAL')
    priority = Column(String(10), nullable=False, default='medium')
    status = Column(String(20), nullable=False, default='pending')
    admin_notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    vendor = relationship('Vendor', back_populates='feedback')

    def to_dict(self):
        return {
            'id': self.id,
            'vendor_id': self.vendor_id,
            'vendor_name': self.vendor.business_name if self.vendor else 'Unknown Vendor',
            'feedback_type': self.feedback_type,
            'message': self.message,
            'status': self.status,
            'priority': self.priority,
            'admin_notes': self.admin_notes,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }
