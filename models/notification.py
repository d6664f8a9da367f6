# models/notification.py
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from db.extensions import db
from services.live_status import utcnow


class Notification(db.Model):
    __tablename__ = 'notifications'

    id = Column(Integer, primary_key=True)
    # NULL recipient means the notification is addressed to the admin team
    recipient_id = Column(String(64), ForeignKey('users.id'), nullable=True, index=True)
    type = Column(String(50), nullable=False)  # e.g. 'vendor_signup', 'vendor_status', 'feedback'
    message = Column(String(1000), nullable=False)
    link = Column(String(512), nullable=True)
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=utcnow)

    recipient = relationship('User')

    def to_dict(self):
        return {
            'id': self.id,
            'recipient_id': self.recipient_id,
            'recipient_email': self.recipient.email if self.recipient else None,
            'type': self.type,
            'message': self.message,
            'link': self.link,
            'is_read': self.is_read,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
