# models/user.py
from sqlalchemy import Column, String, DateTime
from sqlalchemy.orm import relationship
from db.extensions import db
from services.live_status import utcnow


class User(db.Model):
    """Customer account mirrored from the auth provider; ``id`` is the token subject."""
    __tablename__ = 'users'

    id = Column(String(64), primary_key=True)
    email = Column(String(255), index=True, nullable=True)
    full_name = Column(String(255), nullable=True)
    avatar_url = Column(String(512), nullable=True)
    active_role = Column(String(20), nullable=False, default='customer')  # 'customer' or 'vendor'

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    vendor = relationship('Vendor', back_populates='user', uselist=False)
    favorites = relationship('Favorite', back_populates='customer', cascade="all, delete-orphan")
    reviews = relationship('Review', back_populates='user')

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'full_name': self.full_name,
            'avatar_url': self.avatar_url,
            'active_role': self.active_role,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<User(id='{self.id}', email='{self.email}', role='{self.active_role}')>"
