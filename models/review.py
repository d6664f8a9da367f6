# models/review.py
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from db.extensions import db
from services.live_status import utcnow


class Review(db.Model):
    __tablename__ = 'reviews'
    __table_args__ = (
        UniqueConstraint('vendor_id', 'user_id', name='uq_reviews_vendor_user'),
    )

    id = Column(Integer, primary_key=True)
    vendor_id = Column(Integer, ForeignKey('vendors.id'), nullable=False, index=True)
    user_id = Column(String(64), ForeignKey('users.id'), nullable=False)
    rating = Column(Integer, nullable=False)  # 1..5
    review = Column(Text, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    edited_at = Column(DateTime, nullable=True)

    vendor = relationship('Vendor', back_populates='reviews')
    user = relationship('User', back_populates='reviews')

    def to_dict(self):
        return {
            'id': self.id,
            'vendor_id': self.vendor_id,
            'user_id': self.user_id,
            'rating': self.rating,
            'review': self.review,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'edited_at': self.edited_at.isoformat() if self.edited_at else None,
            'user': {
                'full_name': self.user.full_name if self.user else None,
                'avatar_url': self.user.avatar_url if self.user else None,
            },
        }
