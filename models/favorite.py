from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from db.extensions import db
from services.live_status import utcnow


class Favorite(db.Model):
    __tablename__ = 'favorites'
    __table_args__ = (
        UniqueConstraint('customer_id', 'vendor_id', name='uq_favorites_customer_vendor'),
    )

    id = Column(Integer, primary_key=True)
    customer_id = Column(String(64), ForeignKey('users.id'), nullable=False, index=True)
    vendor_id = Column(Integer, ForeignKey('vendors.id'), nullable=False)
    created_at = Column(DateTime, default=utcnow)

    customer = relationship('User', back_populates='favorites')
    vendor = relationship('Vendor', back_populates='favorites')
