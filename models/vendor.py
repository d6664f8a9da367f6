from sqlalchemy import Column, Integer, String, Float, ForeignKey, DateTime, JSON, Text
from sqlalchemy.orm import relationship
from db.extensions import db
from services.live_status import utcnow
from models.user import User
from models.liveSession import VendorLiveSession
from models.staticLocation import VendorStaticLocation
from models.vendorImage import VendorImage
from models.announcement import VendorAnnouncement
from models.review import Review
from models.favorite import Favorite
from models.vendorFeedback import VendorFeedback

VENDOR_STATUSES = ('pending', 'approved', 'active', 'rejected')
LISTED_STATUSES = ('active', 'approved')


class Vendor(db.Model):
    __tablename__ = 'vendors'

    id = Column(Integer, primary_key=True)
    user_id = Column(String(64), ForeignKey('users.id'), nullable=False, unique=True)

    business_name = Column(String(255), nullable=False)
    business_type = Column(String(100), nullable=True)
    subcategory = Column(String(100), nullable=True)
    description = Column(Text, nullable=True)
    tags = Column(JSON, nullable=True)

    contact_email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    address = Column(String(512), nullable=True)
    city = Column(String(100), nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)

    profile_image_url = Column(String(512), nullable=True)
    profile_image_public_id = Column(String(255), nullable=True)

    # Approval workflow
    status = Column(String(20), nullable=False, default='pending')
    approved_by = Column(Integer, ForeignKey('admin_users.id'), nullable=True)
    approved_at = Column(DateTime, nullable=True)
    rejection_reason = Column(Text, nullable=True)
    admin_notes = Column(Text, nullable=True)

    # Maintained when reviews are written
    average_rating = Column(Float, nullable=True)
    total_reviews = Column(Integer, nullable=False, default=0)

    # Timestamps
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    user = relationship('User', back_populates='vendor')

    live_sessions = relationship(
        'VendorLiveSession',
        back_populates='vendor',
        order_by='VendorLiveSession.start_time.desc()',
        cascade="all, delete-orphan"
    )

    static_locations = relationship(
        'VendorStaticLocation',
        back_populates='vendor',
        order_by='VendorStaticLocation.id',
        cascade="all, delete-orphan"
    )

    images = relationship(
        'VendorImage',
        back_populates='vendor',
        order_by='VendorImage.position',
        cascade="all, delete-orphan"
    )

    announcements = relationship(
        'VendorAnnouncement',
        back_populates='vendor',
        order_by='VendorAnnouncement.created_at.desc()',
        cascade="all, delete-orphan"
    )

    reviews = relationship('Review', back_populates='vendor', cascade="all, delete-orphan")
    favorites = relationship('Favorite', back_populates='vendor', cascade="all, delete-orphan")
    feedback = relationship('VendorFeedback', back_populates='vendor', cascade="all, delete-orphan")

    @property
    def active_session(self):
        """The vendor's active live session, if any."""
        for session in self.live_sessions:
            if session.is_active:
                return session
        return None

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'business_name': self.business_name,
            'business_type': self.business_type,
            'subcategory': self.subcategory,
            'description': self.description,
            'tags': self.tags or [],
            'contact_email': self.contact_email,
            'phone': self.phone,
            'address': self.address,
            'city': self.city,
            'latitude': self.latitude,
            'longitude': self.longitude,
            'profile_image_url': self.profile_image_url,
            'status': self.status,
            'approved_at': self.approved_at.isoformat() if self.approved_at else None,
            'rejection_reason': self.rejection_reason,
            'average_rating': self.average_rating,
            'total_reviews': self.total_reviews or 0,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }

    def __str__(self):
        return f"Vendor(id={self.id}, business_name='{self.business_name}', status='{self.status}')"

    def __repr__(self):
        return self.__str__()
