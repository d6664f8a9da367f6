from sqlalchemy import Column, Integer, String, Float, ForeignKey
from sqlalchemy.orm import relationship
from db.extensions import db


class VendorStaticLocation(db.Model):
    __tablename__ = 'vendor_static_locations'

    id = Column(Integer, primary_key=True)
    vendor_id = Column(Integer, ForeignKey('vendors.id'), nullable=False, index=True)
    address = Column(String(512), nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)

    vendor = relationship('Vendor', back_populates='static_locations')

    def to_dict(self):
        return {
            'id': self.id,
            'vendor_id': self.vendor_id,
            'address': self.address,
            'latitude': self.latitude,
            'longitude': self.longitude,
        }
