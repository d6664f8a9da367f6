# models/platformSettings.py
from sqlalchemy import Column, Integer, Boolean, DateTime
from db.extensions import db
from services.live_status import utcnow


class PlatformSettings(db.Model):
    """Single-row table of platform switches."""
    __tablename__ = 'platform_settings'

    id = Column(Integer, primary_key=True, default=1)
    require_vendor_approval = Column(Boolean, nullable=False, default=True)
    allow_auto_vendor_approval = Column(Boolean, nullable=False, default=False)
    maintenance_mode = Column(Boolean, nullable=False, default=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    @classmethod
    def current(cls):
        """Return the settings row, creating it with defaults on first use."""
        settings = db.session.get(cls, 1)
        if settings is None:
            settings = cls(
                id=1,
                require_vendor_approval=True,
                allow_auto_vendor_approval=False,
                maintenance_mode=False,
            )
            db.session.add(settings)
            db.session.flush()
        return settings

    def to_dict(self):
        return {
            'require_vendor_approval': self.require_vendor_approval,
            'allow_auto_vendor_approval': self.allow_auto_vendor_approval,
            'maintenance_mode': self.maintenance_mode,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }
