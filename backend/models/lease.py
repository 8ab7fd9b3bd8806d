"""
Lease Model - Lease commencement and remaining lease (years + months)

remaining_lease_years is the integer part used for lease-band bucketing.
"""
from models.database import db


class Lease(db.Model):
    __tablename__ = 'leases'

    id = db.Column(db.Integer, primary_key=True)
    lease_commence_year = db.Column(db.Integer, nullable=False)
    remaining_lease_years = db.Column(db.Integer, nullable=False, index=True)
    remaining_lease_months = db.Column(db.Integer, nullable=False, default=0)

    @property
    def remaining_lease(self):
        """Remaining lease as decimal years (e.g. 61 years 6 months -> 61.5)."""
        return round(self.remaining_lease_years + (self.remaining_lease_months or 0) / 12, 2)

    def to_dict(self):
        return {
            'id': self.id,
            'lease_commence_year': self.lease_commence_year,
            'remaining_lease_years': self.remaining_lease_years,
            'remaining_lease_months': self.remaining_lease_months,
            'remaining_lease': self.remaining_lease,
        }
