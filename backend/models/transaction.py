"""
Transaction Model - One HDB resale record

Column Mapping (data.gov.sg resale flat prices):
  CSV Column              → DB Column / relation       Notes
  ─────────────────────────────────────────────────────────────
  month                   → month                      'YYYY-MM', required
  resale_price            → price                      Required, > 0
  floor_area_sqm          → floor_area_sqm             Required, > 0
  (computed)              → price_per_sqm              price / floor_area_sqm
  town + block + street   → block_id                   Block belongs to Town
  flat_type               → flat_type_id
  flat_model              → flat_model_id
  storey_range            → storey_range_id
  lease_commence_date +
  remaining_lease         → lease_id

Rows are written only by the import pipeline and never updated afterwards.
The analytics layer reads them through services/analytics_service.py.
"""
from sqlalchemy import event

from models.database import db


class Transaction(db.Model):
    __tablename__ = 'transactions'
    __table_args__ = (
        db.CheckConstraint('floor_area_sqm > 0', name='ck_transactions_floor_area_positive'),
        db.CheckConstraint('price > 0', name='ck_transactions_price_positive'),
    )

    id = db.Column(db.Integer, primary_key=True)
    month = db.Column(db.String(7), nullable=False, index=True)
    price = db.Column(db.Float, nullable=False)
    floor_area_sqm = db.Column(db.Float, nullable=False)
    price_per_sqm = db.Column(db.Float, nullable=False)

    block_id = db.Column(db.Integer, db.ForeignKey('blocks.id'), nullable=False, index=True)
    flat_type_id = db.Column(db.Integer, db.ForeignKey('flat_types.id'), nullable=False, index=True)
    flat_model_id = db.Column(db.Integer, db.ForeignKey('flat_models.id'))
    storey_range_id = db.Column(db.Integer, db.ForeignKey('storey_ranges.id'))
    lease_id = db.Column(db.Integer, db.ForeignKey('leases.id'), nullable=False, index=True)

    block = db.relationship('Block')
    flat_type = db.relationship('FlatType')
    flat_model = db.relationship('FlatModel')
    storey_range = db.relationship('StoreyRange')
    lease = db.relationship('Lease')

    @staticmethod
    def compute_price_per_sqm(price, floor_area_sqm):
        return round(price / floor_area_sqm, 2)

    def to_dict(self):
        """Flattened record with dimension names joined in."""
        town = self.block.town if self.block else None
        return {
            'id': self.id,
            'month': self.month,
            'price': self.price,
            'floor_area_sqm': self.floor_area_sqm,
            'price_per_sqm': self.price_per_sqm,
            'town_name': town.town_name if town else None,
            'block_number': self.block.block_number if self.block else None,
            'street_name': self.block.street_name if self.block else None,
            'flat_type_name': self.flat_type.flat_type_name if self.flat_type else None,
            'flat_model_name': self.flat_model.flat_model_name if self.flat_model else None,
            'storey_range': self.storey_range.storey_range if self.storey_range else None,
            'lease_commence_year': self.lease.lease_commence_year if self.lease else None,
            'remaining_lease': self.lease.remaining_lease if self.lease else None,
        }


@event.listens_for(Transaction, 'before_insert')
def _fill_price_per_sqm(mapper, connection, target):
    """price_per_sqm is always derivable; fill it when the loader left it out."""
    if target.price_per_sqm is None and target.price is not None and target.floor_area_sqm:
        target.price_per_sqm = Transaction.compute_price_per_sqm(target.price, target.floor_area_sqm)
