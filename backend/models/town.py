"""
Town Model - Geographic district (e.g. "BEDOK", "ANG MO KIO")
"""
from models.database import db


class Town(db.Model):
    __tablename__ = 'towns'

    id = db.Column(db.Integer, primary_key=True)
    town_name = db.Column(db.String(100), unique=True, nullable=False, index=True)

    blocks = db.relationship('Block', back_populates='town', lazy='dynamic')

    @staticmethod
    def normalize_name(name):
        """Town names are stored upper-cased and stripped."""
        return name.strip().upper() if name else name

    def to_dict(self):
        return {
            'id': self.id,
            'town_name': self.town_name,
        }

    def __repr__(self):
        return f"<Town {self.town_name}>"
