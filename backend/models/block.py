"""
Block Model - A building identified by (block_number, street_name) within a Town
"""
from models.database import db


class Block(db.Model):
    __tablename__ = 'blocks'
    __table_args__ = (
        db.UniqueConstraint('block_number', 'street_name', 'town_id', name='uq_block_street_town'),
    )

    id = db.Column(db.Integer, primary_key=True)
    block_number = db.Column(db.String(20), nullable=False)
    street_name = db.Column(db.String(255), nullable=False)
    town_id = db.Column(db.Integer, db.ForeignKey('towns.id'), nullable=False, index=True)

    town = db.relationship('Town', back_populates='blocks')

    def to_dict(self):
        return {
            'id': self.id,
            'block_number': self.block_number,
            'street_name': self.street_name,
            'town_name': self.town.town_name if self.town else None,
        }
