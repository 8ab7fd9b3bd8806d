"""
FlatModel Model - Design model of the flat (e.g. "IMPROVED", "MODEL A")
"""
from models.database import db


class FlatModel(db.Model):
    __tablename__ = 'flat_models'

    id = db.Column(db.Integer, primary_key=True)
    flat_model_name = db.Column(db.String(100), unique=True, nullable=False)

    def to_dict(self):
        return {'id': self.id, 'flat_model_name': self.flat_model_name}
