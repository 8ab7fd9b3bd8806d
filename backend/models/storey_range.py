"""
StoreyRange Model - Floor band such as "10 TO 12"
"""
import re

from models.database import db

_RANGE_PATTERN = re.compile(r'(\d+)\s*TO\s*(\d+)', re.IGNORECASE)


class StoreyRange(db.Model):
    __tablename__ = 'storey_ranges'

    id = db.Column(db.Integer, primary_key=True)
    storey_range = db.Column(db.String(20), unique=True, nullable=False)
    floor_min = db.Column(db.Integer)
    floor_max = db.Column(db.Integer)

    @staticmethod
    def parse_range(label):
        """
        Parse "10 TO 12" into (10, 12). A single number maps to (n, n).
        Unparseable labels map to (None, None).
        """
        if not label:
            return None, None
        match = _RANGE_PATTERN.search(label)
        if match:
            return int(match.group(1)), int(match.group(2))
        label = label.strip()
        if label.isdigit():
            return int(label), int(label)
        return None, None

    def to_dict(self):
        return {
            'id': self.id,
            'storey_range': self.storey_range,
            'floor_min': self.floor_min,
            'floor_max': self.floor_max,
        }
