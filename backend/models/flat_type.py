"""
FlatType Model - "2 ROOM" ... "5 ROOM", "EXECUTIVE", "MULTI-GENERATION"

typical_rooms is derived from the "N ROOM" pattern and drives price-per-room
metrics. Types without a room count in the name keep it NULL.
"""
import re

from models.database import db

_ROOM_PATTERN = re.compile(r'(\d+)\s*ROOM')


class FlatType(db.Model):
    __tablename__ = 'flat_types'

    id = db.Column(db.Integer, primary_key=True)
    flat_type_name = db.Column(db.String(50), unique=True, nullable=False, index=True)
    typical_rooms = db.Column(db.Integer)

    @staticmethod
    def normalize_name(name):
        return name.strip().upper() if name else name

    @staticmethod
    def rooms_from_name(name):
        """
        Extract typical room count from a flat type name.

        >>> FlatType.rooms_from_name("4 ROOM")
        4
        >>> FlatType.rooms_from_name("EXECUTIVE") is None
        True
        """
        if not name:
            return None
        match = _ROOM_PATTERN.search(name.upper())
        return int(match.group(1)) if match else None

    def to_dict(self):
        return {
            'id': self.id,
            'flat_type_name': self.flat_type_name,
            'typical_rooms': self.typical_rooms,
        }
