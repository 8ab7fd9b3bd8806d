"""
Models package - SQLAlchemy models
"""
from models.database import db
from models.town import Town
from models.block import Block
from models.flat_type import FlatType
from models.flat_model import FlatModel
from models.storey_range import StoreyRange
from models.lease import Lease
from models.transaction import Transaction

__all__ = [
    'db',
    'Town',
    'Block',
    'FlatType',
    'FlatModel',
    'StoreyRange',
    'Lease',
    'Transaction',
]
