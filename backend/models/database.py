"""
Shared Flask-SQLAlchemy handle. Bound to the app in create_app().
"""
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
