"""
Analytics API Routes - Split into domain-specific modules

This package organizes the analytics endpoints into logical domains:
- core.py: Overall statistics and the yearly town price table
- trends.py: Monthly price trends and per-town yearly trends
- comparison.py: Town and flat-type comparison
- distribution.py: Price histogram
- appreciation.py: Top appreciating towns
- lease.py: Lease depreciation
- heatmap.py: Town growth heatmap
- prediction.py: Heuristic price prediction (POST)
- filters.py: Filter options
- admin.py: Health endpoint

All modules share the same blueprint (analytics_bp) registered at /api/analytics.
"""

from flask import Blueprint

# Create the shared blueprint
analytics_bp = Blueprint('analytics', __name__)


# Import all route modules to register their routes with the blueprint
from routes.analytics import core  # noqa: E402,F401
from routes.analytics import trends  # noqa: E402,F401
from routes.analytics import comparison  # noqa: E402,F401
from routes.analytics import distribution  # noqa: E402,F401
from routes.analytics import appreciation  # noqa: E402,F401
from routes.analytics import lease  # noqa: E402,F401
from routes.analytics import heatmap  # noqa: E402,F401
from routes.analytics import prediction  # noqa: E402,F401
from routes.analytics import filters  # noqa: E402,F401
from routes.analytics import admin  # noqa: E402,F401
