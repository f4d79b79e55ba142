"""
Route modules for the API.

Each module exports a FastAPI APIRouter with endpoints
for a specific domain/feature.
"""

from api.routes import dashboard
from api.routes import health
from api.routes import stylist
from api.routes import voice
from api.routes import wardrobe

__all__ = ["dashboard", "health", "stylist", "voice", "wardrobe"]
