"""ORM models."""

from models.base import Base
from models.ratings import CompetitorGlicko2, Glicko2System

__all__ = ["Base", "CompetitorGlicko2", "Glicko2System"]
