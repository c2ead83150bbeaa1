"""Glicko-2 ORM models."""

from models.ratings.glicko2.event import CompetitorGlicko2
from models.ratings.glicko2.system import Glicko2System

__all__ = ["CompetitorGlicko2", "Glicko2System"]
