"""Rating-system ORM models."""

from models.ratings.glicko2 import CompetitorGlicko2, Glicko2System

__all__ = ["CompetitorGlicko2", "Glicko2System"]
