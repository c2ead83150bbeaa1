"""Competitor Glicko-2 persistence."""
