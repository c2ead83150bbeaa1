"""competitor_glicko2 table model."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base


class CompetitorGlicko2(Base):
    """Historical competitor Glicko-2 events (one row per competitor per race)."""

    __tablename__ = "competitor_glicko2"
    __table_args__ = (
        UniqueConstraint(
            "glicko2_system_id",
            "competitor_id",
            "race_id",
            name="uq_competitor_glicko2_system_competitor_race",
        ),
        CheckConstraint(
            "actual_score >= 0.0 AND actual_score <= 1.0",
            name="ck_competitor_glicko2_actual_score",
        ),
        CheckConstraint(
            "expected_score >= 0.0 AND expected_score <= 1.0",
            name="ck_competitor_glicko2_expected_score",
        ),
        CheckConstraint("pre_rd > 0.0", name="ck_competitor_glicko2_pre_rd"),
        CheckConstraint("post_rd > 0.0", name="ck_competitor_glicko2_post_rd"),
        CheckConstraint("pre_volatility > 0.0", name="ck_competitor_glicko2_pre_volatility"),
        CheckConstraint("post_volatility > 0.0", name="ck_competitor_glicko2_post_volatility"),
        Index("idx_competitor_glicko2_system", "glicko2_system_id"),
        Index(
            "idx_competitor_glicko2_system_competitor_event",
            "glicko2_system_id",
            "competitor_id",
            "event_time",
            "race_id",
        ),
        Index("idx_competitor_glicko2_race", "race_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    glicko2_system_id: Mapped[int] = mapped_column(ForeignKey("glicko2_systems.id"), nullable=False)
    competitor_id: Mapped[int] = mapped_column(ForeignKey("competitors.id"), nullable=False)
    race_id: Mapped[int] = mapped_column(ForeignKey("races.id"), nullable=False)
    event_time: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    rank12: Mapped[int | None] = mapped_column(Integer, nullable=True)
    opponents: Mapped[int] = mapped_column(Integer, nullable=False)
    wins: Mapped[int] = mapped_column(Integer, nullable=False)
    draws: Mapped[int] = mapped_column(Integer, nullable=False)
    losses: Mapped[int] = mapped_column(Integer, nullable=False)
    actual_score: Mapped[float] = mapped_column(Float, nullable=False)
    expected_score: Mapped[float] = mapped_column(Float, nullable=False)
    pre_rating: Mapped[float] = mapped_column(Float, nullable=False)
    pre_rd: Mapped[float] = mapped_column(Float, nullable=False)
    pre_volatility: Mapped[float] = mapped_column(Float, nullable=False)
    rating_delta: Mapped[float] = mapped_column(Float, nullable=False)
    rd_delta: Mapped[float] = mapped_column(Float, nullable=False)
    volatility_delta: Mapped[float] = mapped_column(Float, nullable=False)
    post_rating: Mapped[float] = mapped_column(Float, nullable=False)
    post_rd: Mapped[float] = mapped_column(Float, nullable=False)
    post_volatility: Mapped[float] = mapped_column(Float, nullable=False)
    conservative_score: Mapped[float] = mapped_column(Float, nullable=False)
    race_count: Mapped[int] = mapped_column(Integer, nullable=False)
    provisional: Mapped[bool] = mapped_column(Boolean, nullable=False)
    tau: Mapped[float] = mapped_column(Float, nullable=False)
    initial_rating: Mapped[float] = mapped_column(Float, nullable=False)
    initial_rd: Mapped[float] = mapped_column(Float, nullable=False)
    initial_volatility: Mapped[float] = mapped_column(Float, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False),
        nullable=False,
        server_default=func.now(),
    )
