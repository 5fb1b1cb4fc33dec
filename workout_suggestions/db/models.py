"""Database models for workouts, health reports and daily suggestions."""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Date, DateTime, Boolean, Text, ForeignKey, UniqueConstraint
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class Workout(Base):
    """A generated or logged workout."""

    __tablename__ = "workouts"

    id = Column(Integer, primary_key=True)
    user_id = Column(String(36), nullable=False, index=True)
    title = Column(String(255))
    category = Column(String(50))  # CrossFit, Strength, HIIT, Cardio, Powerlifting
    duration = Column(Integer)  # minutes
    intensity = Column(Integer)  # 1-10
    blocks = Column(Text)  # JSON list of blocks
    generator_version = Column(String(20))
    fallback_used = Column(Boolean, default=False)
    seed = Column(String(255))
    feedback = Column(Text)  # JSON, may carry hrv / restingHR samples
    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    def __repr__(self):
        return f"<Workout(id={self.id}, user_id={self.user_id}, category={self.category}, date={self.created_at})>"


class HealthReport(Base):
    """Daily biometric report, one per user per day."""

    __tablename__ = "health_reports"
    __table_args__ = (UniqueConstraint("user_id", "date", name="uq_health_reports_user_date"),)

    id = Column(Integer, primary_key=True)
    user_id = Column(String(36), nullable=False, index=True)
    date = Column(Date, nullable=False)
    metrics = Column(Text)  # JSON metrics bag
    created_at = Column(DateTime, default=datetime.utcnow)

    def __repr__(self):
        return f"<HealthReport(user_id={self.user_id}, date={self.date})>"


class SuggestedWorkout(Base):
    """Daily suggestion, one per user per calendar day."""

    __tablename__ = "suggested_workouts"
    __table_args__ = (UniqueConstraint("user_id", "date", name="uq_suggested_workouts_user_date"),)

    id = Column(Integer, primary_key=True)
    user_id = Column(String(36), nullable=False, index=True)
    date = Column(Date, nullable=False)
    request = Column(Text, nullable=False)  # JSON {category, duration, intensity}
    rationale = Column(Text, nullable=False)  # JSON {rulesApplied, scores, sources}
    workout_id = Column(Integer, ForeignKey("workouts.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<SuggestedWorkout(user_id={self.user_id}, date={self.date}, workout_id={self.workout_id})>"
