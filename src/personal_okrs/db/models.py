"""ORM models for periods, objectives, key results and check-ins."""

import uuid

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import JSON
from sqlalchemy.orm import DeclarativeBase, relationship


class Base(DeclarativeBase):
    pass


def _uuid() -> str:
    return str(uuid.uuid4())


class PeriodRecord(Base):
    """A tracking period. At most one active period per user."""

    __tablename__ = "periods"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String(36), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    is_active = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class ObjectiveRecord(Base):
    __tablename__ = "objectives"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String(36), nullable=False, index=True)
    period_id = Column(String(36), ForeignKey("periods.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    key_results = relationship(
        "KeyResultRecord",
        back_populates="objective",
        order_by="KeyResultRecord.created_at",
        lazy="selectin",
    )


class KeyResultRecord(Base):
    __tablename__ = "key_results"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String(36), nullable=False, index=True)
    objective_id = Column(String(36), ForeignKey("objectives.id", ondelete="CASCADE"), nullable=False, index=True)
    description = Column(Text, nullable=False)
    target_value = Column(Float, nullable=False, default=0)
    unit = Column(String(50), nullable=False, default="")
    target_mode = Column(String(10), nullable=False, default="linear")  # linear | manual
    weekly_targets = Column(JSON, nullable=True)  # [float] per week, manual mode only
    status_override = Column(String(20), nullable=True)
    status_override_reason = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    objective = relationship("ObjectiveRecord", back_populates="key_results")
    weekly_progress = relationship(
        "WeeklyProgressRecord",
        back_populates="key_result",
        lazy="selectin",
        cascade="all, delete-orphan",
    )


class WeeklyProgressRecord(Base):
    """Cumulative value recorded for one week of a key result."""

    __tablename__ = "weekly_progress"
    __table_args__ = (UniqueConstraint("key_result_id", "week_start_date"),)

    id = Column(String(36), primary_key=True, default=_uuid)
    key_result_id = Column(String(36), ForeignKey("key_results.id", ondelete="CASCADE"), nullable=False, index=True)
    week_start_date = Column(Date, nullable=False)  # Monday
    value = Column(Float, nullable=False)
    status = Column(String(20), nullable=True)  # on-track | needs-attention | behind
    recorded_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    key_result = relationship("KeyResultRecord", back_populates="weekly_progress")


class CheckInRecord(Base):
    """Weekly check-in: per-KR values plus the reflection."""

    __tablename__ = "weekly_check_ins"
    __table_args__ = (UniqueConstraint("user_id", "period_id", "week_start_date"),)

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String(36), nullable=False, index=True)
    period_id = Column(String(36), ForeignKey("periods.id", ondelete="CASCADE"), nullable=False, index=True)
    week_start_date = Column(Date, nullable=False)
    progress_updates = Column(JSON, nullable=True)  # [{key_result_id, value}]
    reflection = Column(JSON, nullable=True)  # {what_went_well, what_didnt_go_well, what_will_i_change}
    completed_at = Column(DateTime(timezone=True), server_default=func.now())
    created_at = Column(DateTime(timezone=True), server_default=func.now())
