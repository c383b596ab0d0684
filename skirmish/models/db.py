"""
SQLAlchemy table models for Skirmish.

All timestamps are stored as naive UTC datetimes; repositories convert to and
from aware datetimes at the boundary.
"""

from datetime import datetime
from typing import Any
from uuid import uuid4

from sqlalchemy import JSON, Boolean, DateTime, Integer, MetaData, String, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

metadata = MetaData()


class Base(DeclarativeBase):
    """Shared declarative base for all Skirmish tables."""

    metadata = metadata


class CombatantRecord(Base):
    """Persistent combatant row."""

    __tablename__ = "combatants"

    combatant_id: Mapped[str] = mapped_column(String(length=64), primary_key=True)
    name: Mapped[str] = mapped_column(String(length=128), nullable=False, index=True)
    room_id: Mapped[str | None] = mapped_column(String(length=128), nullable=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(), nullable=False)
    status: Mapped[str] = mapped_column(String(length=16), nullable=False, default="alive")
    lives: Mapped[int] = mapped_column(Integer, nullable=False, default=3)
    knocked_out_until: Mapped[datetime | None] = mapped_column(DateTime(), nullable=True)
    combat_cooldown_until: Mapped[datetime | None] = mapped_column(DateTime(), nullable=True)
    death_timestamp: Mapped[datetime | None] = mapped_column(DateTime(), nullable=True)


class CombatantStatsRecord(Base):
    """Base ability scores and per-turn flags, one row per combatant."""

    __tablename__ = "combatant_stats"

    combatant_id: Mapped[str] = mapped_column(String(length=64), primary_key=True)
    strength: Mapped[int] = mapped_column(Integer, nullable=False)
    dexterity: Mapped[int] = mapped_column(Integer, nullable=False)
    constitution: Mapped[int] = mapped_column(Integer, nullable=False)
    intelligence: Mapped[int] = mapped_column(Integer, nullable=False)
    wisdom: Mapped[int] = mapped_column(Integer, nullable=False)
    charisma: Mapped[int] = mapped_column(Integer, nullable=False)
    hp: Mapped[int] = mapped_column(Integer, nullable=False)
    is_defending: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_hidden: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    advantage_next_attack: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class StatModifierRecord(Base):
    """Append-only stat modifier ledger."""

    __tablename__ = "stat_modifiers"

    modifier_id: Mapped[str] = mapped_column(String(length=36), primary_key=True, default=lambda: str(uuid4()))
    combatant_id: Mapped[str] = mapped_column(String(length=64), nullable=False, index=True)
    stat: Mapped[str] = mapped_column(String(length=32), nullable=False, index=True)
    value: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(), nullable=False)
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(), nullable=True, index=True)
    source: Mapped[str | None] = mapped_column(String(length=128), nullable=True)


class ActionCooldownRecord(Base):
    """Last successful use of an action by an actor."""

    __tablename__ = "action_cooldowns"
    __table_args__ = (UniqueConstraint("actor_id", "action", name="uq_action_cooldowns_actor_action"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    actor_id: Mapped[str] = mapped_column(String(length=64), nullable=False)
    action: Mapped[str] = mapped_column(String(length=64), nullable=False)
    last_used_at: Mapped[datetime] = mapped_column(DateTime(), nullable=False)


class ActionLogRecord(Base):
    """Immutable action log row."""

    __tablename__ = "action_log"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    room_id: Mapped[str] = mapped_column(String(length=128), nullable=False, index=True)
    actor_id: Mapped[str] = mapped_column(String(length=64), nullable=False, index=True)
    actor_name: Mapped[str] = mapped_column(String(length=128), nullable=False)
    action: Mapped[str] = mapped_column(String(length=64), nullable=False)
    emoji: Mapped[str | None] = mapped_column(String(length=32), nullable=True)
    target: Mapped[str] = mapped_column(Text, nullable=False, default="")
    result: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_custom: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime(), nullable=False, index=True)


class CombatEncounterRecord(Base):
    """Summary of an ended encounter."""

    __tablename__ = "combat_encounters"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    room_id: Mapped[str] = mapped_column(String(length=128), nullable=False, index=True)
    guild_id: Mapped[str | None] = mapped_column(String(length=128), nullable=True)
    state: Mapped[str] = mapped_column(String(length=16), nullable=False)
    end_reason: Mapped[str | None] = mapped_column(String(length=64), nullable=True)
    rounds: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(), nullable=False)
    started_at: Mapped[datetime | None] = mapped_column(DateTime(), nullable=True)
    ended_at: Mapped[datetime | None] = mapped_column(DateTime(), nullable=True)
    summary: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    summary_version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)


class CombatantMemoryRecord(Base):
    """Free-text memory attached to a combatant after an action."""

    __tablename__ = "combatant_memories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    combatant_id: Mapped[str] = mapped_column(String(length=64), nullable=False, index=True)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(), nullable=False)
