"""Database tables / schema"""

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import ForeignKey, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class DBGame(Base):
    __tablename__ = "games"
    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    status: Mapped[str] = mapped_column(index=True)
    player_red: Mapped[str] = mapped_column(index=True)
    player_blue: Mapped[Optional[str]] = mapped_column(index=True)
    winner: Mapped[Optional[str]]
    is_tie: Mapped[bool] = mapped_column(default=False)
    difficulty: Mapped[Optional[str]]
    created_at: Mapped[datetime] = mapped_column(default=utc_now, index=True)
    updated_at: Mapped[datetime] = mapped_column(default=utc_now, onupdate=utc_now)

    moves: Mapped[list["DBMove"]] = relationship(
        back_populates="game",
        order_by="DBMove.move_order",
        cascade="all, delete-orphan",
    )


class DBMove(Base):
    __tablename__ = "moves"
    # A losing concurrent writer hits this constraint instead of corrupting the sequence
    __table_args__ = (UniqueConstraint("game_id", "move_order", name="uq_moves_game_order"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    game_id: Mapped[UUID] = mapped_column(ForeignKey("games.id"))
    color: Mapped[str]
    column_index: Mapped[int]
    move_order: Mapped[int]
    created_at: Mapped[datetime] = mapped_column(default=utc_now)

    game: Mapped[DBGame] = relationship(back_populates="moves")


class DBUser(Base):
    __tablename__ = "users"
    id: Mapped[str] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(unique=True)
    created_at: Mapped[datetime] = mapped_column(default=utc_now)
