"""SQLAlchemy ORM models for qb_upgrade.

These map to existing tables created by Alembic migrations.
DO NOT add/remove columns here without a corresponding migration.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import BigInteger, Boolean, DateTime, ForeignKey, Integer, Numeric, String, func
from sqlalchemy.orm import Mapped, mapped_column

from src.qb_common.database import Base


class UpgradeORM(Base):
    __tablename__ = "upgrades"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    upgrade_type: Mapped[str] = mapped_column(String(30), nullable=False)
    tier: Mapped[str] = mapped_column(String(10), nullable=False)
    effect_percentage: Mapped[int] = mapped_column(Integer, nullable=False)
    price: Mapped[int] = mapped_column(BigInteger, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class UserUpgradeORM(Base):
    __tablename__ = "user_upgrades"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    upgrade_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("upgrades.id"), nullable=False
    )
    purchase_price: Mapped[int] = mapped_column(BigInteger, nullable=False)
    is_used: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    used_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    target_company_id: Mapped[str | None] = mapped_column(
        String(64), ForeignKey("companies.id"), nullable=True
    )
    effect_applied: Mapped[Decimal | None] = mapped_column(Numeric(28, 4), nullable=True)
    purchased_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
