import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import String, DateTime, ForeignKey, Index, Integer, Numeric, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from phasebudget.core.database import Base


class WageConfig(Base):
    """
    Pay configuration of a worker.

    phase_id NULL is the worker's default; otherwise an override for one
    phase. phase_id carries no foreign key because the phase may be a
    milestone or a whole project depending on BUDGET_PHASE_SCOPE.
    """
    __tablename__ = "wage_configs"
    __table_args__ = (
        Index(
            "uq_wage_configs_default",
            "worker_id",
            unique=True,
            sqlite_where=text("phase_id IS NULL"),
            postgresql_where=text("phase_id IS NULL"),
        ),
        Index(
            "uq_wage_configs_override",
            "worker_id",
            "phase_id",
            unique=True,
            sqlite_where=text("phase_id IS NOT NULL"),
            postgresql_where=text("phase_id IS NOT NULL"),
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    worker_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("workers.id", ondelete="CASCADE"), nullable=False
    )
    phase_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)

    wage_type: Mapped[str] = mapped_column(String(20), nullable=False)  # daily | monthly
    daily_rate: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    monthly_salary: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    default_working_days_per_month: Mapped[int] = mapped_column(Integer, default=26)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    worker: Mapped["Worker"] = relationship(back_populates="wage_configs")
