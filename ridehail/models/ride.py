import uuid
from datetime import datetime, timezone
from decimal import Decimal
from sqlalchemy import String, Float, Numeric, DateTime
from sqlalchemy.orm import Mapped, mapped_column
from ridehail.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Ride(Base):
    __tablename__ = "rides"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    rider_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    # Driver accounts live outside this service; the id is an opaque reference.
    driver_id: Mapped[str | None] = mapped_column(String, nullable=True, index=True)

    pickup_address: Mapped[str] = mapped_column(String(512), nullable=False)
    pickup_lat: Mapped[float] = mapped_column(Float, nullable=False)
    pickup_lng: Mapped[float] = mapped_column(Float, nullable=False)
    destination_address: Mapped[str] = mapped_column(String(512), nullable=False)
    dest_lat: Mapped[float] = mapped_column(Float, nullable=False)
    dest_lng: Mapped[float] = mapped_column(Float, nullable=False)

    distance_meters: Mapped[float] = mapped_column(Float, nullable=False)
    duration_seconds: Mapped[float] = mapped_column(Float, nullable=False)
    fare: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    # auto | car | moto
    vehicle_type: Mapped[str] = mapped_column(String(10), nullable=False)

    # Never part of a default load; accessing it unloaded raises instead of lazy-loading.
    otp: Mapped[str] = mapped_column(String(6), nullable=False, deferred=True, deferred_raiseload=True)

    # pending | accepted | ongoing | completed
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending", index=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )
