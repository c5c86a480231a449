"""
Ride persistence.

Status changes go through a conditional UPDATE keyed on the expected current
status, so of two racing transitions on one ride exactly one matches a row.
"""
import logging

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import undefer

from ridehail.models.ride import Ride

logger = logging.getLogger(__name__)


class RideRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, **fields) -> Ride:
        ride = Ride(**fields)
        self.db.add(ride)
        await self.db.commit()
        return ride

    async def get_by_id(self, ride_id: str, include_otp: bool = False) -> Ride | None:
        stmt = select(Ride).where(Ride.id == ride_id).execution_options(populate_existing=True)
        if include_otp:
            stmt = stmt.options(undefer(Ride.otp))
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def update_status(
        self,
        ride_id: str,
        expected_status: str,
        new_status: str,
        driver_id: str | None = None,
        expected_driver_id: str | None = None,
    ) -> Ride | None:
        """
        Move a ride from ``expected_status`` to ``new_status``.

        ``driver_id`` assigns the driver in the same statement; ``expected_driver_id``
        additionally requires the ride to already belong to that driver.
        Returns the updated ride, or None when no row matched.
        """
        conditions = [Ride.id == ride_id, Ride.status == expected_status]
        if expected_driver_id is not None:
            conditions.append(Ride.driver_id == expected_driver_id)

        values: dict = {"status": new_status}
        if driver_id is not None:
            values["driver_id"] = driver_id

        result = await self.db.execute(
            update(Ride)
            .where(*conditions)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()

        if result.rowcount != 1:
            logger.info(
                "Conditional update missed ride=%s expected=%s new=%s", ride_id, expected_status, new_status
            )
            return None
        return await self.get_by_id(ride_id)
