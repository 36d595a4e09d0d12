"""Resource reads, including the calendar blocks the availability checker needs."""

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.enums import ResourceKind
from app.models.resource import Resource


class ResourceRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def find(
        self,
        kind: ResourceKind,
        resource_id: uuid.UUID,
        for_update: bool = False,
    ) -> Resource | None:
        """Load a resource with its maintenance windows, reservations and holds.

        With ``for_update`` the row is locked until the transaction ends and
        cached state in the session is refreshed from the database.
        """
        query = select(Resource).where(Resource.id == resource_id, Resource.kind == kind)
        if for_update:
            query = query.with_for_update().execution_options(populate_existing=True)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()
