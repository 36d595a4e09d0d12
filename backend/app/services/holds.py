"""Temporary resource holds placed by the checkout flow.

Holds expire lazily: a hold whose ``hold_expiry`` is in the past is simply
ignored. Nothing deletes expired rows.
"""

import logging
from collections.abc import Callable
from datetime import datetime

from app.models.resource import Hold, Resource
from app.timeutils import to_naive_utc, utcnow

logger = logging.getLogger(__name__)


class HoldManager:
    def __init__(self, clock: Callable[[], datetime] = utcnow) -> None:
        self.clock = clock

    def is_active(self, hold: Hold, now: datetime | None = None) -> bool:
        if not hold.on_hold:
            return False
        if hold.hold_expiry is None:
            return True
        now = to_naive_utc(now or self.clock())
        return to_naive_utc(hold.hold_expiry) > now

    def active_hold(
        self,
        resource: Resource,
        now: datetime | None = None,
        other_than: str | None = None,
    ) -> Hold | None:
        """Return the unexpired hold on ``resource``, if any.

        With ``other_than`` the actor's own holds are skipped.
        """
        for hold in resource.holds:
            if self.is_active(hold, now) and (other_than is None or hold.hold_by != other_than):
                return hold
        return None

    def release(self, resource: Resource, actor: str) -> int:
        """Clear holds owned by ``actor`` after a successful booking."""
        released = 0
        for hold in resource.holds:
            if hold.on_hold and hold.hold_by == actor:
                hold.on_hold = False
                hold.hold_expiry = None
                hold.hold_by = None
                released += 1
        if released:
            logger.info("Released %d hold(s) on resource %s for %s", released, resource.id, actor)
        return released
