from __future__ import annotations

import logging
from typing import Awaitable, Callable, Optional

from rhetor.core.variants import ABSENT, UNRESOLVED, Absent, Handle, Present, is_present
from rhetor.errors import RhetorError
from rhetor.models.schemas import CreatedSession, DashboardViewModel

logger = logging.getLogger(__name__)

DashboardFetcher = Callable[[], Awaitable[DashboardViewModel]]


class DashboardPanel:
    """Holds the dashboard a screen renders.

    A failed refresh keeps the last good view model and records the error;
    before anything has loaded, a failure leaves the panel ``Absent`` so the
    screen can offer a manual retry.
    """

    def __init__(self, fetch: DashboardFetcher) -> None:
        self._fetch = fetch
        self.view: Handle[DashboardViewModel] = UNRESOLVED
        self.error: Optional[str] = None
        self.refresh_count = 0

    @property
    def has_data(self) -> bool:
        return is_present(self.view)

    async def load(self) -> None:
        self.error = None
        try:
            view = await self._fetch()
        except RhetorError as exc:
            self.error = exc.message
            logger.warning("Dashboard load failed: %s", exc.message)
            if not self.has_data:
                self.view = ABSENT
            return
        self.view = Present(view)

    async def refresh(self) -> None:
        self.refresh_count += 1
        await self.load()

    async def on_session_uploaded(self, created: CreatedSession) -> None:
        logger.info("Refreshing dashboard after upload of %s", created.session_id)
        await self.refresh()

    @property
    def is_error_state(self) -> bool:
        return isinstance(self.view, Absent) and self.error is not None
