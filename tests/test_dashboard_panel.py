from datetime import datetime

import pytest

from rhetor.client.dashboard_panel import DashboardPanel
from rhetor.core.variants import ABSENT, UNRESOLVED, Present
from rhetor.errors import DataSourceError
from rhetor.models.schemas import DashboardViewModel, Profile


def _view(credits=1):
    return DashboardViewModel(
        profile=Profile(pseudonym="sharpedge", credits=credits),
        pending_review_count=0,
        sessions_awaiting_feedback=0,
        recent_sessions=(),
    )


class ScriptedFetch:
    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)

    async def __call__(self):
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.mark.asyncio
async def test_failed_first_load_is_an_error_state():
    panel = DashboardPanel(ScriptedFetch(DataSourceError("offline"), _view()))
    assert panel.view == UNRESOLVED

    await panel.load()

    assert panel.view == ABSENT
    assert panel.is_error_state
    assert panel.error == "offline"

    await panel.refresh()
    assert panel.has_data
    assert panel.error is None


@pytest.mark.asyncio
async def test_failed_refresh_keeps_last_good_view():
    first = _view(credits=4)
    panel = DashboardPanel(ScriptedFetch(first, DataSourceError("timeout")))
    await panel.load()

    await panel.refresh()

    assert panel.view == Present(first)
    assert panel.error == "timeout"
    assert not panel.is_error_state


@pytest.mark.asyncio
async def test_upload_callback_refreshes_once():
    panel = DashboardPanel(ScriptedFetch(_view(), _view(credits=2)))
    await panel.load()

    class Created:
        session_id = "sess-1"

    await panel.on_session_uploaded(Created())

    assert panel.refresh_count == 1
    assert panel.view.value.profile.credits == 2
