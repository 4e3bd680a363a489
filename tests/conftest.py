import pytest

from trackfx import scheduler


@pytest.fixture(autouse=True)
def _reset_job_queue():
    """Each test starts with an empty queue and the default deferral."""
    scheduler.clear_pending()
    scheduler.set_scheduler(None)
    yield
    scheduler.clear_pending()
    scheduler.set_scheduler(None)
