from datetime import timedelta
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from sitechat.main import create_app
from sitechat.services.clock import to_millis
from sitechat.services.counter_service import CounterState, CounterStore


@pytest.fixture
def app(settings, clock, telegram):
    return create_app(settings=settings, clock=clock, telegram=telegram)


class TestLiveCounterEndpoint:
    def test_fresh_counter(self, app):
        with TestClient(app) as client:
            response = client.get("/api/live-counter")

        assert response.status_code == 200
        assert response.json() == {"count": 0, "dayKey": "2024-01-01"}

    def test_query_advances_due_counter(self, app, clock):
        with TestClient(app) as client:
            t0 = clock.now()
            app.state.counter.state = CounterState(
                day_key="2024-01-01", count=4, next_at=to_millis(t0 + timedelta(minutes=30))
            )

            clock.advance(minutes=10)
            assert client.get("/api/live-counter").json()["count"] == 4

            clock.advance(minutes=21)
            assert client.get("/api/live-counter").json()["count"] == 5

    def test_restart_recovers_one_increment(self, settings, clock, telegram):
        store = CounterStore(settings.counter_state_path)
        store.save(CounterState(day_key="2024-01-01", count=7, next_at=to_millis(clock.now() - timedelta(hours=2))))

        app = create_app(settings=settings, clock=clock, telegram=telegram)
        with TestClient(app) as client:
            response = client.get("/api/live-counter")

        assert response.json() == {"count": 8, "dayKey": "2024-01-01"}

    def test_internal_fault_is_500(self, app):
        with TestClient(app) as client:
            with patch.object(app.state.counter, "maybe_increment", side_effect=RuntimeError("boom")):
                response = client.get("/api/live-counter")

        assert response.status_code == 500
