"""Unit tests for logging setup and request context binding."""
import pytest
from structlog.contextvars import get_contextvars

from storefront.utils.logger import (
    SERVICE_NAME,
    _add_service_fields,
    bind_request_context,
    clear_request_context,
)


@pytest.fixture(autouse=True)
def clean_context():
    clear_request_context()
    yield
    clear_request_context()


class TestRequestContext:

    def test_bind_sets_request_fields(self):
        bind_request_context("req-1", user_id="42")

        assert get_contextvars() == {"request_id": "req-1", "user_id": "42"}

    def test_none_fields_are_skipped(self):
        bind_request_context("req-1", user_id=None)

        assert get_contextvars() == {"request_id": "req-1"}

    def test_bind_replaces_previous_request(self):
        bind_request_context("req-1", user_id="42")
        bind_request_context("req-2")

        assert get_contextvars() == {"request_id": "req-2"}

    def test_clear_drops_everything(self):
        bind_request_context("req-1", user_id="42")
        clear_request_context()

        assert get_contextvars() == {}


class TestServiceFields:

    def test_service_and_environment_added(self):
        event = _add_service_fields(None, "info", {"event": "cart_cleared"})

        assert event["service"] == SERVICE_NAME
        assert event["environment"] == "development"

    def test_explicit_service_is_kept(self):
        event = _add_service_fields(None, "info", {"event": "x", "service": "worker"})

        assert event["service"] == "worker"

