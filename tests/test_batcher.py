"""Tests for the Batcher: threshold drains, requeue and drop policy."""

import threading

import pytest

from loggly_shipper.batcher import Batcher
from loggly_shipper.delivery import DeliveryOutcome
from loggly_shipper.models import Level, create_log_message
from loggly_shipper.serializer import decode_bulk
from loggly_shipper.stats import ShippingStats
from loggly_shipper.tasks import TaskRunner

URL = "https://logs.example.test/bulk/token/tag/test/"


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------

class StubDelivery:
    """Delivery client double returning scripted outcomes."""

    def __init__(self, outcome=None):
        self.outcome = outcome or DeliveryOutcome.success()
        self.payloads: list[bytes] = []
        self.urls: list[str] = []
        self.on_deliver = None
        self._lock = threading.Lock()

    def deliver(self, payload, url):
        with self._lock:
            self.payloads.append(payload)
            self.urls.append(url)
        if self.on_deliver is not None:
            self.on_deliver()
        return self.outcome

    def messages(self) -> list[str]:
        with self._lock:
            return [entry["message"] for body in self.payloads for entry in decode_bulk(body)]

    def close(self):
        pass


def _message(i: int, data=None):
    return create_log_message(Level.INFO, f"log-{i}", data, timestamp="2024-01-15T08:23:45.000Z")


@pytest.fixture
def runner():
    runner = TaskRunner(max_workers=4)
    yield runner
    runner.shutdown(wait=True)


def _make_batcher(runner, delivery=None, buffer_size=3, **kwargs):
    delivery = delivery or StubDelivery()
    stats = ShippingStats()
    batcher = Batcher(
        delivery=delivery,
        url=URL,
        runner=runner,
        buffer_size=buffer_size,
        stats=stats,
        **kwargs,
    )
    return batcher, delivery, stats


# ------------------------------------------------------------------
# Threshold
# ------------------------------------------------------------------

class TestThresholdDrain:
    def test_drain_triggered_at_buffer_size(self, runner):
        batcher, delivery, stats = _make_batcher(runner, buffer_size=3)

        for i in range(3):
            batcher.enqueue(_message(i))
        assert runner.wait(timeout=5)

        assert delivery.messages() == ["log-0", "log-1", "log-2"]
        assert delivery.urls == [URL]
        assert batcher.pending_count == 0
        assert stats.snapshot()["drain_triggers"]["size"] == 1

    def test_no_drain_below_threshold(self, runner):
        batcher, delivery, _ = _make_batcher(runner, buffer_size=5)

        for i in range(4):
            batcher.enqueue(_message(i))
        assert runner.wait(timeout=5)

        assert delivery.payloads == []
        assert batcher.pending_count == 4

    def test_enqueue_returns_buffer_size(self, runner):
        batcher, _, _ = _make_batcher(runner, buffer_size=10)
        assert batcher.enqueue(_message(0)) == 1
        assert batcher.enqueue(_message(1)) == 2

    def test_rejects_non_positive_buffer_size(self, runner):
        with pytest.raises(ValueError):
            _make_batcher(runner, buffer_size=0)


# ------------------------------------------------------------------
# Drain outcomes
# ------------------------------------------------------------------

class TestDrainOutcomes:
    def test_success_empties_buffer(self, runner):
        batcher, delivery, stats = _make_batcher(runner, buffer_size=100)
        for i in range(5):
            batcher.enqueue(_message(i))

        outcome = batcher.drain()

        assert outcome.ok
        assert batcher.pending_count == 0
        assert len(delivery.payloads) == 1
        assert stats.snapshot()["messages_shipped"] == 5

    def test_body_is_ndjson(self, runner):
        batcher, delivery, _ = _make_batcher(runner, buffer_size=100)
        batcher.enqueue(_message(0, {"UserId": "u-1"}))
        batcher.enqueue(_message(1))

        batcher.drain()

        body = delivery.payloads[0]
        assert body.endswith(b"\n")
        assert body.count(b"\n") == 2
        assert decode_bulk(body)[0]["data"] == {"UserId": "u-1"}

    def test_empty_buffer_skips_delivery(self, runner):
        batcher, delivery, _ = _make_batcher(runner)
        assert batcher.drain() is None
        assert delivery.payloads == []

    @pytest.mark.parametrize(
        "outcome",
        [DeliveryOutcome.transport_error("refused"), DeliveryOutcome.auth_rejected()],
    )
    def test_failed_batch_is_requeued(self, runner, outcome):
        batcher, delivery, stats = _make_batcher(
            runner, StubDelivery(outcome), buffer_size=100
        )
        for i in range(4):
            batcher.enqueue(_message(i))

        result = batcher.drain()

        assert result is outcome
        assert batcher.pending_count == 4
        assert stats.snapshot()["messages_requeued"] == 4

    def test_requeue_keeps_concurrent_enqueues(self, runner):
        delivery = StubDelivery(DeliveryOutcome.transport_error("refused"))
        batcher, _, _ = _make_batcher(runner, delivery, buffer_size=100)
        for i in range(3):
            batcher.enqueue(_message(i))
        # a producer slips a message in while the batch is in flight
        delivery.on_deliver = lambda: batcher.enqueue(_message(99))

        batcher.drain()

        delivery.on_deliver = None
        delivery.outcome = DeliveryOutcome.success()
        batcher.drain()
        assert delivery.messages()[-4:] == ["log-99", "log-0", "log-1", "log-2"]
        assert batcher.pending_count == 0

    def test_requeued_batch_is_retried_on_next_drain(self, runner):
        delivery = StubDelivery(DeliveryOutcome.transport_error("refused"))
        batcher, _, _ = _make_batcher(runner, delivery, buffer_size=100)
        batcher.enqueue(_message(0))

        batcher.drain()
        delivery.outcome = DeliveryOutcome.success()
        batcher.drain()

        assert delivery.messages() == ["log-0", "log-0"]
        assert batcher.pending_count == 0

    def test_other_status_drops_batch(self, runner):
        batcher, _, stats = _make_batcher(
            runner, StubDelivery(DeliveryOutcome.other_status(500)), buffer_size=100
        )
        for i in range(3):
            batcher.enqueue(_message(i))

        outcome = batcher.drain()

        assert outcome.status_code == 500
        assert batcher.pending_count == 0
        assert stats.snapshot()["messages_dropped"] == 3

    def test_unserializable_batch_sends_nothing(self, runner):
        batcher, delivery, _ = _make_batcher(runner, buffer_size=100)
        batcher.enqueue(_message(0, {"obj": object()}))

        assert batcher.drain() is None
        assert delivery.payloads == []
        assert batcher.pending_count == 0

    def test_max_buffered_messages_caps_requeue(self, runner):
        batcher, _, _ = _make_batcher(
            runner,
            StubDelivery(DeliveryOutcome.transport_error("refused")),
            buffer_size=100,
            max_buffered_messages=2,
        )
        for i in range(2):
            batcher.enqueue(_message(i))
        batcher.drain()
        batcher.enqueue(_message(2))

        assert batcher.pending_count == 2
        assert batcher.dropped_count == 1


# ------------------------------------------------------------------
# Overlapping drains
# ------------------------------------------------------------------

class TestOverlappingDrains:
    def test_each_drain_ships_its_own_snapshot(self, runner):
        delivery = StubDelivery()
        batcher, _, _ = _make_batcher(runner, delivery, buffer_size=100)
        release = threading.Event()
        entered = threading.Event()

        def block_first_call():
            if not entered.is_set():
                entered.set()
                release.wait(timeout=5)

        delivery.on_deliver = block_first_call
        for i in range(3):
            batcher.enqueue(_message(i))

        first = threading.Thread(target=batcher.drain)
        first.start()
        assert entered.wait(timeout=5)

        batcher.enqueue(_message(3))
        batcher.enqueue(_message(4))
        batcher.drain()
        release.set()
        first.join(timeout=5)

        shipped = delivery.messages()
        assert sorted(shipped) == [f"log-{i}" for i in range(5)]
        assert len(delivery.payloads) == 2
