import asyncio

import pytest

from lumenta.events.schema import EventSource, EventType, Severity
from lumenta.gemini.contracts import NarrativeResponse
from lumenta.scheduling.event_channel import EventChannel
from lumenta.scheduling.narrative_scheduler import (
    DEFAULT_NARRATIVE_CONFIDENCE,
    FALLBACK_RULE,
    NARRATIVE_RULES,
    NarrativeScheduler,
    classify_text,
    narrative_events,
)


class FakeClock:
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now


class ScriptedNarrativeBackend:
    def __init__(self, responses):
        self.responses = list(responses)
        self.requests = []

    async def narrate(self, request):
        self.requests.append(request)
        return self.responses.pop(0)


async def settle():
    for _ in range(10):
        await asyncio.sleep(0)


def test_event_list_yields_one_event_per_item():
    response = NarrativeResponse.parse_lenient(
        {"events": [{"description": "Person detected can be seen", "type": "person"}]}
    )
    events = narrative_events(response, "cam1", 10.0)

    assert len(events) == 1
    assert events[0].type == EventType.PERSON
    assert events[0].severity == Severity.MEDIUM
    assert events[0].id == "cam1-periodic-10.0-0"
    assert events[0].source == EventSource.PERIODIC
    assert events[0].confidence == DEFAULT_NARRATIVE_CONFIDENCE


def test_free_text_uses_keyword_rule():
    response = NarrativeResponse.parse_lenient(
        {"summary": "suspicious activity near the door"}
    )
    events = narrative_events(response, "cam1", 10.0)

    assert len(events) == 1
    assert events[0].type == EventType.ALERT
    assert events[0].severity == Severity.HIGH
    assert events[0].description == "suspicious activity near the door"


@pytest.mark.parametrize(
    "text, expected",
    [
        ("Two people cross the lot", NARRATIVE_RULES[0]),
        ("A truck is parked", NARRATIVE_RULES[1]),
        ("Possible incident at the gate", NARRATIVE_RULES[2]),
        ("Leaves blowing in the wind", FALLBACK_RULE),
        # earlier rules win
        ("A person next to a car", NARRATIVE_RULES[0]),
    ],
)
def test_keyword_rule_order(text, expected):
    assert classify_text(text) is expected


def test_empty_response_yields_nothing():
    assert narrative_events(NarrativeResponse.parse_lenient("garbage"), "cam1", 1.0) == []


def test_unknown_item_labels_fall_back():
    response = NarrativeResponse.parse_lenient(
        [{"description": "something", "type": "ufo", "severity": "extreme"}, {"type": "person"}]
    )
    events = narrative_events(response, "cam1", 1.0)
    assert len(events) == 1
    assert events[0].type == EventType.MOTION
    assert events[0].severity == Severity.MEDIUM


def test_scheduler_carries_context_between_requests():
    clock = FakeClock()
    channel = EventChannel()
    backend = ScriptedNarrativeBackend(
        [
            {"summary": "A person walks past the gate", "confidence": 0.8},
            {"summary": "The lot is empty"},
        ]
    )
    scheduler = NarrativeScheduler(backend, channel, interval=5.0, clock=clock)

    async def main():
        first = scheduler.schedule("cam1", 0.0, lambda: b"jpeg")
        await settle()
        clock.now = 3.0
        skipped = scheduler.schedule("cam1", 3.0, lambda: b"jpeg")
        clock.now = 5.0
        second = scheduler.schedule("cam1", 5.0, lambda: b"jpeg")
        await settle()
        return first, skipped, second

    assert asyncio.run(main()) == (True, False, True)
    assert backend.requests[0].previous_summary is None
    assert backend.requests[1].previous_summary == "A person walks past the gate"
    assert scheduler.latest_summary == "The lot is empty"

    events = channel.drain()
    assert [e.type for e in events] == [EventType.PERSON, EventType.MOTION]
    assert events[0].confidence == 0.8


def test_no_backend_schedules_nothing():
    scheduler = NarrativeScheduler(None, EventChannel())
    assert scheduler.schedule("cam1", 0.0, lambda: b"jpeg") is False


class SyncFailingNarrativeBackend:
    def __init__(self):
        self.calls = 0

    def narrate(self, request):
        self.calls += 1
        raise RuntimeError("backend down")


def test_backend_raising_on_call_is_skipped_with_cooldown():
    clock = FakeClock()
    backend = SyncFailingNarrativeBackend()
    scheduler = NarrativeScheduler(backend, EventChannel(), interval=5.0, clock=clock)

    async def main():
        first = scheduler.schedule("cam1", 0.0, lambda: b"jpeg")
        clock.now = 4.0
        early = scheduler.schedule("cam1", 4.0, lambda: b"jpeg")
        return first, early

    assert asyncio.run(main()) == (False, False)
    assert backend.calls == 1
    assert scheduler.limiter.in_flight is False
    assert scheduler.limiter.last_run_at == 0.0
    assert scheduler.pending == 0
