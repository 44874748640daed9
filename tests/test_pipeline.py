import datetime
import json

import pytest

from apod.api_client import ApodClient, FetchCancelled, NetworkError
from apod.cache import DateKeyedCache
from apod.models import ApodRecord, Error, FormatError, Loading, ParseError, Ready
from apod.pipeline import FetchCachePipeline, call_directly
from tests.test_api_client import DummyResponse, DummySession

MARCH_5 = datetime.date(2024, 3, 5)
NEBULA = ApodRecord(date=MARCH_5, title="Nebula", description="A nebula.")


class StubClient:
    """Stand-in for ApodClient returning queued results for fetch_record."""

    def __init__(self, results):
        self._results = list(results)
        self.requested = []

    def fetch_record(self, day, token=None):
        self.requested.append(day)
        result = self._results.pop(0)
        if callable(result):
            result = result(token)
        if isinstance(result, Exception):
            raise result
        return result


class QueueRunner:
    def __init__(self):
        self.jobs = []

    def __call__(self, job):
        self.jobs.append(job)

    def run_all(self):
        while self.jobs:
            self.jobs.pop(0)()


@pytest.fixture
def states():
    return []


def _pipeline(client, **kwargs):
    kwargs.setdefault("runner", call_directly)
    kwargs.setdefault("today", lambda: MARCH_5)
    return FetchCachePipeline(client, **kwargs)


def test_cold_request_emits_loading_then_ready(states):
    body = json.dumps(
        {"date": "2024-03-05", "title": "Nebula", "explanation": "A nebula."}
    )
    client = ApodClient(session=DummySession([DummyResponse(body)]))
    pipeline = _pipeline(client)

    handle = pipeline.request(MARCH_5, states.append)

    assert states == [Loading(shown_data=None), Ready(data=NEBULA)]
    assert pipeline.cache.get(MARCH_5) == NEBULA
    assert handle.done


def test_failed_refresh_keeps_cached_record(states):
    client = StubClient([NEBULA, NetworkError("connection reset")])
    pipeline = _pipeline(client)
    pipeline.request(MARCH_5, lambda state: None)

    pipeline.request(MARCH_5, states.append)

    assert states == [
        Loading(shown_data=NEBULA),
        Error("Unable to load picture for 2024-03-05", shown_data=NEBULA),
    ]
    assert pipeline.cache.get(MARCH_5) == NEBULA


def test_cache_hit_still_fetches(states):
    newer = ApodRecord(date=MARCH_5, title="Nebula (revised)")
    client = StubClient([NEBULA, newer])
    pipeline = _pipeline(client)
    pipeline.request(MARCH_5, lambda state: None)

    pipeline.request(MARCH_5, states.append)

    assert client.requested == [MARCH_5, MARCH_5]
    assert states[-1] == Ready(data=newer)
    assert pipeline.cache.get(MARCH_5) == newer


@pytest.mark.parametrize(
    "error", [ParseError("bad json"), FormatError("bad date"), NetworkError("timeout")]
)
def test_failure_is_never_cached(states, error):
    pipeline = _pipeline(StubClient([error]))
    pipeline.request(MARCH_5, states.append)

    assert isinstance(states[-1], Error)
    assert states[-1].shown_data is None
    assert MARCH_5 not in pipeline.cache


def test_parse_failure_message(states):
    pipeline = _pipeline(StubClient([ParseError("bad json")]))
    pipeline.request(MARCH_5, states.append)
    assert states[-1].message == "Received an invalid response for 2024-03-05"


def test_default_date_is_today(states):
    client = StubClient([NEBULA])
    pipeline = _pipeline(client)
    handle = pipeline.request(None, states.append)
    assert handle.date == MARCH_5
    assert client.requested == [MARCH_5]


def test_shown_record_supplies_date_and_stale_data(states):
    restored = ApodRecord(date=datetime.date(2023, 7, 4), title="Restored")
    client = StubClient([NetworkError("offline")])
    pipeline = _pipeline(client)

    pipeline.request(None, states.append, shown=restored)

    assert client.requested == [datetime.date(2023, 7, 4)]
    assert states[0] == Loading(shown_data=restored)
    assert states[1].shown_data == restored


def test_cancel_before_fetch_stops_everything(states):
    runner = QueueRunner()
    client = StubClient([NEBULA])
    pipeline = _pipeline(client, runner=runner)

    handle = pipeline.request(MARCH_5, states.append)
    handle.cancel()
    runner.run_all()

    assert states == [Loading(shown_data=None)]
    assert client.requested == []
    assert len(pipeline.cache) == 0
    assert handle.cancelled and handle.done


def test_cancel_during_fetch_leaves_cache_untouched(states):
    def cancel_then_complete(token):
        token.cancel()
        return NEBULA

    pipeline = _pipeline(StubClient([cancel_then_complete]))
    pipeline.request(MARCH_5, states.append)

    assert states == [Loading(shown_data=None)]
    assert len(pipeline.cache) == 0


def test_cancelled_fetch_emits_nothing(states):
    pipeline = _pipeline(StubClient([FetchCancelled("aborted")]))
    pipeline.request(MARCH_5, states.append)
    assert states == [Loading(shown_data=None)]


def test_dispatch_delivers_on_render_context(states):
    pending = []
    pipeline = _pipeline(StubClient([NEBULA]), dispatch=pending.append)

    handle = pipeline.request(MARCH_5, states.append)
    assert states == []
    assert len(pending) == 2

    pending.pop(0)()
    handle.cancel()
    pending.pop(0)()
    assert states == [Loading(shown_data=None)]


def test_worker_thread_delivers_final_state(states):
    pipeline = FetchCachePipeline(
        StubClient([NEBULA]), DateKeyedCache(capacity=5), today=lambda: MARCH_5
    )
    handle = pipeline.request(MARCH_5, states.append)
    assert handle.wait(timeout=5)
    assert states == [Loading(shown_data=None), Ready(data=NEBULA)]


def test_requests_for_same_date_are_independent(states):
    client = StubClient([NEBULA, NEBULA])
    pipeline = _pipeline(client)
    first = pipeline.request(MARCH_5, states.append)
    second = pipeline.request(MARCH_5, states.append)
    assert first is not second
    assert client.requested == [MARCH_5, MARCH_5]


def test_malformed_date_keeps_stale_record(states):
    body = json.dumps({"date": "2024-3-5", "title": "Nebula"})
    client = ApodClient(session=DummySession([DummyResponse(body)]))
    pipeline = _pipeline(client)
    pipeline.cache.put(MARCH_5, NEBULA)

    pipeline.request(MARCH_5, states.append)

    assert states == [
        Loading(shown_data=NEBULA),
        Error("Received an invalid response for 2024-03-05", shown_data=NEBULA),
    ]
    assert pipeline.cache.get(MARCH_5) == NEBULA


def test_deeply_nested_body_becomes_error(states):
    body = "[" * 200000 + "]" * 200000
    client = ApodClient(session=DummySession([DummyResponse(body)]))
    pipeline = _pipeline(client)

    pipeline.request(MARCH_5, states.append)

    assert states[-1] == Error("Received an invalid response for 2024-03-05")


def test_unexpected_exception_becomes_error(states):
    pipeline = _pipeline(StubClient([KeyError("surprise")]), dispatch=call_directly)
    handle = pipeline.request(MARCH_5, states.append)

    assert states == [
        Loading(shown_data=None),
        Error("Unable to load picture for 2024-03-05"),
    ]
    assert handle.done
    assert len(pipeline.cache) == 0
