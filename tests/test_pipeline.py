from __future__ import annotations

import json
import threading
from concurrent.futures import ThreadPoolExecutor

import httpx
import pytest

from codable_fetch.fetch import (
    AnyPublisher,
    BadStatusError,
    DecodeError,
    DataTaskPublisher,
    Failed,
    Failure,
    FetchError,
    Finished,
    HTTPTransport,
    MissingBodyError,
    Success,
    TransportError,
    data_task_publisher,
)
from codable_fetch.models import Post, User

USER_URL = "https://jsonplaceholder.typicode.com/users/1"


def _transport(settings, handler):
    return HTTPTransport(settings=settings, transport=httpx.MockTransport(handler))


def _sink(publisher):
    values, completions = [], []
    publisher.sink(values.append, completions.append)
    return values, completions


def test_pipeline_decodes_user(settings, user_payload):
    publisher = data_task_publisher(USER_URL, User, transport=_transport(settings, lambda request: httpx.Response(200, json=user_payload)))

    values, completions = _sink(publisher)

    assert isinstance(publisher, AnyPublisher)
    assert values == [User.model_validate(user_payload)]
    assert completions == [Finished()]


def test_pipeline_bad_status_carries_response(settings, user_payload):
    publisher = data_task_publisher(USER_URL, User, transport=_transport(settings, lambda request: httpx.Response(404, json=user_payload)))

    values, completions = _sink(publisher)

    assert values == []
    assert len(completions) == 1
    assert isinstance(completions[0], Failed)
    error = completions[0].error
    assert isinstance(error, BadStatusError)
    assert error.response.status_code == 404
    assert json.loads(error.body) == user_payload


def test_pipeline_transport_failure(settings):
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    result = data_task_publisher(USER_URL, User, transport=_transport(settings, handler)).result()

    assert isinstance(result, Failure)
    assert isinstance(result.error, TransportError)


def test_pipeline_missing_body_and_decode_failures(settings):
    empty = data_task_publisher(USER_URL, User, transport=_transport(settings, lambda request: httpx.Response(204))).result()
    partial = data_task_publisher(USER_URL, User, transport=_transport(settings, lambda request: httpx.Response(200, content=b'{"id":1}'))).result()

    assert isinstance(empty.error, MissingBodyError)
    assert isinstance(partial.error, DecodeError)


def test_pipeline_reads_local_files(tmp_path, posts_payload):
    path = tmp_path / "posts.json"
    path.write_text(json.dumps(posts_payload), encoding="utf-8")

    result = data_task_publisher(str(path), list[Post]).result()

    assert isinstance(result, Success)
    assert [post.id for post in result.value] == [1, 2, 11]


def test_pipeline_runs_on_executor(settings, user_payload):
    transport = _transport(settings, lambda request: httpx.Response(200, json=user_payload))
    with ThreadPoolExecutor(max_workers=1) as executor:
        publisher = data_task_publisher(USER_URL, User, transport=transport, executor=executor)
        values, completions = [], []
        token = publisher.sink(values.append, completions.append)
        assert token.wait(5)

    assert values[0].id == 1
    assert completions == [Finished()]


def test_cancelled_subscription_receives_nothing(settings, user_payload):
    transport = _transport(settings, lambda request: httpx.Response(200, json=user_payload))
    values, completions = [], []
    release = threading.Event()
    with ThreadPoolExecutor(max_workers=1) as executor:
        executor.submit(release.wait, 5)
        publisher = DataTaskPublisher(USER_URL, transport).decode(User).subscribe_on(executor)
        token = publisher.sink(values.append, completions.append)
        token.cancel()
        release.set()

    assert token.is_cancelled
    assert values == []
    assert completions == []


def test_try_map_wraps_unexpected_errors(settings, user_payload):
    transport = _transport(settings, lambda request: httpx.Response(200, json=user_payload))

    def explode(user):
        raise KeyError("missing")

    result = DataTaskPublisher(USER_URL, transport).decode(User).try_map(explode).result()

    assert isinstance(result.error, FetchError)
    assert isinstance(result.error.__cause__, KeyError)


def test_map_and_erasure_keep_output(settings, user_payload):
    transport = _transport(settings, lambda request: httpx.Response(200, json=user_payload))

    erased = DataTaskPublisher(USER_URL, transport).validate_status().decode(User).map(lambda user: user.company.name).erase_to_any_publisher()

    assert erased.erase_to_any_publisher() is erased
    assert erased.result().value == "Romaguera-Crona"


def test_each_subscription_performs_its_own_retrieval(settings, user_payload):
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200, json=user_payload)

    publisher = data_task_publisher(USER_URL, User, transport=_transport(settings, handler))
    publisher.result()
    publisher.result()

    assert len(requests) == 2


@pytest.mark.parametrize("status", [200, 299])
def test_validate_status_accepts_success_range(settings, user_payload, status):
    transport = _transport(settings, lambda request: httpx.Response(status, json=user_payload))

    assert isinstance(data_task_publisher(USER_URL, User, transport=transport).result(), Success)


class _RaisingTransport:
    def retrieve(self, url):
        raise RuntimeError("bug")


def test_raising_transport_fails_inline_pipeline():
    values, completions = _sink(data_task_publisher(USER_URL, User, transport=_RaisingTransport()))

    assert values == []
    assert len(completions) == 1
    assert isinstance(completions[0], Failed)
    assert isinstance(completions[0].error, TransportError)
    assert isinstance(completions[0].error.__cause__, RuntimeError)


def test_raising_transport_fails_pipeline_on_executor():
    values, completions = [], []
    with ThreadPoolExecutor(max_workers=1) as executor:
        token = data_task_publisher(USER_URL, User, transport=_RaisingTransport(), executor=executor).sink(values.append, completions.append)
        assert token.wait(5)

    assert values == []
    assert len(completions) == 1
    assert isinstance(completions[0].error, TransportError)


def test_raising_map_stage_fails_pipeline(settings, user_payload):
    transport = _transport(settings, lambda request: httpx.Response(200, json=user_payload))

    inline = DataTaskPublisher(USER_URL, transport).decode(User).map(lambda user: 1 / 0).result()
    with ThreadPoolExecutor(max_workers=1) as executor:
        scheduled = DataTaskPublisher(USER_URL, transport).decode(User).map(lambda user: 1 / 0).subscribe_on(executor).result(5)

    for result in (inline, scheduled):
        assert isinstance(result, Failure)
        assert type(result.error) is FetchError
        assert isinstance(result.error.__cause__, ZeroDivisionError)


@pytest.mark.parametrize(
    "body",
    [
        b'{"userId": "1", "id": 2, "title": "t", "body": "b"}',
        b'{"userId": true, "id": 2, "title": "t", "body": "b"}',
        b'{"userId": 1, "id": 2.0, "title": "t", "body": "b"}',
    ],
)
def test_pipeline_rejects_mistyped_fields(settings, body):
    transport = _transport(settings, lambda request: httpx.Response(200, content=body))

    result = data_task_publisher("https://jsonplaceholder.typicode.com/posts/2", Post, transport=transport).result()

    assert isinstance(result, Failure)
    assert isinstance(result.error, DecodeError)
