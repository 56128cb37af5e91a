from __future__ import annotations

import json
import threading

import httpx
import pytest

from codable_fetch.fetch import AnyFetchable, BadStatusError, ClosureFetchable, DecodeError
from codable_fetch.models import Post
from codable_fetch.services import LocalFetcher, PostsViewModel, RemoteFetcher, posts_fetcher

POSTS_URL = "https://jsonplaceholder.typicode.com/posts"


def _load(view_model: PostsViewModel) -> None:
    done = threading.Event()
    view_model.subscribe(lambda _: done.set())
    view_model.load()
    assert done.wait(5)


def test_view_model_loads_posts_from_remote_fetcher(make_session, posts_payload):
    session = make_session(lambda request: httpx.Response(200, json=posts_payload))
    view_model = PostsViewModel(fetcher=AnyFetchable(list[Post], RemoteFetcher(POSTS_URL, list[Post], session=session)))

    _load(view_model)

    assert view_model.error is None
    assert view_model.loading is False
    assert [post.title for post in view_model.posts_by_user(1)] == ["sunt aut facere", "qui est esse"]


def test_view_model_works_with_local_fetcher(tmp_path, posts_payload):
    path = tmp_path / "posts.json"
    path.write_text(json.dumps(posts_payload), encoding="utf-8")
    view_model = PostsViewModel(fetcher=AnyFetchable(list[Post], LocalFetcher(path, list[Post])))

    _load(view_model)

    assert len(view_model.posts) == 3


def test_view_model_works_with_closure_fetcher():
    posts = [Post(userId=3, id=21, title="t", body="b")]
    view_model = PostsViewModel(fetcher=AnyFetchable(list[Post], ClosureFetchable(list[Post], lambda: posts)))

    _load(view_model)

    assert view_model.posts == posts


def test_view_model_keeps_error_on_failure(make_session):
    session = make_session(lambda request: httpx.Response(500, text="oops"))
    view_model = PostsViewModel(fetcher=posts_fetcher(POSTS_URL, session=session))

    _load(view_model)

    assert isinstance(view_model.error, BadStatusError)
    assert view_model.posts == []


def test_error_is_cleared_by_next_successful_load(tmp_path, posts_payload):
    path = tmp_path / "posts.json"
    path.write_text("[{}]", encoding="utf-8")
    view_model = PostsViewModel(fetcher=posts_fetcher(str(path)))

    _load(view_model)
    assert isinstance(view_model.error, DecodeError)

    path.write_text(json.dumps(posts_payload), encoding="utf-8")
    view_model.load()

    assert view_model.error is None
    assert len(view_model.posts) == 3


def test_view_model_rejects_fetchers_of_other_types():
    with pytest.raises(TypeError):
        PostsViewModel(fetcher=AnyFetchable(int, ClosureFetchable(int, lambda: 1)))
