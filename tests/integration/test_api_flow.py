"""
End-to-end scenarios: Api -> HttpClientExecutor -> requests, mocked with responses.
"""

import threading
from typing import List

import pytest
import responses
from pydantic import BaseModel
from responses import matchers

from natural_api import Api, ApiDefaults
from natural_api.core.auth import CachingAuthProvider
from natural_api.core.exceptions import ApiAssertionError

BASE_URL = "https://api.example.com"


class User(BaseModel):
    id: int
    name: str
    email: str


class Post(BaseModel):
    id: int
    title: str


@pytest.fixture
def api():
    with Api(BASE_URL, defaults=ApiDefaults(headers={"Accept": "application/json"})) as api:
        yield api


class TestCrudFlow:
    """Create -> read -> update -> delete."""

    @responses.activate
    def test_create_then_follow_up(self, api):
        responses.add(
            responses.POST,
            f"{BASE_URL}/users",
            json={"id": 7, "name": "Bob", "email": "bob@example.com"},
            status=201,
            match=[matchers.json_params_matcher({"name": "Bob", "email": "bob@example.com"})],
        )
        responses.add(
            responses.GET,
            f"{BASE_URL}/users/7",
            json={"id": 7, "name": "Bob", "email": "bob@example.com"},
        )
        responses.add(
            responses.PATCH,
            f"{BASE_URL}/users/7",
            json={"id": 7, "name": "Robert", "email": "bob@example.com"},
        )
        responses.add(responses.DELETE, f"{BASE_URL}/users/7", status=204)

        created_ids = []
        created = (
            api.for_("/users")
            .post({"name": "Bob", "email": "bob@example.com"})
            .should_return(status=201, as_type=User)
            .then(lambda r: created_ids.append(r.body_as(User).id))
        )
        assert created_ids == [7]

        fetched = created.for_("/users/{id}").with_path_param("id", 7).get().should_return_body(User)
        assert fetched == User(id=7, name="Bob", email="bob@example.com")

        (
            api.for_("/users/{id}")
            .with_path_param("id", fetched.id)
            .patch({"name": "Robert"})
            .should_return(status=200, body=lambda u: u["name"] == "Robert")
        )
        api.for_("/users/{id}").with_path_param("id", 7).delete().should_return(status=204)

        assert [c.request.method for c in responses.calls] == ["POST", "GET", "PATCH", "DELETE"]
        assert all(c.request.headers["Accept"] == "application/json" for c in responses.calls)

    @responses.activate
    def test_list_typed(self, api):
        responses.add(
            responses.GET,
            f"{BASE_URL}/users/1/posts",
            json=[{"id": 1, "title": "a"}, {"id": 2, "title": "b"}],
            match=[matchers.query_param_matcher({"limit": "2"})],
        )

        posts = (
            api.for_("/users/{userId}/posts")
            .with_path_param("userId", 1)
            .with_query_param("limit", 2)
            .get()
            .should_return(status=200, body=lambda ps: len(ps) == 2, as_type=List[Post])
            .body_as(List[Post])
        )

        assert [p.title for p in posts] == ["a", "b"]

    @responses.activate
    def test_failure_message(self, api):
        responses.add(responses.GET, f"{BASE_URL}/users/404", json={"error": "not found"}, status=404)

        result = api.for_("/users/{id}").with_path_param("id", 404).get()

        with pytest.raises(ApiAssertionError) as exc_info:
            result.should_return(status=200)

        message = str(exc_info.value)
        assert "200" in message
        assert "404" in message
        assert "not found" in message


class TestAuthFlow:
    """Login with cookies and token providers."""

    @responses.activate
    def test_cookie_login(self, api):
        responses.add(
            responses.POST,
            f"{BASE_URL}/login",
            json={"ok": True},
            headers={"Set-Cookie": "session=s-123; Path=/; HttpOnly"},
        )
        responses.add(responses.GET, f"{BASE_URL}/profile", json={"name": "alice"})

        login = api.for_("/login").post({"username": "alice", "password": "pw"}).should_return(status=200)
        session = login.get_cookie("session")

        api.for_("/profile").with_cookie("session", session).get().should_return(status=200)

        assert responses.calls[1].request.headers["Cookie"] == "session=s-123"

    @responses.activate
    def test_caching_provider_per_user(self):
        responses.add(responses.GET, f"{BASE_URL}/me", json={})
        fetched = []

        def fetch_token(username, password):
            fetched.append(username)
            return f"token-{username}", 3600

        with Api(BASE_URL, auth_provider=CachingAuthProvider(fetch_token)) as api:
            api.for_("/me").as_user("alice", "pw").get()
            api.for_("/me").as_user("alice", "pw").get()
            api.for_("/me").as_user("bob", "pw").get()

        assert fetched == ["alice", "bob"]
        assert [c.request.headers["Authorization"] for c in responses.calls] == [
            "Bearer token-alice",
            "Bearer token-alice",
            "Bearer token-bob",
        ]


class TestParallelFlow:
    """Shared Api used from many threads."""

    @responses.activate
    def test_parallel_users(self, api):
        for i in range(8):
            responses.add(
                responses.GET,
                f"{BASE_URL}/users/{i}",
                json={"id": i, "name": f"u{i}", "email": f"u{i}@example.com"},
            )

        errors = []
        names = {}
        lock = threading.Lock()

        def worker(i):
            try:
                user = (
                    api.for_("/users/{id}")
                    .with_path_param("id", i)
                    .using_token(f"t{i}")
                    .get()
                    .should_return_body(User)
                )
                with lock:
                    names[i] = user.name
            except Exception as e:  # noqa: BLE001
                with lock:
                    errors.append(e)

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert names == {i: f"u{i}" for i in range(8)}
        for call in responses.calls:
            user_id = call.request.url.rsplit("/", 1)[1]
            assert call.request.headers["Authorization"] == f"Bearer t{user_id}"
