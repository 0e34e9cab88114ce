"""
tests/test_jokes_routes.py -- Route tests for the joke pages.

Covers listing, random selection, detail with is_owner, creation with field
validation, and the _method=delete protocol including its error ordering
(unsupported method before auth, existence before ownership).
"""

from __future__ import annotations

from fastapi.testclient import TestClient

from jokes.models import Joke

GOOD_JOKE = {"name": "Trees", "content": "Why do trees seem suspicious on sunny days? They're a bit shady."}


def _add(joke_store, owner_id: str, name: str = "Trees") -> str:
    return joke_store.create_joke(Joke(owner_id=owner_id, name=name, content="A perfectly adequate joke."))


def test_landing(web_client: TestClient) -> None:
    resp = web_client.get("/")
    assert resp.status_code == 200
    assert resp.json()["links"]["jokes"] == "/jokes"


class TestListing:
    def test_anonymous_listing(self, web_client: TestClient, joke_store) -> None:
        for i in range(7):
            _add(joke_store, "owner-1", name=f"Joke {i}")
        body = web_client.get("/jokes").json()
        assert body["user"] is None
        assert [j["name"] for j in body["jokes"]] == ["Joke 6", "Joke 5", "Joke 4", "Joke 3", "Joke 2"]
        assert set(body["jokes"][0]) == {"id", "name"}

    def test_empty_listing(self, web_client: TestClient) -> None:
        assert web_client.get("/jokes").json() == {"user": None, "jokes": []}


class TestRandom:
    def test_no_jokes(self, web_client: TestClient) -> None:
        resp = web_client.get("/jokes/random")
        assert resp.status_code == 404
        assert resp.json()["error"]["message"] == "No random joke found"

    def test_random_returns_existing_joke(self, web_client: TestClient, joke_store) -> None:
        ids = {_add(joke_store, "owner-1", name=n) for n in ("Trees", "Hippos")}
        resp = web_client.get("/jokes/random")
        assert resp.status_code == 200
        assert resp.json()["joke"]["id"] in ids


class TestDetail:
    def test_unknown_joke(self, web_client: TestClient) -> None:
        resp = web_client.get("/jokes/does-not-exist")
        assert resp.status_code == 404
        assert resp.json()["error"]["message"] == "What a joke! Not found."

    def test_anonymous_is_not_owner(self, web_client: TestClient, joke_store) -> None:
        joke_id = _add(joke_store, "owner-1")
        body = web_client.get(f"/jokes/{joke_id}").json()
        assert body["joke"]["id"] == joke_id
        assert body["joke"]["content"] == "A perfectly adequate joke."
        assert body["is_owner"] is False

    def test_owner_flag(self, web_client: TestClient, joke_store, make_user, sign_in) -> None:
        alice = make_user()
        bob = make_user("bob", "secret2")
        joke_id = _add(joke_store, alice.id)

        sign_in(alice.id)
        assert web_client.get(f"/jokes/{joke_id}").json()["is_owner"] is True
        sign_in(bob.id)
        assert web_client.get(f"/jokes/{joke_id}").json()["is_owner"] is False


class TestCreate:
    def test_create_redirects_to_new_joke(self, web_client: TestClient, joke_store, make_user, sign_in) -> None:
        user = make_user()
        sign_in(user.id)
        resp = web_client.post("/jokes/new", data=GOOD_JOKE)
        assert resp.status_code == 302
        joke_id = resp.headers["location"].rsplit("/", 1)[-1]
        joke = joke_store.get_by_id(joke_id)
        assert joke is not None
        assert joke.owner_id == user.id
        assert joke.name == "Trees"

    def test_owner_comes_from_session_not_form(self, web_client: TestClient, joke_store, make_user, sign_in) -> None:
        user = make_user()
        sign_in(user.id)
        resp = web_client.post("/jokes/new", data={**GOOD_JOKE, "owner_id": "someone-else"})
        joke_id = resp.headers["location"].rsplit("/", 1)[-1]
        assert joke_store.get_by_id(joke_id).owner_id == user.id

    def test_field_errors(self, web_client: TestClient, joke_store, make_user, sign_in) -> None:
        sign_in(make_user().id)
        resp = web_client.post("/jokes/new", data={"name": "ab", "content": "short"})
        assert resp.status_code == 400
        body = resp.json()
        assert body["field_errors"] == {"name": "That joke's name is too short", "content": "That joke is too short"}
        assert body["fields"] == {"name": "ab", "content": "short"}
        assert joke_store.count_jokes() == 0

    def test_missing_field(self, web_client: TestClient, make_user, sign_in) -> None:
        sign_in(make_user().id)
        resp = web_client.post("/jokes/new", data={"name": "Trees"})
        assert resp.status_code == 400
        assert resp.json()["form_error"] == "Form not submitted correctly."


class TestDelete:
    def test_owner_deletes(self, web_client: TestClient, joke_store, make_user, sign_in) -> None:
        user = make_user()
        joke_id = _add(joke_store, user.id)
        sign_in(user.id)
        resp = web_client.post(f"/jokes/{joke_id}", data={"_method": "delete"})
        assert resp.status_code == 302
        assert resp.headers["location"] == "/jokes"
        assert joke_store.get_by_id(joke_id) is None

    def test_non_owner_is_refused(self, web_client: TestClient, joke_store, make_user, sign_in) -> None:
        alice = make_user()
        bob = make_user("bob", "secret2")
        joke_id = _add(joke_store, alice.id)
        sign_in(bob.id)
        resp = web_client.post(f"/jokes/{joke_id}", data={"_method": "delete"})
        assert resp.status_code == 401
        assert resp.json()["error"]["message"] == "Pssh, nice try. That's not your joke"
        assert joke_store.get_by_id(joke_id) is not None

    def test_missing_joke(self, web_client: TestClient, make_user, sign_in) -> None:
        sign_in(make_user().id)
        resp = web_client.post("/jokes/does-not-exist", data={"_method": "delete"})
        assert resp.status_code == 404
        assert resp.json()["error"]["message"] == "Can't delete what does not exist"

    def test_unsupported_method_checked_before_auth(self, web_client: TestClient, joke_store) -> None:
        joke_id = _add(joke_store, "owner-1")
        resp = web_client.post(f"/jokes/{joke_id}", data={"_method": "patch"})
        assert resp.status_code == 400
        assert resp.json()["error"]["message"] == "The _method patch is not supported"
        assert joke_store.get_by_id(joke_id) is not None
