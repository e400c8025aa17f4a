"""HTTP-level tests for the /api endpoints."""

import base64
import json

import httpx
import pytest
from fastapi.testclient import TestClient

from hunt_admin.app import create_app
from hunt_admin.config import AuthSettings, GitHubSettings, Settings
from hunt_admin.content import CommitError, GitHubStore, MemoryStore, serialize_document


def _client(store=None, settings=None) -> TestClient:
    return TestClient(create_app(settings=settings or Settings(), store=store or MemoryStore()))


def _basic(user: str, password: str) -> dict[str, str]:
    token = base64.b64encode(f"{user}:{password}".encode()).decode()
    return {"Authorization": f"Basic {token}"}


# ── Health and diagnostics ───────────────────────────────


def test_health():
    assert _client().get("/api/health").json() == {"status": "ok"}


def test_github_status_memory_store():
    body = _client().get("/api/github/status").json()
    assert body["ok"] is True
    assert body["resolved"]["name"] == "main"
    assert body["token_present"] is False


def test_github_status_unconfigured_reports_error():
    client = TestClient(create_app(settings=Settings()))
    body = client.get("/api/github/status").json()
    assert body["ok"] is False
    assert body["configured"] is False
    assert body["error"].startswith("Missing env:")


def test_default_store_is_github():
    app = create_app(settings=Settings(github=GitHubSettings(owner="acme")))
    assert type(app.state.store).__name__ == "GitHubStore"


def test_memory_store_selected_by_settings():
    app = create_app(settings=Settings(content_store="memory"))
    assert isinstance(app.state.store, MemoryStore)


# ── Save ─────────────────────────────────────────────────


def test_save_draft():
    store = MemoryStore()
    res = _client(store).post("/api/save", json={
        "slug": "pirate-cove", "config": {"x": 1}, "missions": {"missions": []}, "channel": "draft",
    })
    assert res.status_code == 200
    body = res.json()
    assert body["ok"] is True
    assert [r["path"] for r in body["results"]] == [
        "public/games/pirate-cove/draft/config.json",
        "public/games/pirate-cove/draft/missions.json",
    ]
    assert json.loads(store.files["public/games/pirate-cove/draft/config.json"]) == {"x": 1}


def test_save_missing_slug_is_400():
    res = _client().post("/api/save", json={"config": {"x": 1}})
    assert res.status_code == 400
    assert res.json()["ok"] is False
    assert "Missing slug" in res.json()["error"]


def test_save_unknown_channel_is_400():
    res = _client().post("/api/save", json={"slug": "foo", "config": {}, "channel": "live"})
    assert res.status_code == 400


def test_save_non_object_body_is_400():
    res = _client().post("/api/save", json=["foo"])
    assert res.status_code == 400
    assert res.json()["ok"] is False


def test_save_rejects_path_traversal_slug():
    store = MemoryStore()
    res = _client(store).post("/api/save", json={
        "slug": "../../game/public/games/x", "config": {"a": 1},
    })
    assert res.status_code == 400
    assert res.json()["error"].startswith("Invalid slug")
    assert store.files == {}


def test_save_store_failure_is_500():
    client = TestClient(create_app(settings=Settings()))  # GitHub store without credentials
    res = client.post("/api/save", json={"slug": "foo", "config": {}, "channel": "draft"})
    assert res.status_code == 500
    body = res.json()
    assert body["ok"] is False
    assert body["slug"] == "foo"
    assert body["channel"] == "draft"


# ── Publish ──────────────────────────────────────────────


def test_publish():
    store = MemoryStore({"public/games/foo/draft/config.json": serialize_document({"x": 1})})
    res = _client(store).post("/api/publish", json={"slug": "foo"})
    assert res.status_code == 200
    body = res.json()
    assert body["ok"] is True
    assert body["slug"] == "foo"
    assert body["usedBase"] == "public/games/foo/draft"
    assert "game/public/games/foo/missions.json" in body["wrote"]
    assert body["commitUrl"]


def test_publish_undecodable_blob_is_json_500():
    blob = base64.b64encode(b"\xff\xfe{}").decode("ascii")

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/git/ref/heads/main"):
            return httpx.Response(200, json={"object": {"sha": "c0"}})
        if request.url.path.endswith("/contents/public/games/foo/draft/config.json"):
            return httpx.Response(200, json={"type": "file", "sha": "abc", "content": blob})
        return httpx.Response(404, json={"message": "Not Found"})

    github = GitHubSettings(token="tok", owner="acme", repo="hunts")
    store = GitHubStore(github, transport=httpx.MockTransport(handler))
    res = _client(store, Settings(github=github)).post("/api/publish", json={"slug": "foo"})

    assert res.status_code == 500
    assert res.headers["content-type"].startswith("application/json")
    body = res.json()
    assert body["ok"] is False
    assert "not UTF-8 text" in body["error"]
    assert body["slug"] == "foo"
    assert body["tried"][0] == "public/games/foo/draft"


def test_unexpected_error_is_json_500():
    class BrokenStore(MemoryStore):
        async def list_dirs(self, path, ref=None):
            raise RuntimeError("disk on fire")

    app = create_app(settings=Settings(), store=BrokenStore())
    res = TestClient(app, raise_server_exceptions=False).get("/api/games")
    assert res.status_code == 500
    assert res.json() == {"ok": False, "error": "disk on fire"}


def test_publish_nothing_found_is_404():
    res = _client().post("/api/publish", json={"slug": "bar"})
    assert res.status_code == 404
    body = res.json()
    assert body["ok"] is False
    assert body["tried"] == [
        "public/games/bar/draft",
        "public/games/bar",
        "public/draft",
        "public",
    ]


def test_publish_commit_error_is_500():
    class RejectingStore(MemoryStore):
        async def commit_files(self, files, message, ref=None):
            raise CommitError("PATCH ref failed: 422 Update is not a fast forward", status=422)

    store = RejectingStore({"public/config.json": serialize_document({"x": 1})})
    res = _client(store).post("/api/publish", json={"slug": ""})
    assert res.status_code == 500
    body = res.json()
    assert body == {
        "ok": False,
        "error": "PATCH ref failed: 422 Update is not a fast forward",
        "slug": "(root)",
        "usedBase": "public",
    }


# ── Games ────────────────────────────────────────────────


def test_list_and_load_games():
    store = MemoryStore({
        "public/games/foo/config.json": serialize_document({"title": "Foo"}),
        "public/games/foo/draft/config.json": serialize_document({"title": "Foo (draft)"}),
    })
    client = _client(store)
    assert client.get("/api/games").json() == {"ok": True, "slugs": ["foo"]}

    body = client.get("/api/games/foo", params={"channel": "draft"}).json()
    assert body["ok"] is True
    assert body["config"] == {"title": "Foo (draft)"}
    assert body["missions"] is None


def test_create_game():
    store = MemoryStore()
    client = _client(store)
    res = client.post("/api/games", json={"title": "Pirate Cove", "shortDescription": "Arr"})
    assert res.status_code == 200
    body = res.json()
    assert body["ok"] is True
    assert body["slug"] == "pirate-cove"
    config = json.loads(store.files["public/games/pirate-cove/draft/config.json"])
    assert config["game"]["shortDescription"] == "Arr"
    assert client.get("/api/games").json()["slugs"] == ["pirate-cove"]


def test_create_existing_game_is_409():
    store = MemoryStore({"public/games/pirate-cove/config.json": "{}\n"})
    res = _client(store).post("/api/games", json={"title": "Pirate Cove"})
    assert res.status_code == 409
    assert res.json() == {
        "ok": False,
        "error": "Game pirate-cove already exists",
        "slug": "pirate-cove",
    }


def test_create_game_without_title_is_400():
    res = _client().post("/api/games", json={"mode": "single"})
    assert res.status_code == 400
    assert res.json()["error"] == "Missing title"


def test_load_game_unsafe_slug_is_400():
    res = _client().get("/api/games/Foo")
    assert res.status_code == 400
    assert res.json()["ok"] is False


def test_load_game_bad_channel_is_400():
    res = _client().get("/api/games/foo", params={"channel": "live"})
    assert res.status_code == 400
    assert res.json()["ok"] is False


# ── Auth ─────────────────────────────────────────────────


@pytest.fixture
def secured() -> TestClient:
    settings = Settings(auth=AuthSettings(user="ops", password="hunter2"))
    return _client(settings=settings)


def test_auth_required(secured):
    res = secured.get("/api/games")
    assert res.status_code == 401
    assert res.headers["WWW-Authenticate"] == 'Basic realm="Hunt Admin"'


def test_auth_wrong_password(secured):
    assert secured.get("/api/games", headers=_basic("ops", "nope")).status_code == 401


def test_auth_wrong_user(secured):
    assert secured.get("/api/games", headers=_basic("intruder", "hunter2")).status_code == 401


def test_auth_accepts_credentials(secured):
    res = secured.post("/api/publish", json={"slug": "bar"}, headers=_basic("ops", "hunter2"))
    assert res.status_code == 404


def test_health_is_public(secured):
    assert secured.get("/api/health").status_code == 200


def test_auth_disabled():
    settings = Settings(auth=AuthSettings(password="hunter2", disabled=True))
    assert _client(settings=settings).get("/api/games").status_code == 200
