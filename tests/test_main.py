"""Tests for the HTTP endpoints."""

import time
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from config import Settings
from src.exceptions import ConfigError, StoreError
from src.feed_merger import TRAILER

PREAMBLE = '<rss version="2.0">\n<channel>\n  <title>Test Show</title>\n'


@pytest.fixture
def client(store, test_settings):
    from main import create_app

    app = create_app(store=store, app_settings=test_settings)
    with TestClient(app) as c:
        yield c, store, app


def test_health(client):
    c, _, _ = client
    res = c.get("/health")
    assert res.status_code == 200
    assert res.json() == {"status": "ok"}


@pytest.mark.parametrize("path", ["/", "/feed", "/index.xml"])
def test_feed_paths_serve_index(client, path):
    c, store, _ = client
    store.objects["index.xml"] = (PREAMBLE + TRAILER).encode()
    res = c.get(path)
    assert res.status_code == 200
    assert res.headers["content-type"] == "application/rss+xml; charset=utf-8"
    assert res.text == PREAMBLE + TRAILER


def test_feed_is_cached_between_reads(client):
    c, store, _ = client
    store.objects["index.xml"] = (PREAMBLE + TRAILER).encode()
    c.get("/feed")
    store.objects["index.xml"] = b"changed"
    assert c.get("/feed").text == PREAMBLE + TRAILER
    assert store.count("read") == 1


def test_feed_store_failure_is_json_500(client):
    c, store, _ = client
    store.fail["read"] = StoreError("bucket unreachable")
    res = c.get("/feed")
    assert res.status_code == 500
    assert res.json() == {"error": "Failed to fetch podcast feed"}


def test_feed_missing_index_is_json_500(client):
    c, _, _ = client
    res = c.get("/index.xml")
    assert res.status_code == 500
    assert "error" in res.json()


def test_process_then_feed_end_to_end(client):
    c, store, _ = client
    store.objects["files/my_show_01.mp3"] = b"\xff\xfb\x90\x00" + b"\x00" * 1020

    res = c.post("/process")
    assert res.status_code == 200
    assert res.json() == {"status": "processing completed"}

    feed = c.get("/feed").text
    assert feed.count("<item>") == 1
    assert "<title>my show</title>" in feed
    assert 'length="1024"' in feed
    assert 'type="audio/mpeg"' in feed
    assert 'url="https://podcasts.example.com/files/my_show_01.mp3"' in feed
    assert feed.endswith(TRAILER)


def test_process_invalidates_cached_feed(client):
    c, store, _ = client
    store.objects["index.xml"] = (PREAMBLE + TRAILER).encode()
    assert "<item>" not in c.get("/feed").text

    store.objects["Upload_7.mp3"] = b"abc"
    assert c.post("/process").status_code == 200

    feed = c.get("/feed").text
    assert "<title>Upload</title>" in feed
    assert "files/Upload_7.mp3" in feed


def test_process_failure_is_json_500(client):
    c, store, _ = client
    store.fail["list"] = StoreError("bucket unreachable")
    res = c.post("/process")
    assert res.status_code == 500
    assert res.json() == {"error": "Processing failed"}
    assert store.count("write") == 0


def test_feed_read_timeout_is_json_500(store, test_settings):
    from main import create_app

    original_read = store.read

    def slow_read(key):
        time.sleep(0.5)
        return original_read(key)

    store.objects["index.xml"] = (PREAMBLE + TRAILER).encode()
    store.read = slow_read
    cfg = test_settings.model_copy(update={"read_timeout_seconds": 0.1})
    with TestClient(create_app(store=store, app_settings=cfg)) as c:
        res = c.get("/feed")
    assert res.status_code == 500
    assert res.json() == {"error": "Failed to fetch podcast feed"}


def test_process_timeout_is_json_500(store, test_settings):
    from main import create_app

    cfg = test_settings.model_copy(update={"process_timeout_seconds": 0.1})
    app = create_app(store=store, app_settings=cfg)
    processor = app.state.processor

    def slow_run():
        time.sleep(0.5)

    with patch.object(processor, "run", slow_run), TestClient(app) as c:
        res = c.post("/process")
    assert res.status_code == 500
    assert res.json() == {"error": "Processing failed"}


def test_process_rejects_get(client):
    c, _, _ = client
    assert c.get("/process").status_code == 405


def test_process_already_running_is_409(client):
    c, _, app = client
    processor = app.state.processor
    processor._lock.acquire()
    try:
        res = c.post("/process")
    finally:
        processor._lock.release()
    assert res.status_code == 409
    assert res.json() == {"error": "Processing already in progress"}


def test_file_streams_audio(client):
    c, store, _ = client
    store.objects["files/my_show_01.mp3"] = b"0123456789"
    res = c.get("/files/my_show_01.mp3")
    assert res.status_code == 200
    assert res.headers["content-type"] == "audio/mpeg"
    assert res.headers["content-length"] == "10"
    assert res.content == b"0123456789"


def test_file_nested_path(client):
    c, store, _ = client
    store.objects["files/season/ep.m4a"] = b"abc"
    res = c.get("/files/season/ep.m4a")
    assert res.status_code == 200
    assert res.content == b"abc"


def test_file_missing_is_json_500(client):
    c, _, _ = client
    res = c.get("/files/nope.mp3")
    assert res.status_code == 500
    assert res.json() == {"error": "Failed to fetch podcast file"}


def test_file_redirect_mode(store, test_settings):
    from main import create_app

    cfg = test_settings.model_copy(update={"file_delivery": "redirect", "signed_url_ttl_seconds": 300})
    store.objects["files/a.mp3"] = b"abc"
    with TestClient(create_app(store=store, app_settings=cfg)) as c:
        res = c.get("/files/a.mp3", follow_redirects=False)
    assert res.status_code == 302
    assert res.headers["location"] == "https://storage.example.com/files/a.mp3?expires=300"


def test_object_key_rejects_traversal():
    from main import _object_key

    assert _object_key("files/", "a.mp3") == "files/a.mp3"
    assert _object_key("files/", "season/a.mp3") == "files/season/a.mp3"
    assert _object_key("files/", "../index.xml") is None
    assert _object_key("files/", "a/../../b.mp3") is None
    assert _object_key("files/", "") is None


def test_apps_have_independent_caches(store, test_settings):
    from main import create_app

    first = create_app(store=store, app_settings=test_settings)
    second = create_app(store=store, app_settings=test_settings)
    assert first.state.feed_cache is not second.state.feed_cache


def test_seeded_channel_on_first_process(store):
    from main import create_app

    cfg = Settings(
        _env_file=None,
        gcs_bucket="test-bucket",
        base_url="https://podcasts.example.com",
        podcast_title="Seeded Show",
        podcast_description="Seeded description",
    )
    store.objects["files/ep_1.mp3"] = b"abc"
    with TestClient(create_app(store=store, app_settings=cfg)) as c:
        assert c.post("/process").status_code == 200
        feed = c.get("/feed").text
    assert "<title>Seeded Show</title>" in feed
    assert feed.index("Seeded Show") < feed.index("<item>")


def test_missing_bucket_fails_startup():
    from main import create_app

    with pytest.raises(ConfigError, match="GCS_BUCKET"):
        create_app(app_settings=Settings(_env_file=None, gcs_bucket=""))
