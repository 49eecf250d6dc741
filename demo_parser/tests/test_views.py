import os

import django
from django.test import Client

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "backend.settings")
django.setup()

from demo_parser import views  # noqa: E402
from demo_parser.config import ParserConfig  # noqa: E402
from demo_parser.errors import DemoDecodeError, DeliveryError  # noqa: E402


def _post(client: Client, body, content_type="application/json"):
    return client.post("/parse", data=body, content_type=content_type)


def test_health_returns_ok():
    response = Client().get("/health")

    assert response.status_code == 200
    assert response.content == b"OK"


def test_parse_rejects_get():
    response = Client().get("/parse")

    assert response.status_code == 405


def test_parse_rejects_malformed_json():
    response = _post(Client(), "{not json")

    assert response.status_code == 400


def test_parse_rejects_non_object_body():
    response = _post(Client(), "[1, 2]")

    assert response.status_code == 400


def test_parse_success(monkeypatch):
    calls = []

    def fake_run(demo_id, file_path, config):
        calls.append((demo_id, file_path, config))

    monkeypatch.setattr(views, "run_parse_job", fake_run)

    response = _post(Client(), {"demoId": "demo-9", "filePath": "user/demo-9.dem"})

    assert response.status_code == 200
    assert response.json() == {"status": "success"}
    demo_id, file_path, config = calls[0]
    assert (demo_id, file_path) == ("demo-9", "user/demo-9.dem")
    assert isinstance(config, ParserConfig)
    assert config.storage_bucket == "demos"


def test_parse_decode_failure_is_server_error(monkeypatch):
    def fake_run(demo_id, file_path, config):
        raise DemoDecodeError("Failed to decode demo: truncated")

    monkeypatch.setattr(views, "run_parse_job", fake_run)

    response = _post(Client(), {"demoId": "demo-9", "filePath": "user/demo-9.dem"})

    assert response.status_code == 500
    assert b"truncated" in response.content
    assert response["Content-Type"].startswith("text/plain")


def test_parse_delivery_failure_is_server_error(monkeypatch):
    def fake_run(demo_id, file_path, config):
        raise DeliveryError("webhook returned status 502: bad gateway", status_code=502)

    monkeypatch.setattr(views, "run_parse_job", fake_run)

    response = _post(Client(), {"demoId": "demo-9", "filePath": "user/demo-9.dem"})

    assert response.status_code == 500
    assert b"502" in response.content
