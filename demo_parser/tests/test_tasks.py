import os

import django
import pytest

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "backend.settings")
django.setup()

from demo_parser import tasks  # noqa: E402
from demo_parser.errors import DemoDownloadError  # noqa: E402
from demo_parser.services.metrics import Metadata  # noqa: E402
from demo_parser.services.result import DemoResult  # noqa: E402


def test_task_parse_demo_summarises_result(monkeypatch):
    def fake_run(demo_id, file_path, config):
        return DemoResult(
            demo_id=demo_id,
            players=(),
            rounds=(),
            events=(),
            metadata=Metadata(map_name="de_dust2", duration=10, tick_rate=64),
        )

    monkeypatch.setattr(tasks, "run_parse_job", fake_run)

    summary = tasks.task_parse_demo("demo-3", "user/demo-3.dem")

    assert summary == {"demo_id": "demo-3", "rounds": 0, "events": 0, "players": 0}


def test_task_parse_demo_reraises(monkeypatch):
    def fake_run(demo_id, file_path, config):
        raise DemoDownloadError("failed to download demo: status 500")

    monkeypatch.setattr(tasks, "run_parse_job", fake_run)

    with pytest.raises(DemoDownloadError):
        tasks.task_parse_demo("demo-3", "user/demo-3.dem")
