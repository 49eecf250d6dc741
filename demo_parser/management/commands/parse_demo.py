from __future__ import annotations

import json
from pathlib import Path

from django.core.management.base import BaseCommand, CommandError

from demo_parser.config import get_parser_config
from demo_parser.errors import DemoParserError
from demo_parser.services.aggregation import parse_demo
from demo_parser.services.replay_events import AwpyEventSource
from demo_parser.tasks import task_parse_demo
from demo_parser.webhook import WebhookClient


class Command(BaseCommand):
    help = "Parse a local CS2 demo and print the result payload, or queue a storage path for parsing."

    def add_arguments(self, parser):
        parser.add_argument("path", type=str, help="Local .dem file, or a storage path with --queue")
        parser.add_argument("--demo-id", type=str, default="")
        parser.add_argument("--deliver", action="store_true", help="Also post the result to the webhook")
        parser.add_argument("--queue", action="store_true", help="Hand the storage path to the Celery worker")

    def handle(self, *args, **options):
        path = options["path"]
        demo_id = options["demo_id"] or Path(path).stem

        if options["queue"]:
            async_result = task_parse_demo.delay(demo_id, path)
            self.stdout.write(f"Queued demo {demo_id} as task {async_result.id}")
            return

        dem_path = Path(path)
        if not dem_path.exists():
            raise CommandError(f"Demo file not found: {dem_path}")

        try:
            result = parse_demo(demo_id, AwpyEventSource(dem_path.read_bytes()))
            if options["deliver"]:
                WebhookClient.from_config(get_parser_config()).deliver(result)
        except DemoParserError as exc:
            raise CommandError(str(exc)) from exc

        self.stdout.write(json.dumps(result.to_payload(), ensure_ascii=False, indent=2))
