import logging
import time
from typing import Callable

from demo_parser.config import ParserConfig
from demo_parser.services.aggregation import parse_demo
from demo_parser.services.replay_events import AwpyEventSource, DemoEventSource
from demo_parser.services.result import DemoResult
from demo_parser.storage import StorageClient
from demo_parser.webhook import WebhookClient

logger = logging.getLogger(__name__)


def run_parse_job(
    demo_id: str,
    file_path: str,
    config: ParserConfig,
    *,
    storage: StorageClient | None = None,
    webhook: WebhookClient | None = None,
    source_factory: Callable[[bytes], DemoEventSource] = AwpyEventSource,
) -> DemoResult:
    """Download, parse and deliver one demo.

    Every step runs in order on the calling thread; the first failure
    propagates and nothing after it runs.
    """
    storage = storage or StorageClient.from_config(config)
    webhook = webhook or WebhookClient.from_config(config)
    started = time.monotonic()

    data = storage.download(file_path)
    result = parse_demo(demo_id, source_factory(data))
    logger.info(
        "Parsed demo %s: map=%s rounds=%s kills=%s players=%s",
        demo_id,
        result.metadata.map_name,
        len(result.rounds),
        len(result.events),
        len(result.players),
    )
    webhook.deliver(result)
    logger.info("Finished demo %s in %.1fs", demo_id, time.monotonic() - started)
    return result
