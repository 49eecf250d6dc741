import logging

from celery import shared_task

from demo_parser.config import get_parser_config
from demo_parser.pipeline import run_parse_job

logger = logging.getLogger(__name__)


@shared_task
def task_parse_demo(demo_id: str, file_path: str) -> dict:
    try:
        result = run_parse_job(demo_id, file_path, get_parser_config())
    except Exception:
        logger.exception("Failed to parse demo %s", demo_id)
        raise
    return {
        "demo_id": demo_id,
        "rounds": len(result.rounds),
        "events": len(result.events),
        "players": len(result.players),
    }
