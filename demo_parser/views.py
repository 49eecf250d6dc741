import json
import logging

from django.http import HttpResponse, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from .config import get_parser_config
from .errors import MalformedRequestError
from .pipeline import run_parse_job

logger = logging.getLogger(__name__)


def _plain_text(message: str, status: int) -> HttpResponse:
    return HttpResponse(message, status=status, content_type="text/plain; charset=utf-8")


def _parse_request_body(body: bytes) -> tuple[str, str]:
    try:
        payload = json.loads(body or b"")
    except (ValueError, UnicodeDecodeError) as exc:
        raise MalformedRequestError(str(exc)) from exc
    if not isinstance(payload, dict):
        raise MalformedRequestError("request body must be a JSON object")
    demo_id = payload.get("demoId", "")
    file_path = payload.get("filePath", "")
    if not isinstance(demo_id, str) or not isinstance(file_path, str):
        raise MalformedRequestError("demoId and filePath must be strings")
    return demo_id, file_path


def health(request):
    """GET /health — liveness probe."""
    return _plain_text("OK", status=200)


@csrf_exempt
@require_POST
def parse(request):
    """
    POST /parse {"demoId": "...", "filePath": "..."}
    Downloads the demo from storage, parses it and posts the result to the webhook.
    """
    try:
        demo_id, file_path = _parse_request_body(request.body)
    except MalformedRequestError as exc:
        return _plain_text(str(exc), status=400)

    logger.info("Parsing demo: %s", demo_id)
    try:
        run_parse_job(demo_id, file_path, get_parser_config())
    except Exception as exc:
        logger.exception("Failed to process demo %s", demo_id)
        return _plain_text(str(exc) or exc.__class__.__name__, status=500)

    return JsonResponse({"status": "success"})
