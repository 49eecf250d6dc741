import logging

from django.core.management import call_command
from django.core.management.base import BaseCommand

from demo_parser.config import get_parser_config

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = (
        "Serve /health and /parse on 0.0.0.0:$PORT (default 8080) with Django's development server. "
        "For production, point a WSGI server at backend.wsgi:application."
    )

    def add_arguments(self, parser):
        parser.add_argument("--port", type=int, default=None)

    def handle(self, *args, **options):
        port = options["port"] or get_parser_config().port
        logger.info("Demo parser service starting on port %s", port)
        call_command("runserver", f"0.0.0.0:{port}", use_reloader=False)
