from django.apps import AppConfig
from django.conf import settings

from demo_parser.config import ParserConfig


class DemoParserConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "demo_parser"
    verbose_name = "Demo parser"

    parser_config: ParserConfig

    def ready(self) -> None:
        self.parser_config = ParserConfig.from_settings(settings)
