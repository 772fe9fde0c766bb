"""Run an extraction configuration against an HTML document."""

from datetime import datetime
from typing import Callable, Optional

import structlog
from bs4.element import Tag

from .assembler import OutputAssembler
from .errors import ErrorCollector
from .executor import RuleExecutor
from .loader import parse_document
from .models import Configuration, ExtractionResult
from .planner import plan

logger = structlog.get_logger(__name__).bind(service="extractor")


class XPathExtractor:
    """Apply XPath rule configurations to parsed HTML."""

    def __init__(
        self,
        parser_backend: str = "lxml",
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize extractor.

        Args:
            parser_backend: BeautifulSoup tree builder used by extract_html
            clock: Source of "now" for date placeholders in output samples
        """
        self.parser_backend = parser_backend
        self.assembler = OutputAssembler(clock=clock)

    def extract(self, config: Configuration, document: Tag) -> ExtractionResult:
        """
        Evaluate every rule of the configuration against a document.

        Args:
            config: Extraction configuration
            document: Parsed document or element used as the top-level context

        Returns:
            ExtractionResult with data and per-rule errors

        Raises:
            ConfigurationInvalid: If the rule graph cannot be evaluated
        """
        logger.debug("extraction_started", config_name=config.name, rules=len(config.rules))

        graph = plan(config)

        errors = ErrorCollector()
        raw = RuleExecutor(errors, graph).run(config.rules, document)
        data = self.assembler.assemble(raw, config.output_sample)

        result = ExtractionResult(config_name=config.name, data=data, errors=errors.errors)

        if result.errors:
            logger.warning(
                "extraction_reported_errors",
                config_name=config.name,
                errors=[error.model_dump() for error in result.errors],
            )

        logger.info(
            "extraction_completed",
            config_name=config.name,
            fields=len(result.data),
            errors=len(result.errors),
        )
        return result

    def extract_html(self, config: Configuration, html: str) -> ExtractionResult:
        """Parse markup with the configured backend and extract from it."""
        return self.extract(config, parse_document(html, self.parser_backend))
