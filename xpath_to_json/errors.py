"""Error types and the per-run error collector."""

from typing import List

import structlog

from .models import ExtractionError

logger = structlog.get_logger(__name__).bind(service="extractor")


class XPathToJsonError(Exception):
    """Base class for extraction errors."""

    kind = "error"


class UnsupportedPath(XPathToJsonError):
    """Path expression uses a construct outside the supported subset."""

    kind = "unsupported_path"

    def __init__(self, xpath: str, construct: str):
        self.xpath = xpath
        self.construct = construct
        super().__init__(f"Unsupported construct {construct!r} in path {xpath!r}")


class MissingAttribute(XPathToJsonError):
    """Matched node lacks the attribute the rule extracts."""

    kind = "missing_attribute"

    def __init__(self, attribute: str):
        self.attribute = attribute
        super().__init__(f"Matched element has no attribute {attribute!r}")


class UnknownIterationSource(XPathToJsonError):
    """iterate_over names a rule that has not been evaluated."""

    kind = "unknown_iteration_source"

    def __init__(self, source: str):
        self.source = source
        super().__init__(f"iterate_over references unknown rule {source!r}")


class ConfigurationInvalid(XPathToJsonError):
    """Rule graph cannot be evaluated. Raised before any extraction."""

    kind = "configuration_invalid"


class ErrorCollector:
    """Append-only record of per-rule failures for one run."""

    def __init__(self):
        self._errors: List[ExtractionError] = []

    def record(self, rule_name: str, error: XPathToJsonError) -> None:
        """
        Record a failure against a rule.

        Args:
            rule_name: Name of the offending rule
            error: The exception describing the failure
        """
        self._errors.append(
            ExtractionError(rule=rule_name, message=str(error), kind=error.kind)
        )
        logger.warning("rule_failed", rule=rule_name, kind=error.kind, error=str(error))

    @property
    def errors(self) -> List[ExtractionError]:
        return list(self._errors)

    def __len__(self) -> int:
        return len(self._errors)
