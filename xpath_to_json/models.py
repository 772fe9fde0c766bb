"""Data models for extraction configurations and results."""

import json
import re
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator

# Trailing attribute step, e.g. //a/@href
ATTRIBUTE_STEP = re.compile(r"/@([A-Za-z_][\w:.-]*)\s*$")


class ExtractType(str, Enum):
    """Kinds of value a rule can produce."""

    TEXT = "text"
    ATTRIBUTE = "attribute"
    HTML = "html"
    COUNT = "count"
    OBJECT = "object"


class Rule(BaseModel):
    """One named extraction instruction."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    xpath: str
    extract_type: ExtractType
    attribute: Optional[str] = None
    iterate_over: Optional[str] = None
    children: Optional[List["Rule"]] = Field(
        default=None, validation_alias=AliasChoices("children", "fields")
    )

    @model_validator(mode="after")
    def check_attribute(self) -> "Rule":
        if (
            self.extract_type == ExtractType.ATTRIBUTE
            and not self.attribute
            and not ATTRIBUTE_STEP.search(self.xpath)
        ):
            raise ValueError(
                f"Rule {self.name!r} extracts an attribute but names none"
            )
        return self

    @property
    def iterates(self) -> bool:
        """True when the rule evaluates children per element of another rule."""
        return self.iterate_over is not None

    @property
    def nested_rules(self) -> List["Rule"]:
        """Children that take part in evaluation (ignored unless iterating)."""
        if self.iterates or self.extract_type == ExtractType.OBJECT:
            return list(self.children or [])
        return []


class Configuration(BaseModel):
    """Ordered set of rules plus an optional output template."""

    name: str
    description: Optional[str] = None
    output_sample: Optional[Any] = None
    rules: List[Rule] = Field(default_factory=list)


class ExtractionError(BaseModel):
    """A per-rule failure recorded during a run."""

    rule: str
    message: str
    kind: str = Field(default="error", exclude=True)


class ExtractionResult(BaseModel):
    """Complete output of one extraction run."""

    config_name: str
    data: Dict[str, Any] = Field(default_factory=dict)
    errors: List[ExtractionError] = Field(default_factory=list)

    def to_json(self, indent: Optional[int] = 2) -> str:
        """Serialize to the JSON document written by the CLI."""
        return json.dumps(self.model_dump(), indent=indent, ensure_ascii=False, default=str)


Rule.model_rebuild()
