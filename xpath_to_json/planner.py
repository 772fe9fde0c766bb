"""Validate the rule reference graph before any extraction runs."""

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

import structlog

from .errors import ConfigurationInvalid
from .models import Configuration, ExtractType, Rule

logger = structlog.get_logger(__name__).bind(service="extractor")

SEPARATOR = "/"


@dataclass
class RuleGraph:
    """
    Dependency edges between rules.

    Keys and values are qualified rule paths ("items/price"). A dependent
    whose source cannot be resolved maps to None; the executor reports it
    as an unknown iteration source.
    """

    edges: Dict[str, Optional[str]] = field(default_factory=dict)
    rule_count: int = 0

    @property
    def unresolved(self) -> List[str]:
        return [path for path, source in self.edges.items() if source is None]


@dataclass
class _Enclosing:
    """An outer scope as seen from inside one of its rules."""

    evaluated: Mapping[str, str]
    in_progress: str
    later: List[str]


def plan(config: Configuration) -> RuleGraph:
    """
    Build and check the iteration dependency graph.

    Names resolve lexically: the current scope first, then each enclosing
    scope outwards. In every scope only rules declared before the point of
    reference are visible.

    Args:
        config: Parsed configuration

    Returns:
        RuleGraph with one edge per iterating rule

    Raises:
        ConfigurationInvalid: On duplicate names in a scope, iterate_over
            references to the rule itself, a later rule or a rule still being
            evaluated, or object rules without children
    """
    graph = RuleGraph()
    _plan_scope(config.rules, "", [], graph)
    logger.debug(
        "rules_planned",
        config_name=config.name,
        rules=graph.rule_count,
        dependencies=len(graph.edges),
        unresolved=graph.unresolved,
    )
    return graph


def _plan_scope(
    rules: List[Rule],
    prefix: str,
    outer: List[_Enclosing],
    graph: RuleGraph,
) -> None:
    names = [rule.name for rule in rules]
    seen = set()
    for name in names:
        if name in seen:
            scope = prefix.rstrip(SEPARATOR) or "document"
            raise ConfigurationInvalid(f"Duplicate rule name {name!r} in scope {scope!r}")
        seen.add(name)

    evaluated: Dict[str, str] = {}
    for index, rule in enumerate(rules):
        path = prefix + rule.name
        graph.rule_count += 1

        if rule.iterate_over is not None:
            if rule.iterate_over == rule.name:
                raise ConfigurationInvalid(f"Rule {path!r} iterates over itself")
            graph.edges[path] = _resolve(
                path, rule.iterate_over, evaluated, names[index + 1:], outer
            )

        if rule.extract_type == ExtractType.OBJECT and not rule.iterates and not rule.children:
            raise ConfigurationInvalid(f"Object rule {path!r} requires children")

        children = rule.nested_rules
        if children:
            enclosing = _Enclosing(evaluated, rule.name, names[index + 1:])
            _plan_scope(children, path + SEPARATOR, [enclosing] + outer, graph)

        evaluated[rule.name] = path


def _resolve(
    path: str,
    source: str,
    evaluated: Mapping[str, str],
    later: List[str],
    outer: List[_Enclosing],
) -> Optional[str]:
    if source in evaluated:
        return evaluated[source]
    if source in later:
        raise ConfigurationInvalid(f"Rule {path!r} iterates over {source!r}, which is declared after it")

    for scope in outer:
        if source in scope.evaluated:
            return scope.evaluated[source]
        if source == scope.in_progress:
            raise ConfigurationInvalid(f"Rule {path!r} iterates over its enclosing rule {source!r}")
        if source in scope.later:
            raise ConfigurationInvalid(
                f"Rule {path!r} iterates over {source!r}, which is declared after its enclosing rule"
            )
    return None
