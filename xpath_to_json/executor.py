"""Evaluate rules against a parsed document."""

from typing import Any, Callable, Dict, List, Optional, Set

import structlog
from bs4 import BeautifulSoup
from bs4.element import NavigableString, PreformattedString, Tag
from soupsieve import SelectorSyntaxError

from .errors import ErrorCollector, MissingAttribute, UnknownIterationSource, UnsupportedPath
from .models import ExtractType, Rule
from .planner import SEPARATOR, RuleGraph
from .translator import CompiledPath, translate

logger = structlog.get_logger(__name__).bind(service="extractor")

Extract = Callable[[Rule, CompiledPath, List[Tag], "NodeScope", str], Any]


class NodeScope:
    """Matched node sets, keyed by qualified rule path, visible from one context."""

    def __init__(self, parent: Optional["NodeScope"] = None):
        self.parent = parent
        self._nodes: Dict[str, List[Tag]] = {}

    def record(self, path: str, nodes: List[Tag]) -> None:
        self._nodes[path] = list(nodes)

    def lookup(self, path: str) -> Optional[List[Tag]]:
        scope = self
        while scope is not None:
            if path in scope._nodes:
                return scope._nodes[path]
            scope = scope.parent
        return None


class RuleExecutor:
    """
    Walk a rule tree depth-first, in declared order.

    Every rule records its matched nodes in the current scope. Iterating
    rules take their source from the planned rule graph and read its nodes
    from the nearest scope holding them. Per-rule failures go to the error
    collector and the rule gets an empty value; evaluation continues.
    """

    def __init__(self, errors: ErrorCollector, graph: RuleGraph):
        self.errors = errors
        self.graph = graph
        self._reported: Set[str] = set()
        self._extractors: Dict[ExtractType, Extract] = {
            ExtractType.TEXT: self._extract_text,
            ExtractType.ATTRIBUTE: self._extract_attribute,
            ExtractType.HTML: self._extract_html,
            ExtractType.COUNT: self._extract_count,
            ExtractType.OBJECT: self._extract_objects,
        }

    def run(self, rules: List[Rule], document: Tag) -> Dict[str, Any]:
        """
        Evaluate top-level rules against the whole document.

        Args:
            rules: Document-level rules in declared order
            document: Parsed document (BeautifulSoup)

        Returns:
            Mapping of rule name to extracted value, in rule order
        """
        return self.evaluate_rules(rules, document, NodeScope(), "")

    def evaluate_rules(
        self,
        rules: List[Rule],
        context: Tag,
        parent: NodeScope,
        prefix: str,
    ) -> Dict[str, Any]:
        scope = NodeScope(parent)
        values: Dict[str, Any] = {}
        for rule in rules:
            values[rule.name] = self.evaluate_rule(rule, context, scope, prefix)
        return values

    def evaluate_rule(self, rule: Rule, context: Tag, scope: NodeScope, prefix: str = "") -> Any:
        """Evaluate one rule with the given context node."""
        path = prefix + rule.name

        try:
            compiled = translate(rule.xpath)
            nodes = self._select(compiled, context)
        except UnsupportedPath as e:
            self.errors.record(path, e)
            scope.record(path, [])
            return self._empty_value(rule)

        scope.record(path, nodes)
        logger.debug("rule_matched", rule=path, xpath=rule.xpath, matches=len(nodes))

        if rule.iterates:
            return self._iterate(rule, scope, path)
        return self._extractors[rule.extract_type](rule, compiled, nodes, scope, path)

    def _select(self, compiled: CompiledPath, context: Tag) -> List[Tag]:
        if compiled.selects_context:
            return [context]
        selector = compiled.selector_for(isinstance(context, BeautifulSoup))
        try:
            return context.select(selector)
        except SelectorSyntaxError as e:
            raise UnsupportedPath(compiled.xpath, f"selector {selector!r}: {e}") from e

    def _iterate(self, rule: Rule, scope: NodeScope, path: str) -> List[Dict[str, Any]]:
        source = self.graph.edges.get(path)
        domain = scope.lookup(source) if source is not None else None
        if domain is None:
            if path not in self._reported:
                self._reported.add(path)
                self.errors.record(path, UnknownIterationSource(rule.iterate_over))
            return []
        children = rule.nested_rules
        return [
            self.evaluate_rules(children, node, scope, path + SEPARATOR)
            for node in domain
        ]

    def _extract_text(
        self, rule: Rule, compiled: CompiledPath, nodes: List[Tag], scope: NodeScope, path: str
    ) -> Any:
        if compiled.attribute:
            texts = [_attribute_value(node, compiled.attribute) for node in nodes]
            texts = [text.strip() for text in texts if text is not None]
        elif compiled.text_step:
            texts = [_own_text(node).strip() for node in nodes]
        else:
            texts = [node.get_text().strip() for node in nodes]
        return _collapse([text for text in texts if text], "")

    def _extract_attribute(
        self, rule: Rule, compiled: CompiledPath, nodes: List[Tag], scope: NodeScope, path: str
    ) -> Any:
        attribute = rule.attribute or compiled.attribute
        if not nodes:
            return None
        values = [_attribute_value(node, attribute) for node in nodes]
        values = [value for value in values if value is not None]
        if not values:
            self.errors.record(path, MissingAttribute(attribute))
            return None
        return _collapse(values, None)

    def _extract_html(
        self, rule: Rule, compiled: CompiledPath, nodes: List[Tag], scope: NodeScope, path: str
    ) -> Any:
        return _collapse([node.decode_contents() for node in nodes], None)

    def _extract_count(
        self, rule: Rule, compiled: CompiledPath, nodes: List[Tag], scope: NodeScope, path: str
    ) -> int:
        if compiled.attribute:
            return sum(1 for node in nodes if _attribute_value(node, compiled.attribute) is not None)
        return len(nodes)

    def _extract_objects(
        self, rule: Rule, compiled: CompiledPath, nodes: List[Tag], scope: NodeScope, path: str
    ) -> List[Dict[str, Any]]:
        return [
            self.evaluate_rules(rule.nested_rules, node, scope, path + SEPARATOR)
            for node in nodes
        ]

    @staticmethod
    def _empty_value(rule: Rule) -> Any:
        if rule.iterates or rule.extract_type == ExtractType.OBJECT:
            return []
        if rule.extract_type == ExtractType.COUNT:
            return 0
        return None


def _collapse(values: List[Any], empty: Any) -> Any:
    """One value stays scalar, several become a list in document order."""
    if not values:
        return empty
    if len(values) == 1:
        return values[0]
    return values


def _attribute_value(node: Tag, name: str) -> Optional[str]:
    value = node.get(name)
    if value is None:
        return None
    if isinstance(value, list):
        return " ".join(value)
    return value


def _own_text(node: Tag) -> str:
    return "".join(
        str(child)
        for child in node.children
        if isinstance(child, NavigableString) and not isinstance(child, PreformattedString)
    )
