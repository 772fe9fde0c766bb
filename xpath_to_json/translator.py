"""Translate restricted XPath expressions into CSS selectors.

Supported subset:

    //tag, .//tag        descendants of the context
    ./tag, tag           children of the context
    /tag                 absolute, anchored at the document root element
    a/b, a//b            child and descendant separators
    *                    any element
    [@attr='value']      attribute equality (also double quotes)
    [@attr]              attribute presence
    [contains(@a, 'v')]  attribute substring
    [... and ...]        conjunction of the above
    [n]                  position among same-named siblings
    /text()              trailing step, extract text of the parent step
    /@attr               trailing step, extract the attribute of the parent step
    .                    the context node itself

Anything else raises UnsupportedPath naming the construct.
"""

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import List, Optional

from .errors import UnsupportedPath

NAME_TEST = re.compile(r"^(\*|[A-Za-z_][\w.-]*)(.*)$", re.DOTALL)
ATTRIBUTE_NAME = r"([A-Za-z_][\w:.-]*)"
QUOTED = r"(?:'([^']*)'|\"([^\"]*)\")"
ATTR_EQUALS = re.compile(rf"^@{ATTRIBUTE_NAME}\s*=\s*{QUOTED}$")
ATTR_PRESENT = re.compile(rf"^@{ATTRIBUTE_NAME}$")
ATTR_CONTAINS = re.compile(rf"^contains\(\s*@{ATTRIBUTE_NAME}\s*,\s*{QUOTED}\s*\)$")
POSITION = re.compile(r"^\d+$")
FUNCTION_CALL = re.compile(r"([A-Za-z][\w-]*)\s*\(")
AND = re.compile(r"\s+and\s+")

DESCENDANT = " "
CHILD = " > "


ROOT = ":root"


@dataclass(frozen=True)
class CompiledPath:
    """
    A translated path expression.

    selector is evaluated with an element as the context and is anchored to
    it with :scope. document_selector is used when the context is the
    parsed document, where :scope would mean the root element instead of
    the document node.
    """

    xpath: str
    selector: Optional[str]
    document_selector: Optional[str] = None
    attribute: Optional[str] = None
    text_step: bool = False

    @property
    def selects_context(self) -> bool:
        """True when the path addresses the context node itself."""
        return self.selector is None

    def selector_for(self, at_document: bool) -> Optional[str]:
        return self.document_selector if at_document else self.selector


@lru_cache(maxsize=512)
def translate(xpath: str) -> CompiledPath:
    """
    Translate a path expression into a CSS selector.

    Args:
        xpath: Restricted XPath expression

    Returns:
        CompiledPath carrying the selector and any trailing-step hints

    Raises:
        UnsupportedPath: If the expression uses a construct outside the subset
    """
    expr = xpath.strip()
    if not expr:
        raise UnsupportedPath(xpath, "empty expression")
    if _outside_quotes(expr, "|"):
        raise UnsupportedPath(xpath, "|")

    segments = _split_steps(xpath, expr)

    if segments[0] == "":
        if len(segments) > 1 and segments[1] == "":
            combinator, steps = DESCENDANT, segments[2:]
        else:
            combinator, steps = ROOT, segments[1:]
    elif segments[0] == ".":
        if len(segments) > 1 and segments[1] == "":
            combinator, steps = DESCENDANT, segments[2:]
        else:
            combinator, steps = CHILD, segments[1:]
    else:
        combinator, steps = CHILD, segments

    attribute = None
    text_step = False
    if steps and steps[-1] == "text()":
        text_step = True
        steps = steps[:-1]
    elif steps and steps[-1].startswith("@"):
        match = ATTR_PRESENT.match(steps[-1])
        if not match:
            raise UnsupportedPath(xpath, steps[-1])
        attribute = match.group(1)
        steps = steps[:-1]

    if steps and steps[-1] == "":
        raise UnsupportedPath(xpath, "trailing //")

    if not steps:
        if combinator == ROOT:
            raise UnsupportedPath(xpath, "empty step")
        return CompiledPath(xpath=xpath, selector=None, attribute=attribute, text_step=text_step)

    parts: List[str] = []
    pending = combinator
    for step in steps:
        if step == "":
            if pending == DESCENDANT:
                raise UnsupportedPath(xpath, "empty step")
            pending = DESCENDANT
            continue
        compound = _translate_step(xpath, step)
        parts.append(compound if not parts else pending + compound)
        pending = CHILD

    head, rest = parts[0], "".join(parts[1:])
    if combinator == ROOT:
        selector = document_selector = head + ROOT + rest
    elif combinator == CHILD:
        # The document node's only element child is the root element
        selector = ":scope > " + head + rest
        document_selector = head + ROOT + rest
    else:
        selector = ":scope " + head + rest
        document_selector = head + rest

    return CompiledPath(
        xpath=xpath,
        selector=selector,
        document_selector=document_selector,
        attribute=attribute,
        text_step=text_step,
    )


def _split_steps(xpath: str, expr: str) -> List[str]:
    """Split on "/" outside predicates and string literals."""
    segments: List[str] = []
    current: List[str] = []
    depth = 0
    quote = None
    for char in expr:
        if quote:
            if char == quote:
                quote = None
        elif char in "'\"":
            quote = char
        elif char == "[":
            depth += 1
        elif char == "]":
            depth -= 1
            if depth < 0:
                raise UnsupportedPath(xpath, "]")
        elif char == "/" and depth == 0:
            segments.append("".join(current).strip())
            current = []
            continue
        current.append(char)
    if quote or depth:
        raise UnsupportedPath(xpath, "unterminated predicate")
    segments.append("".join(current).strip())
    return segments


def _translate_step(xpath: str, step: str) -> str:
    if "::" in step:
        raise UnsupportedPath(xpath, step.split("::", 1)[0] + "::")
    if step in (".", ".."):
        raise UnsupportedPath(xpath, step)
    if step.startswith("@"):
        raise UnsupportedPath(xpath, f"{step} (attribute step before the end of the path)")

    match = NAME_TEST.match(step)
    if not match:
        raise UnsupportedPath(xpath, step)
    name, rest = match.groups()
    if rest.lstrip().startswith("("):
        raise UnsupportedPath(xpath, f"{name}()")

    compound = name
    for predicate in _predicates(xpath, rest):
        if POSITION.match(predicate):
            pseudo = "nth-child" if name == "*" else "nth-of-type"
            compound += f":{pseudo}({int(predicate)})"
            continue
        for condition in _split_and(predicate):
            compound += _translate_condition(xpath, condition.strip())

    return compound


def _predicates(xpath: str, rest: str) -> List[str]:
    predicates: List[str] = []
    rest = rest.strip()
    while rest:
        if not rest.startswith("["):
            raise UnsupportedPath(xpath, rest)
        depth = 0
        quote = None
        for index, char in enumerate(rest):
            if quote:
                if char == quote:
                    quote = None
            elif char in "'\"":
                quote = char
            elif char == "[":
                depth += 1
            elif char == "]":
                depth -= 1
                if depth == 0:
                    break
        body = rest[1:index].strip()
        if not body:
            raise UnsupportedPath(xpath, "[]")
        predicates.append(body)
        rest = rest[index + 1:].strip()
    return predicates


def _translate_condition(xpath: str, condition: str) -> str:
    match = ATTR_EQUALS.match(condition)
    if match:
        name, single, double = match.groups()
        return f'[{_css_name(name)}="{_css_string(single if single is not None else double)}"]'

    match = ATTR_CONTAINS.match(condition)
    if match:
        name, single, double = match.groups()
        return f'[{_css_name(name)}*="{_css_string(single if single is not None else double)}"]'

    match = ATTR_PRESENT.match(condition)
    if match:
        return f"[{_css_name(match.group(1))}]"

    if _outside_quotes(condition, " or "):
        raise UnsupportedPath(xpath, "or")
    call = FUNCTION_CALL.search(condition)
    if call:
        raise UnsupportedPath(xpath, f"{call.group(1)}()")
    for operator in ("!=", "<", ">"):
        if _outside_quotes(condition, operator):
            raise UnsupportedPath(xpath, operator)
    raise UnsupportedPath(xpath, f"[{condition}]")


def _split_and(predicate: str) -> List[str]:
    conditions: List[str] = []
    start = 0
    for match in AND.finditer(predicate):
        if not _in_quotes(predicate[:match.start()]):
            conditions.append(predicate[start:match.start()])
            start = match.end()
    conditions.append(predicate[start:])
    return conditions


def _in_quotes(text: str) -> bool:
    quote = None
    for char in text:
        if quote:
            if char == quote:
                quote = None
        elif char in "'\"":
            quote = char
    return quote is not None


def _outside_quotes(text: str, needle: str) -> bool:
    stripped = re.sub(r"'[^']*'|\"[^\"]*\"", "''", text)
    return needle in stripped


def _css_name(name: str) -> str:
    return name.replace(":", "\\:").replace(".", "\\.")


def _css_string(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')
