"""Shape raw rule values after the configuration's output sample."""

import re
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Set

import structlog

logger = structlog.get_logger(__name__).bind(service="extractor")

PLACEHOLDER = re.compile(r"^\{([^{}]+)\}$")


def builtin_variables(now: datetime) -> Dict[str, str]:
    """Placeholders that do not come from rules."""
    return {
        "currentYear": str(now.year),
        "currentMonth": str(now.month),
        "currentDay": str(now.day),
        "currentDate": now.strftime("%Y-%m-%d"),
    }


class OutputAssembler:
    """
    Fold per-rule values into the final data mapping.

    Without an output sample the raw mapping is returned in rule order.
    With one, the sample's keys and nesting lead: keys that name a rule
    take its value (conformed to the sample's shape), "{rule}" placeholders
    are substituted, and rule values the sample does not mention are
    appended afterwards. The sample is advisory; mismatches never fail.
    """

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def assemble(self, raw: Dict[str, Any], output_sample: Any = None) -> Dict[str, Any]:
        template = output_sample
        if isinstance(template, list):
            template = template[0] if template else None
        if not isinstance(template, dict):
            if output_sample is not None:
                logger.warning("output_sample_ignored", sample_type=type(output_sample).__name__)
            return dict(raw)

        consumed: Set[str] = set()
        variables = builtin_variables(self._clock())
        data = self._render_object(template, raw, variables, consumed)
        for name, value in raw.items():
            if name not in consumed and name not in data:
                data[name] = value
        return data

    def _render_object(self, template, raw, variables, consumed) -> Dict[str, Any]:
        result: Dict[str, Any] = {}
        for key, sample in template.items():
            if key in raw:
                consumed.add(key)
                result[key] = conform(sample, raw[key])
                continue
            rendered_key = self._render_key(key, raw, variables, consumed)
            result[rendered_key] = self._render(sample, raw, variables, consumed)
        return result

    def _render(self, sample, raw, variables, consumed) -> Any:
        if isinstance(sample, dict):
            return self._render_object(sample, raw, variables, consumed)
        if isinstance(sample, list):
            pairs = self._paired(sample, raw, consumed)
            if pairs is not None:
                return pairs
            return [self._render(item, raw, variables, consumed) for item in sample]
        if isinstance(sample, str):
            match = PLACEHOLDER.match(sample)
            if match:
                name = match.group(1)
                if name in raw:
                    consumed.add(name)
                    return raw[name]
                if name in variables:
                    return variables[name]
        return sample

    def _render_key(self, key, raw, variables, consumed) -> str:
        match = PLACEHOLDER.match(key)
        if not match:
            return key
        name = match.group(1)
        if name in variables:
            return variables[name]
        if name in raw:
            value = _first_string(raw[name])
            if value is not None:
                consumed.add(name)
                return value
        return key

    def _paired(self, sample: List[Any], raw, consumed) -> Optional[List[Dict[str, Any]]]:
        """[{"{keys}": "{values}"}] zips two rule lists into single-entry objects."""
        if len(sample) != 1 or not isinstance(sample[0], dict) or len(sample[0]) != 1:
            return None
        key, value = next(iter(sample[0].items()))
        key_match = PLACEHOLDER.match(key)
        value_match = PLACEHOLDER.match(value) if isinstance(value, str) else None
        if not key_match or not value_match:
            return None
        key_rule, value_rule = key_match.group(1), value_match.group(1)
        if key_rule not in raw or value_rule not in raw:
            return None
        consumed.update((key_rule, value_rule))
        keys = _as_list(raw[key_rule])
        values = _as_list(raw[value_rule])
        return [
            {str(k).strip(): v.strip() if isinstance(v, str) else v}
            for k, v in zip(keys, values)
        ]


def conform(sample: Any, value: Any) -> Any:
    """Bend a rule value toward the shape of its sample, where it can."""
    if isinstance(sample, list):
        items = _as_list(value)
        if sample and isinstance(sample[0], dict):
            return [conform(sample[0], item) for item in items]
        return items
    if isinstance(sample, dict) and isinstance(value, dict):
        ordered = {key: conform(sample[key], value[key]) for key in sample if key in value}
        ordered.update({key: item for key, item in value.items() if key not in ordered})
        return ordered
    return value


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    if value == "":
        return []
    return [value]


def _first_string(value: Any) -> Optional[str]:
    if isinstance(value, list):
        value = value[0] if value else None
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None
