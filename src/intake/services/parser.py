"""Extract calories and macros from free-form model replies."""

import json
import logging
import re
from collections.abc import Callable

from pydantic import ValidationError

from intake.domain.nutrition import NutritionEstimate, StructuredNutrition

# Upper bound for bare numbers; larger values are usually years or noise.
MAX_PLAIN_CALORIES = 5000
# Longer digit runs are treated as noise rather than converted.
_MAX_DIGITS = 9

_STRUCTURED_KEYS = ("calories", "carbs", "protein", "fat")
_FENCED_JSON = re.compile(r"```(?:json)?\s*([\s\S]*?)```", re.IGNORECASE)
_CALORIE_UNIT = re.compile(r"(\d+)\s*(?:calories|kcal)", re.IGNORECASE)
_STANDALONE_NUMBER = re.compile(r"\b(\d+)\b")
_ANY_DIGITS = re.compile(r"(\d+)")

_logger = logging.getLogger(__name__)

ParseRule = Callable[[str], NutritionEstimate | None]


def parse_nutrition(text: str, *, legacy: bool = False) -> NutritionEstimate | None:
    """Run the extraction rules in order and return the first hit.

    ``legacy`` enables the last-resort digit scan used when the model was
    only asked for a calorie number.
    """
    rules: list[ParseRule] = [
        _from_structured_record,
        _from_calorie_unit,
        _from_standalone_number,
    ]
    if legacy:
        rules.append(_from_any_digits)
    for rule in rules:
        result = rule(text)
        if result is not None:
            return result
    _logger.warning("Could not parse a calorie number from response: %r", text)
    return None


def _from_structured_record(text: str) -> NutritionEstimate | None:
    for candidate in _json_candidates(text):
        try:
            data = json.loads(candidate)
        except ValueError:
            continue
        if not isinstance(data, dict):
            continue
        if not all(key in data for key in _STRUCTURED_KEYS):
            continue
        try:
            record = StructuredNutrition.model_validate(data)
        except ValidationError:
            continue
        return record.to_estimate()
    return None


def _json_candidates(text: str) -> list[str]:
    stripped = text.strip()
    candidates = [stripped]
    fenced = _FENCED_JSON.search(stripped)
    if fenced:
        candidates.append(fenced.group(1).strip())
    start = stripped.find("{")
    end = stripped.rfind("}")
    if start != -1 and end > start:
        candidates.append(stripped[start : end + 1])
    return candidates


def _from_calorie_unit(text: str) -> NutritionEstimate | None:
    match = _CALORIE_UNIT.search(text)
    if match is None:
        return None
    value = _to_int(match.group(1))
    if value is None:
        return None
    return NutritionEstimate(calories=value)


def _from_standalone_number(text: str) -> NutritionEstimate | None:
    return _first_in_range(_STANDALONE_NUMBER, text)


def _from_any_digits(text: str) -> NutritionEstimate | None:
    return _first_in_range(_ANY_DIGITS, text)


def _first_in_range(pattern: re.Pattern[str], text: str) -> NutritionEstimate | None:
    match = pattern.search(text)
    if match is None:
        return None
    value = _to_int(match.group(1))
    if value is not None and 0 < value < MAX_PLAIN_CALORIES:
        return NutritionEstimate(calories=value)
    return None


def _to_int(digits: str) -> int | None:
    if len(digits) > _MAX_DIGITS:
        return None
    return int(digits)
