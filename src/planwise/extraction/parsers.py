"""
Amount / Timeframe Parser - regex scanners for money, durations and pay frequency
"""

from __future__ import annotations

import re
from typing import List, Optional, Tuple

from planwise.models import Frequency, Timeframe, TimeUnit


_NUMBER = r"(\d+(?:,\d{3})*(?:\.\d+)?)"
_LEGACY_NUMBER = r"(\d+(?:,\d{3})*(?:\.\d{2})?)"

# (regex, multiplier). Applied in this order; a £ amount may carry its own
# k/thousand/million suffix, captured in group 2.
_AMOUNT_PATTERNS: List[Tuple[re.Pattern, float]] = [
    (re.compile(r"£\s*" + _NUMBER + r"(?:\s*(k|thousand|million)\b)?", re.IGNORECASE), 1),
    (re.compile(_NUMBER + r"\s*(?:pounds|quid)\b", re.IGNORECASE), 1),
    (re.compile(r"(\d+(?:\.\d+)?)k\b", re.IGNORECASE), 1000),
    (re.compile(r"(\d+(?:\.\d+)?)\s*thousand\b", re.IGNORECASE), 1000),
    (re.compile(r"(\d+(?:\.\d+)?)\s*million\b", re.IGNORECASE), 1_000_000),
]

_LEGACY_AMOUNT_PATTERNS: List[re.Pattern] = [
    re.compile(r"£\s*" + _LEGACY_NUMBER),
    re.compile(_LEGACY_NUMBER + r"\s*(?:pounds|quid)"),
    re.compile(r"(\d+)k"),
    re.compile(r"(\d+)\s*thousand"),
    re.compile(r"(\d+)\s*million"),
]

_SUFFIX_MULTIPLIERS = {"k": 1000, "thousand": 1000, "million": 1_000_000}

# "40 years old" is an age, not a duration
_NOT_AN_AGE = r"(?![\s-]*old\b)"

_TIMEFRAME_PATTERNS: List[Tuple[re.Pattern, str]] = [
    (re.compile(r"(\d+)\s*years?\b" + _NOT_AN_AGE, re.IGNORECASE), "years"),
    (re.compile(r"(\d+)\s*months?\b" + _NOT_AN_AGE, re.IGNORECASE), "months"),
    (re.compile(r"(\d+)\s*weeks?\b" + _NOT_AN_AGE, re.IGNORECASE), "weeks"),
]

_AGE_PATTERNS: List[re.Pattern] = [
    re.compile(r"\bretire(?:ment)?\s*(?:at|by)\s*(?:(?:the\s*)?age\s*(?:of\s*)?)?(\d{2,3})\b", re.IGNORECASE),
    re.compile(r"\b(?:at|by)\s*(?:the\s*)?age\s*(?:of\s*)?(\d{2,3})\b", re.IGNORECASE),
    re.compile(r"\bwhen\s*i'?m\s*(\d{2,3})\b", re.IGNORECASE),
]

# (kind, regex), tried in order; the first hit is the conversation's timeline
_TIMELINE_PATTERNS: List[Tuple[str, re.Pattern]] = [
    ("duration", re.compile(r"\b(?:in|within)\s*(\d+)\s*(years?|months?|weeks?)\b" + _NOT_AN_AGE, re.IGNORECASE)),
    ("calendar_year", re.compile(r"\b(?:by|before)\s*((?:19|20)\d{2})\b", re.IGNORECASE)),
    ("age", re.compile(r"\b(?:age|when\s*i'?m)\s*(\d{2,3})\b", re.IGNORECASE)),
    ("duration", re.compile(r"\b(\d+)\s*(years?)\s*(?:time|away)\b", re.IGNORECASE)),
]

# Clause breaks inside one message; a comma between digits is a thousands separator
_CLAUSE_BREAK = re.compile(r"\s*(?:,(?!\d)|;|&|\band\b|\bplus\b)\s*", re.IGNORECASE)

_FREQUENCY_PATTERNS: List[Tuple[Frequency, re.Pattern]] = [
    ("weekly", re.compile(r"\b(?:per|a|each|every)\s*week\b|\bweekly\b|/\s*w(?:ee)?k\b|\bpw\b", re.IGNORECASE)),
    ("monthly", re.compile(r"\b(?:per|a|each|every)\s*month\b|\bmonthly\b|/\s*mo(?:nth)?\b|\bpcm\b", re.IGNORECASE)),
    ("quarterly", re.compile(r"\b(?:per|a|each|every)\s*quarter\b|\bquarterly\b", re.IGNORECASE)),
    ("yearly", re.compile(
        r"\b(?:per|a|each|every)\s*(?:year|annum)\b|\bannually\b|\byearly\b|\bannual\b|\bp\.?a\.?\b|/\s*y(?:ea)?r\b",
        re.IGNORECASE,
    )),
]


def _to_float(raw: str) -> float:
    return float(raw.replace(",", ""))


def _dedupe(values: List[float]) -> List[float]:
    seen = set()
    unique = []
    for value in values:
        if value not in seen:
            seen.add(value)
            unique.append(value)
    return unique


def parse_amounts(text: Optional[str], legacy_k_scaling: bool = False) -> List[float]:
    """
    Pull every GBP amount out of a message.

    Patterns run in a fixed order (£N, N pounds/quid, Nk, N thousand,
    N million) and their matches are collected into one ordered list without
    duplicates. A multiplier only applies to the token it is attached to;
    text already consumed by an earlier pattern is not matched again.

    Args:
        text: Message text
        legacy_k_scaling: Reproduce the old behaviour where any "k" (or
            "thousand"/"million") in the message scales every amount

    Returns:
        List of positive amounts in pounds
    """
    if not text or not isinstance(text, str):
        return []

    if legacy_k_scaling:
        return _parse_amounts_legacy(text)

    amounts: List[float] = []
    taken: List[Tuple[int, int]] = []

    for pattern, multiplier in _AMOUNT_PATTERNS:
        for match in pattern.finditer(text):
            start, end = match.span()
            if any(start < t_end and end > t_start for t_start, t_end in taken):
                continue
            taken.append((start, end))

            amount = _to_float(match.group(1)) * multiplier
            suffix = match.group(2) if pattern.groups > 1 else None
            if suffix:
                amount *= _SUFFIX_MULTIPLIERS[suffix.lower()]
            if amount > 0:
                amounts.append(amount)

    return _dedupe(amounts)


def _parse_amounts_legacy(text: str) -> List[float]:
    amounts: List[float] = []
    for index, pattern in enumerate(_LEGACY_AMOUNT_PATTERNS):
        for match in pattern.finditer(text):
            amount = _to_float(match.group(1))
            if index == 2 or "k" in text:
                amount *= 1000
            elif index == 3 or "thousand" in text:
                amount *= 1000
            elif index == 4 or "million" in text:
                amount *= 1_000_000
            if amount > 0:
                amounts.append(amount)
    return _dedupe(amounts)


def parse_timeframes(text: Optional[str]) -> List[Timeframe]:
    """Durations like "5 years", "18 months", "6 weeks", in pattern order."""
    if not text or not isinstance(text, str):
        return []

    timeframes = []
    for pattern, unit in _TIMEFRAME_PATTERNS:
        for match in pattern.finditer(text):
            value = int(match.group(1))
            if value > 0:
                timeframes.append(Timeframe(value=value, unit=unit))
    return timeframes


def parse_target_age(text: Optional[str]) -> Optional[int]:
    """Age from phrases like "retire at 65" or "by age 60"."""
    if not text or not isinstance(text, str):
        return None

    for pattern in _AGE_PATTERNS:
        match = pattern.search(text)
        if match:
            return int(match.group(1))
    return None


def parse_timeline(text: Optional[str], as_of_year: int) -> Optional[Tuple[int, TimeUnit, str]]:
    """
    The deadline a message sets for a goal, as ``(value, unit, phrase)``.

    Recognises "in 5 years", "within 18 months", "by 2030" (counted in years
    from ``as_of_year``), "at age 60" / "when I'm 60" and "10 years away".
    Calendar years that are not in the future are ignored.
    """
    if not text or not isinstance(text, str):
        return None

    for kind, pattern in _TIMELINE_PATTERNS:
        for match in pattern.finditer(text):
            value = int(match.group(1))
            if kind == "calendar_year":
                if value <= as_of_year:
                    continue
                return value - as_of_year, "years", match.group(0)
            if kind == "age":
                return value, "age", match.group(0)
            if value > 0:
                unit = match.group(2).lower()
                if not unit.endswith("s"):
                    unit += "s"
                return value, unit, match.group(0)
    return None


def calculate_urgency(value: float, unit: TimeUnit, current_age: int = 35) -> str:
    """urgent (6 months or less), high (2 years), medium (5 years) or low."""
    if unit == "years":
        months = value * 12
    elif unit == "weeks":
        months = value / 4
    elif unit == "age":
        months = max(0, value - current_age) * 12
    else:
        months = value

    if months <= 6:
        return "urgent"
    if months <= 24:
        return "high"
    if months <= 60:
        return "medium"
    return "low"


def split_clauses(text: Optional[str]) -> List[str]:
    """Break a message on commas, semicolons, "and", "plus" and "&"."""
    if not text or not isinstance(text, str):
        return []
    return [clause for clause in _CLAUSE_BREAK.split(text.strip()) if clause]


def detect_frequency(text: Optional[str], default: Frequency) -> Frequency:
    """Pay/spend frequency mentioned in the text, else ``default``."""
    if not text or not isinstance(text, str):
        return default

    for frequency, pattern in _FREQUENCY_PATTERNS:
        if pattern.search(text):
            return frequency
    return default
