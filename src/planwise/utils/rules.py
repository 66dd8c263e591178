"""
Rule tables - ordered ``(pattern, category)`` pairs and the two ways to evaluate them.
"""

import re
from typing import List, Optional, Sequence, Tuple


Rule = Tuple[re.Pattern, str]


def compile_rules(*pairs: Tuple[str, str]) -> List[Rule]:
    """Case-insensitive rules from ``(regex, category)`` pairs."""
    return [(re.compile(pattern, re.IGNORECASE), category) for pattern, category in pairs]


def first_match(rules: Sequence[Rule], text: Optional[str], default: Optional[str] = None) -> Optional[str]:
    """Category of the first matching rule, else ``default``."""
    if not text:
        return default
    for pattern, category in rules:
        if pattern.search(text):
            return category
    return default


def all_matches(rules: Sequence[Rule], text: Optional[str]) -> List[str]:
    """Every category whose rule matches, in table order, without repeats."""
    if not text:
        return []
    found: List[str] = []
    for pattern, category in rules:
        if category not in found and pattern.search(text):
            found.append(category)
    return found
