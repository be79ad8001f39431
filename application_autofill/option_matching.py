"""
Pure option-matching helpers shared by the interaction engine, the handlers
and the tests. Nothing here touches the browser.
"""

import json
import re
from typing import Any, Dict, List, Optional, Sequence

INDEX_TOKEN_PATTERN = re.compile(r'^(?:#|index:|option-)?(\d+)$', re.IGNORECASE)
MULTI_VALUE_SEPARATORS = re.compile(r'[;,\n]+')
TRUTHY_TOKENS = ('true', 'yes', '1', 'on')

# Reverse containment ("target contains option text") needs a minimum option
# length, otherwise short options like "No" match almost anything.
MIN_REVERSE_MATCH_LENGTH = 3


def normalize_text(text: str) -> str:
    """Lowercase and keep only alphanumerics."""
    return re.sub(r'[^a-z0-9]', '', (text or '').lower())


def parse_option_index(token: str, option_count: int) -> Optional[int]:
    """Parse '#n', 'index:n', 'option-n' or 'n'. Out of range yields None."""
    match = INDEX_TOKEN_PATTERN.match((token or '').strip())
    if not match:
        return None
    index = int(match.group(1))
    if 0 <= index < option_count:
        return index
    return None


def is_index_token(token: str) -> bool:
    return bool(INDEX_TOKEN_PATTERN.match((token or '').strip()))


def format_index_tokens(indices: Sequence[int]) -> str:
    return ','.join(f'#{i}' for i in indices)


def split_multi_values(value: str) -> List[str]:
    """Split a multi-select value given as a JSON array or separated list."""
    value = (value or '').strip()
    if not value:
        return []
    if value.startswith('['):
        try:
            parsed = json.loads(value)
            if isinstance(parsed, list):
                return [str(item).strip() for item in parsed if str(item).strip()]
        except json.JSONDecodeError:
            pass
    return [part.strip() for part in MULTI_VALUE_SEPARATORS.split(value) if part.strip()]


def parse_index_list(value: str, option_count: int) -> List[int]:
    """Parse a comma-separated list of index tokens, dropping invalid ones."""
    indices = []
    for token in split_multi_values(value):
        index = parse_option_index(token, option_count)
        if index is not None and index not in indices:
            indices.append(index)
    return indices


def is_truthy(value: str) -> bool:
    return (value or '').strip().lower() in TRUTHY_TOKENS


def match_native_option(options: Sequence[Dict[str, Any]], target: str) -> Optional[int]:
    """
    Pick a native <option> for the target value.

    ``options`` are dicts with ``value``, ``text`` and ``disabled``. Strategies
    run in priority order over enabled options with a non-empty value; the
    first strategy that hits wins. Returns the position in ``options``.
    """
    target = target or ''
    lowered = target.lower()
    lowered_trimmed = lowered.strip()
    normalized_target = normalize_text(target)

    candidates = [
        (position, str(option.get('value') or ''), str(option.get('text') or ''))
        for position, option in enumerate(options)
        if not option.get('disabled') and str(option.get('value') or '') != ''
    ]

    strategies = (
        lambda value, text: value == target,
        lambda value, text: text == target,
        lambda value, text: text.strip().lower() == lowered_trimmed,
        lambda value, text: bool(lowered) and lowered in value.lower(),
        lambda value, text: bool(lowered) and lowered in text.lower(),
        lambda value, text: bool(text.strip()) and text.strip().lower() in lowered,
        lambda value, text: bool(normalized_target) and bool(normalize_text(text)) and (
            normalized_target in normalize_text(text) or normalize_text(text) in normalized_target),
    )
    for strategy in strategies:
        for position, value, text in candidates:
            if strategy(value, text):
                return position
    return None


def find_option_index(options: Sequence[str], target: str, index_based: bool = False) -> Optional[int]:
    """
    Choose a rendered option for the target value of a virtual dropdown.

    With ``index_based`` set an index token is final: in range it picks that
    option, out of range it matches nothing. Text matching order: exact,
    contains, starts-with, target-contains-option, then normalized
    containment either way.
    """
    if index_based and is_index_token(target):
        return parse_option_index(target, len(options))

    lowered = (target or '').strip().lower()
    if not lowered:
        return None
    normalized_target = normalize_text(lowered)
    texts = [(option or '').strip().lower() for option in options]

    strategies = (
        lambda text: text == lowered,
        lambda text: lowered in text,
        lambda text: text.startswith(lowered),
        lambda text: len(text) >= MIN_REVERSE_MATCH_LENGTH and text in lowered,
        lambda text: bool(normalized_target) and bool(normalize_text(text)) and (
            normalized_target in normalize_text(text) or normalize_text(text) in normalized_target),
    )
    for strategy in strategies:
        for index, text in enumerate(texts):
            if text and strategy(text):
                return index
    return None


def option_exists(options: Sequence[str], value: str) -> bool:
    """Check that a value is present among option texts before committing it."""
    lowered = (value or '').strip().lower()
    if not lowered:
        return False
    normalized_value = normalize_text(lowered)
    for option in options:
        text = (option or '').strip().lower()
        if not text:
            continue
        if text == lowered or lowered in text or text in lowered:
            return True
        normalized = normalize_text(text)
        if normalized and normalized_value and (normalized_value in normalized or normalized in normalized_value):
            return True
    return False


def native_option_exists(options: Sequence[Dict[str, Any]], value: str) -> bool:
    """Validation for native selects: compare against both value and text."""
    lowered = (value or '').strip().lower()
    if not lowered:
        return False
    for option in options:
        if option.get('disabled') or str(option.get('value') or '') == '':
            continue
        for candidate in (str(option.get('value') or ''), str(option.get('text') or '')):
            candidate = candidate.strip().lower()
            if candidate and (candidate == lowered or lowered in candidate or candidate in lowered):
                return True
    return False
