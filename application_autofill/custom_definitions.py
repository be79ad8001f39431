"""
Preset answers for recurring compliance and demographic questions.

Definitions are consulted before a field is escalated to the AI answering
service. Each one supplies a literal value, a single option index or a list
of option indices.
"""

import re
from dataclasses import dataclass
from typing import Iterable, Optional, Pattern, Sequence, Tuple

from .models import FieldType
from .option_matching import format_index_tokens


@dataclass(frozen=True)
class CustomFieldDefinition:
    patterns: Tuple[Pattern, ...]
    field_type: FieldType
    value: Optional[str] = None
    index: Optional[int] = None
    indices: Optional[Tuple[int, ...]] = None

    def matches(self, label: str) -> bool:
        text = (label or '').strip().lower()
        return any(pattern.search(text) for pattern in self.patterns)


def _p(*patterns: str) -> Tuple[Pattern, ...]:
    return tuple(re.compile(p, re.IGNORECASE) for p in patterns)


DEFAULT_DEFINITIONS: Tuple[CustomFieldDefinition, ...] = (
    # Work authorization
    CustomFieldDefinition(
        _p(r'legally authorized to work', r'work authorization', r'authorized to work.*country',
           r'legal.*work.*country', r'authorized.*work.*employment'),
        FieldType.VIRTUAL_SELECT, index=0),
    CustomFieldDefinition(
        _p(r'veteran.*status', r'military.*service', r'protected.*veteran'),
        FieldType.VIRTUAL_SELECT, index=0),
    CustomFieldDefinition(
        _p(r'disability.*status', r'disabled', r'physical.*mental.*disability'),
        FieldType.VIRTUAL_SELECT, index=1),
    CustomFieldDefinition(
        _p(r'^gender$', r'gender identity', r'gender.*select'),
        FieldType.VIRTUAL_SELECT, index=0),
    CustomFieldDefinition(
        _p(r'hispanic.*latino', r'are you hispanic', r'hispanic/latino', r'latino.*latina'),
        FieldType.VIRTUAL_SELECT, index=1),
    # Data processing consent
    CustomFieldDefinition(
        _p(r'agree.*process.*data', r'processes? my data', r'privacy.*policy',
           r'data.*processing', r'consent.*data'),
        FieldType.VIRTUAL_SELECT, value='Yes'),
    CustomFieldDefinition(
        _p(r'retain.*data', r'allow.*retain', r'agree.*retain', r'keep.*data'),
        FieldType.CHECKBOX, value='true'),
    CustomFieldDefinition(
        _p(r'terms of use', r'acknowledge.*terms', r'understand.*terms', r'destination pet'),
        FieldType.CHECKBOX, value='true'),
    CustomFieldDefinition(
        _p(r'where did you.*hear', r'where did you.*see', r'how did you.*hear',
           r'source of.*vacancy', r'source of.*job'),
        FieldType.VIRTUAL_SELECT, value='LinkedIn'),
    # Workday phone and name parts
    CustomFieldDefinition(_p(r'phone device type', r'phone.*type'), FieldType.NATIVE_SELECT, value='Mobile'),
    CustomFieldDefinition(_p(r'^prefix$', r'name.*prefix'), FieldType.NATIVE_SELECT, index=2),
    CustomFieldDefinition(_p(r'^suffix$', r'name.*suffix'), FieldType.NATIVE_SELECT, index=0),
)

# Native and single virtual selects answer the same kind of question
_SINGLE_SELECT_FAMILY = (FieldType.NATIVE_SELECT, FieldType.VIRTUAL_SELECT, FieldType.RADIO)


def _type_family(field_type: FieldType) -> str:
    if field_type in _SINGLE_SELECT_FAMILY:
        return 'single-select'
    return field_type.value


def find_custom_definition(label: str, field_type: FieldType,
                           definitions: Iterable[CustomFieldDefinition] = DEFAULT_DEFINITIONS
                           ) -> Optional[CustomFieldDefinition]:
    """Return the first definition whose type family and label pattern match."""
    family = _type_family(field_type)
    for definition in definitions:
        if _type_family(definition.field_type) != family:
            continue
        if definition.matches(label):
            return definition
    return None


def definition_value(definition: CustomFieldDefinition, field_type: FieldType,
                     options: Optional[Sequence[str]] = None) -> Tuple[Optional[str], bool]:
    """
    Resolve the value a definition supplies for a field.

    Returns ``(value, index_based)``. Index lists are filtered to the option
    range when options are known, and negative indices count from the end.
    """
    if field_type in (FieldType.TEXT, FieldType.TEXTAREA):
        return definition.value, False

    if definition.indices:
        count = len(options) if options is not None else None
        resolved = []
        for index in definition.indices:
            if index < 0 and count is not None:
                index += count
            if index < 0 or (count is not None and index >= count):
                continue
            resolved.append(index)
        if not resolved:
            return None, False
        return format_index_tokens(resolved), True

    if definition.index is not None:
        if options is not None and not 0 <= definition.index < len(options):
            return None, False
        return format_index_tokens([definition.index]), True

    return definition.value, False
