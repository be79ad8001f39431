"""Partition collected fields into standard, education and custom buckets."""

import re
from dataclasses import dataclass, field
from typing import List

from .models import FormField

EDUCATION_PATTERN = re.compile(r'school|degree|major|discipline|gpa|field.*study', re.IGNORECASE)
QUESTION_PATTERN = re.compile(r'questions?[_\[]', re.IGNORECASE)


@dataclass
class CategorizedFields:
    standard: List[FormField] = field(default_factory=list)
    education: List[FormField] = field(default_factory=list)
    custom: List[FormField] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.standard) + len(self.education) + len(self.custom)


def categorize_field(form_field: FormField) -> str:
    identity = f"{form_field.element_id} {form_field.name}"
    if form_field.education_block or EDUCATION_PATTERN.search(identity):
        return 'education'
    if form_field.question_block or QUESTION_PATTERN.search(form_field.element_id) \
            or QUESTION_PATTERN.search(form_field.name):
        return 'custom'
    return 'standard' if form_field.key else 'custom'


def categorize_fields(fields: List[FormField]) -> CategorizedFields:
    """Each field lands in exactly one bucket."""
    result = CategorizedFields()
    for form_field in fields:
        getattr(result, categorize_field(form_field)).append(form_field)
    return result
