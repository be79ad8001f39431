"""
Records passed between the collector, handlers, router and bridge.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class FieldType(str, Enum):
    TEXT = 'text'
    TEXTAREA = 'textarea'
    NATIVE_SELECT = 'native-select'
    VIRTUAL_SELECT = 'single-virtual-select'
    MULTI_VIRTUAL_SELECT = 'multi-virtual-select'
    CHECKBOX = 'checkbox'
    RADIO = 'radio'

    @property
    def is_select_like(self) -> bool:
        return self in SELECT_LIKE_TYPES

    @property
    def is_virtual(self) -> bool:
        return self in (FieldType.VIRTUAL_SELECT, FieldType.MULTI_VIRTUAL_SELECT)


SELECT_LIKE_TYPES = (
    FieldType.NATIVE_SELECT,
    FieldType.VIRTUAL_SELECT,
    FieldType.MULTI_VIRTUAL_SELECT,
    FieldType.RADIO,
)


@dataclass(frozen=True)
class FormField:
    """One collected form control (or merged checkbox/radio group)."""
    element: Any
    label: str
    field_type: FieldType
    key: Optional[str] = None
    required: bool = False
    options: Optional[Tuple[str, ...]] = None
    element_id: str = ''
    name: str = ''
    education_block: bool = False
    question_block: bool = False

    @property
    def identity(self) -> str:
        return self.element_id or self.name

    @property
    def accepts_options(self) -> bool:
        return self.field_type.is_select_like or self.field_type == FieldType.CHECKBOX


@dataclass
class FillResult:
    filled_count: int = 0
    total_fields: int = 0
    unmatched_count: int = 0
    ai_questions_handled: int = 0

    def __add__(self, other: 'FillResult') -> 'FillResult':
        return FillResult(
            filled_count=self.filled_count + other.filled_count,
            total_fields=self.total_fields + other.total_fields,
            unmatched_count=self.unmatched_count + other.unmatched_count,
            ai_questions_handled=self.ai_questions_handled + other.ai_questions_handled,
        )

    def to_dict(self) -> Dict[str, int]:
        return {
            'filledCount': self.filled_count,
            'totalFields': self.total_fields,
            'unmatchedCount': self.unmatched_count,
            'aiQuestionsHandled': self.ai_questions_handled,
        }


class _PayloadModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra='ignore')


class AIQuestion(_PayloadModel):
    id: str
    type: str
    label: str
    required: bool = False
    options: Optional[List[str]] = None


class AIAnswer(_PayloadModel):
    id: str = Field(validation_alias=AliasChoices('id', 'questionId', 'question_id'))
    answer: str = ''
    selected_index: Optional[int] = Field(
        default=None, validation_alias=AliasChoices('selectedIndex', 'selected_index'))
    selected_indices: Optional[List[int]] = Field(
        default=None, validation_alias=AliasChoices('selectedIndices', 'selected_indices'))

    def to_token(self) -> Tuple[str, bool]:
        """Return the value to replay and whether it is an index token."""
        if self.selected_indices:
            return ','.join(f'#{i}' for i in self.selected_indices), True
        if self.selected_index is not None:
            return f'#{self.selected_index}', True
        return self.answer, False


class AnswerBatch(_PayloadModel):
    answers: List[AIAnswer] = Field(default_factory=list)
    prompt: Optional[str] = None
    raw_response: Optional[str] = None


class AutofillOptions(_PayloadModel):
    site_profile: str = Field(
        default='auto', validation_alias=AliasChoices('site_profile', 'siteProfile', 'engineMode'))
    openai_api_key: Optional[str] = Field(
        default=None, validation_alias=AliasChoices('openai_api_key', 'openaiApiKey'))
    openai_base_url: Optional[str] = Field(
        default=None, validation_alias=AliasChoices('openai_base_url', 'openaiBaseUrl'))
    ai_model: Optional[str] = Field(
        default=None, validation_alias=AliasChoices('ai_model', 'aiModel'))
    ai_answer_overrides: Optional[List[AIAnswer]] = Field(
        default=None, validation_alias=AliasChoices('ai_answer_overrides', 'aiAnswerOverrides'))
    collect_questions: bool = Field(
        default=False, validation_alias=AliasChoices('collect_questions', 'collectQuestions'))


@dataclass(frozen=True)
class PassSucceeded:
    result: FillResult

    def to_dict(self) -> Dict[str, Any]:
        return {
            'success': True,
            'filled': self.result.filled_count,
            'total': self.result.total_fields,
            'unmatched': self.result.unmatched_count,
            'aiQuestionsHandled': self.result.ai_questions_handled,
        }


@dataclass(frozen=True)
class PassRedirected:
    url: str

    def to_dict(self) -> Dict[str, Any]:
        return {'redirect': self.url}


@dataclass(frozen=True)
class PassFailed:
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        return {'error': self.reason}


PassOutcome = Union[PassSucceeded, PassRedirected, PassFailed]


@dataclass
class QuestionBatch:
    """Questions built for one escalation round-trip, keyed by question id."""
    questions: List[AIQuestion] = field(default_factory=list)
    fields: Dict[str, FormField] = field(default_factory=dict)
