"""
AI question router: turns unresolved fields into one batched request and maps
the answers back to their fields by question id.
"""

import logging
from typing import Dict, List, Sequence

from .models import AIAnswer, AIQuestion, FieldType, FormField, QuestionBatch
from .session import FillSession

logger = logging.getLogger(__name__)

QUESTION_TYPES = {
    FieldType.TEXT: 'text',
    FieldType.TEXTAREA: 'textarea',
    FieldType.NATIVE_SELECT: 'select',
    FieldType.VIRTUAL_SELECT: 'select',
    FieldType.RADIO: 'select',
    FieldType.MULTI_VIRTUAL_SELECT: 'multi_select',
    FieldType.CHECKBOX: 'checkbox',
}


def build_questions(fields: Sequence[FormField]) -> QuestionBatch:
    """
    Build one AIQuestion per field. The id is the element id or name, or
    ``question_<n>`` for anonymous controls; repeated ids get a suffix so
    every question id is unique within the batch.
    """
    batch = QuestionBatch()
    for position, field in enumerate(fields):
        question_id = field.identity or f'question_{position}'
        if question_id in batch.fields:
            question_id = f'{question_id}_{position}'
        batch.fields[question_id] = field
        batch.questions.append(AIQuestion(
            id=question_id,
            type=QUESTION_TYPES.get(field.field_type, 'text'),
            label=field.label,
            required=field.required,
            options=list(field.options) if field.options else None,
        ))
    return batch


def map_answers(batch: QuestionBatch, answers: Sequence[AIAnswer]) -> Dict[str, AIAnswer]:
    """Keep the first answer for each known question id."""
    mapped: Dict[str, AIAnswer] = {}
    for answer in answers:
        if answer.id not in batch.fields:
            logger.debug(f"Ignoring answer for unknown question id '{answer.id}'")
            continue
        mapped.setdefault(answer.id, answer)
    return mapped


class QuestionRouter:
    def __init__(self, session: FillSession):
        self.logger = logger
        self.session = session

    async def resolve(self, batch: QuestionBatch) -> Dict[str, AIAnswer]:
        """Fetch answers for the batch from overrides or the provider."""
        if not batch.questions:
            return {}

        answers: List[AIAnswer] = []
        overrides = self.session.take_overrides()
        if overrides is not None:
            self.logger.info(f"Replaying {len(overrides)} pre-supplied answers")
            answers = list(overrides)
        elif self.session.answer_provider is not None:
            try:
                result = await self.session.answer_provider.answer(batch.questions, self.session.profile)
                answers = result.answers
            except Exception as e:
                self.logger.warning(f"Answer provider failed, continuing without answers: {e}")
        else:
            self.logger.info("No AI credentials or answers supplied; questions stay unanswered")

        return map_answers(batch, answers)
