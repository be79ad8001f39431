"""
Fill handlers for the three field buckets.

Standard and education handlers only commit values they can validate;
select-like fields whose value is missing or absent from the options are
handed back as rerouted so the custom handler (and the AI router) can try.
"""

import asyncio
import logging
import re
from typing import List, Optional, Sequence, Tuple

from .custom_definitions import definition_value, find_custom_definition
from .field_matchers import COUNTRY_KEY, PHONE_COUNTRY_KEY, registry_by_key
from .models import AIQuestion, FieldType, FillResult, FormField
from .option_matching import find_option_index, format_index_tokens, option_exists
from .phone_utils import find_country_option_index, get_country_info
from .question_router import QuestionRouter, build_questions
from .session import FillSession

logger = logging.getLogger(__name__)

FILL = 'fill'
UNMATCHED = 'unmatched'
REROUTE = 'reroute'

# (decision, value, index_based)
Plan = Tuple[str, Optional[str], bool]
# (field, value, index_based)
ResolvedField = Tuple[FormField, str, bool]


class _Handler:
    def __init__(self, session: FillSession):
        self.logger = logger
        self.session = session
        self.filler = session.filler
        self.matchers = registry_by_key(session.site.matchers)

    async def _smart_wait(self, milliseconds: int):
        await asyncio.sleep(milliseconds / 1000)

    async def _option_texts(self, field: FormField) -> List[str]:
        if field.field_type == FieldType.NATIVE_SELECT:
            options = await self.session.simulator.read_select_options(field.element)
            return [o['text'] for o in options if not o['disabled'] and o['value'] != '']
        return list(field.options or ())

    async def _plan_value(self, field: FormField, value: Optional[str]) -> Plan:
        """Validate select-like values before anything is committed."""
        if not value:
            return (REROUTE if field.field_type.is_select_like else UNMATCHED), None, False
        if field.field_type.is_select_like and not await self.filler.validate(field, value):
            self.logger.debug(f"'{value}' not among options of '{field.label}', rerouting")
            return REROUTE, None, False
        return FILL, value, False

    async def plan(self, field: FormField) -> Plan:
        raise NotImplementedError

    async def rerouted(self, fields: Sequence[FormField]) -> List[FormField]:
        """Fields this handler would hand to the custom path, without filling."""
        rerouted = []
        for field in fields:
            try:
                if (await self.plan(field))[0] == REROUTE:
                    rerouted.append(field)
            except Exception as e:
                self.logger.debug(f"Could not plan '{field.label}': {e}")
        return rerouted

    async def fill(self, fields: Sequence[FormField]) -> Tuple[FillResult, List[FormField]]:
        result = FillResult()
        rerouted: List[FormField] = []
        for field in fields:
            try:
                decision, value, index_based = await self.plan(field)
                if decision == REROUTE:
                    rerouted.append(field)
                    continue
                filled = decision == FILL and await self.filler.fill(field, value, index_based)
            except Exception as e:
                self.logger.warning(f"Error filling '{field.label}': {e}")
                filled = False

            result.total_fields += 1
            if filled:
                result.filled_count += 1
                self.logger.debug(f"✅ Filled: {field.label}")
            else:
                result.unmatched_count += 1
                self.logger.debug(f"❌ Unmatched: {field.label}")
            await self._smart_wait(self.session.simulator.delays['between_fields'])

        self.logger.info(f"{self.__class__.__name__}: {result.filled_count}/{result.total_fields} filled, "
                         f"{len(rerouted)} rerouted")
        return result, rerouted


class StandardFieldsHandler(_Handler):
    def __init__(self, session: FillSession, fields: Sequence[FormField] = ()):
        super().__init__(session)
        self.has_phone_country = any(field.key == PHONE_COUNTRY_KEY for field in fields)

    async def plan(self, field: FormField) -> Plan:
        matcher = self.matchers.get(field.key)
        if matcher is None:
            return REROUTE, None, False
        if field.key == PHONE_COUNTRY_KEY:
            return await self._plan_phone_country(field)

        value = matcher.value_for(self.session.profile)
        if field.key == 'phone' and value and not self.has_phone_country:
            # No separate dial-code control, so the number carries its code
            code = self.session.profile.personal_info.phone.country_code
            if code and not value.startswith('+'):
                value = f"{code} {value}"
        return await self._plan_value(field, value)

    async def _plan_phone_country(self, field: FormField) -> Plan:
        info = get_country_info(self.session.profile.personal_info.phone.country_code)
        if not info:
            return (REROUTE if field.field_type.is_select_like else UNMATCHED), None, False
        if not field.field_type.is_select_like:
            return FILL, info['code'], False

        index = find_country_option_index(await self._option_texts(field), info['code'])
        if index < 0:
            return REROUTE, None, False
        return FILL, format_index_tokens([index]), True


EDUCATION_VALUE_PATTERNS = (
    (re.compile(r'school|university|college|institution', re.IGNORECASE), 'school'),
    (re.compile(r'degree', re.IGNORECASE), 'degree'),
    (re.compile(r'major|field|discipline', re.IGNORECASE), 'major'),
    (re.compile(r'gpa|grade[_\s-]?point', re.IGNORECASE), 'gpa'),
    (re.compile(r'start', re.IGNORECASE), 'start_date'),
    (re.compile(r'end[_\s-]?date|graduat', re.IGNORECASE), 'end_date'),
)


class EducationFieldsHandler(_Handler):
    def education_value(self, field: FormField) -> Optional[str]:
        education = self.session.profile.first_education
        if education is None:
            return None
        text = f"{field.label} {field.element_id} {field.name}"
        for pattern, attr in EDUCATION_VALUE_PATTERNS:
            if pattern.search(text):
                return getattr(education, attr) or None
        return None

    async def plan(self, field: FormField) -> Plan:
        return await self._plan_value(field, self.education_value(field))


class CustomQuestionsHandler(_Handler):
    def __init__(self, session: FillSession):
        super().__init__(session)
        self.router = QuestionRouter(session)

    async def classify(self, fields: Sequence[FormField]) -> Tuple[List[ResolvedField], List[FormField]]:
        """
        Resolve fields locally where possible: matcher value that validates,
        then a preset definition. Everything else is escalated.
        """
        resolved: List[ResolvedField] = []
        escalate: List[FormField] = []
        for field in fields:
            local = await self._resolve_locally(field)
            if local:
                resolved.append(local)
            else:
                escalate.append(field)
        return resolved, escalate

    async def _resolve_locally(self, field: FormField) -> Optional[ResolvedField]:
        matcher = self.matchers.get(field.key) if field.key else None
        value = matcher.value_for(self.session.profile) if matcher else None
        if value:
            if field.field_type.is_select_like:
                options = await self._option_texts(field)
                index = self._keyed_option_index(field, options, value)
                if index is not None:
                    return field, format_index_tokens([index]), True
            else:
                return field, value, False

        definition = find_custom_definition(field.label, field.field_type, self.session.site.custom_definitions)
        if definition:
            options = field.options if field.accepts_options else None
            preset, index_based = definition_value(definition, field.field_type, options)
            if preset:
                self.logger.debug(f"Preset answer for '{field.label}': {preset}")
                return field, preset, index_based
        return None

    @staticmethod
    def _keyed_option_index(field: FormField, options: Sequence[str], value: str) -> Optional[int]:
        if field.key == PHONE_COUNTRY_KEY:
            index = find_country_option_index(options, value)
            return index if index >= 0 else None
        if field.key == COUNTRY_KEY or option_exists(options, value):
            return find_option_index(options, value)
        return None

    async def fill(self, fields: Sequence[FormField]) -> FillResult:
        result = FillResult(total_fields=len(fields))
        if not fields:
            return result

        resolved, escalate = await self.classify(fields)
        self.logger.info(f"Custom questions: {len(resolved)} resolved locally, {len(escalate)} escalated")

        for field, value, index_based in resolved:
            try:
                filled = await self.filler.fill(field, value, index_based)
            except Exception as e:
                self.logger.warning(f"Error filling '{field.label}': {e}")
                filled = False
            if filled:
                result.filled_count += 1
            else:
                result.unmatched_count += 1

        batch = build_questions(escalate)
        answers = await self.router.resolve(batch)
        for question_id, field in batch.fields.items():
            answer = answers.get(question_id)
            if answer is None:
                result.unmatched_count += 1
                continue
            value, index_based = answer.to_token()
            filled = False
            if value:
                try:
                    filled = await self.filler.fill(field, value, index_based)
                except Exception as e:
                    self.logger.warning(f"Error applying answer to '{field.label}': {e}")
            if filled:
                result.filled_count += 1
                result.ai_questions_handled += 1
            else:
                result.unmatched_count += 1

        self.logger.info(f"Custom questions: {result.filled_count}/{result.total_fields} filled, "
                         f"{result.ai_questions_handled} via AI")
        return result

    async def collect_questions(self, fields: Sequence[FormField]) -> List[AIQuestion]:
        """Questions that would be escalated, without filling anything."""
        _, escalate = await self.classify(fields)
        return build_questions(escalate).questions
