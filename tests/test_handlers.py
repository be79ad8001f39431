"""
Tests for the standard, education and custom handlers.

Fills go through a RecordingFiller so the tests see exactly which value and
index mode each field received.
"""

import asyncio
import re
from unittest.mock import AsyncMock, MagicMock

import pytest

from application_autofill.custom_definitions import CustomFieldDefinition
from application_autofill.handlers import (
    CustomQuestionsHandler,
    EducationFieldsHandler,
    StandardFieldsHandler,
)
from application_autofill.models import AIAnswer, AnswerBatch, FieldType
from application_autofill.site_profiles import GREENHOUSE, with_overrides

from conftest import RecordingFiller, make_field, make_session


# ============ Fixtures ============

@pytest.fixture
def filler():
    return RecordingFiller()


@pytest.fixture
def relocate():
    return make_field('Are you willing to relocate?', FieldType.VIRTUAL_SELECT, options=['Yes', 'No'],
                      element_id='relocate', required=True)


@pytest.fixture
def race():
    return make_field('Race', FieldType.MULTI_VIRTUAL_SELECT,
                      options=['Asian', 'Black or African American', 'White'], element_id='race')


@pytest.fixture
def race_site():
    definition = CustomFieldDefinition((re.compile(r'\brace\b', re.IGNORECASE),),
                                       FieldType.MULTI_VIRTUAL_SELECT, indices=(0, 2))
    return with_overrides(GREENHOUSE, custom_definitions=(definition,))


def run(coro):
    return asyncio.run(coro)


# ============ Standard Handler Tests ============

class TestStandardFieldsHandler:
    """Tests for matcher-driven fields."""

    def test_first_name(self, profile, filler):
        """A keyed text field gets the profile value."""
        field = make_field('First Name', key='firstName', element_id='first_name')
        handler = StandardFieldsHandler(make_session(profile, filler=filler), [field])

        result, rerouted = run(handler.fill([field]))

        assert filler.calls == [('First Name', 'Ada', False)]
        assert (result.filled_count, result.total_fields, result.unmatched_count) == (1, 1, 0)
        assert rerouted == []

    def test_phone_carries_code_without_country_control(self, profile, filler):
        """Without a dial-code control the number gets its country code."""
        phone = make_field('Phone', key='phone', element_id='phone')
        handler = StandardFieldsHandler(make_session(profile, filler=filler), [phone])

        run(handler.fill([phone]))

        assert filler.calls == [('Phone', '+44 7700900123', False)]

    def test_phone_country_index(self, profile, filler):
        """A dial-code dropdown gets the index of the profile's country."""
        country = make_field('Country', FieldType.VIRTUAL_SELECT, key='phoneCountry',
                             options=['Germany +49', 'United Kingdom +44'], element_id='country')
        phone = make_field('Phone', key='phone', element_id='phone')
        handler = StandardFieldsHandler(make_session(profile, filler=filler), [country, phone])

        result, _ = run(handler.fill([country, phone]))

        assert filler.calls == [('Country', '#1', True), ('Phone', '7700900123', False)]
        assert result.filled_count == 2

    def test_missing_text_value_is_unmatched(self, profile, filler):
        """A text field with no profile value is counted as unmatched."""
        field = make_field('Postal Code', key='postalCode', element_id='zip')
        handler = StandardFieldsHandler(make_session(profile, filler=filler), [field])

        result, rerouted = run(handler.fill([field]))

        assert filler.calls == []
        assert (result.total_fields, result.unmatched_count) == (1, 1)
        assert rerouted == []

    def test_failed_fill_is_unmatched(self, profile):
        """A fill that reports failure is unmatched, not an error."""
        filler = RecordingFiller(results={'First Name': False})
        field = make_field('First Name', key='firstName', element_id='first_name')
        handler = StandardFieldsHandler(make_session(profile, filler=filler), [field])

        result, _ = run(handler.fill([field]))

        assert (result.filled_count, result.unmatched_count) == (0, 1)

    def test_invalid_select_value_is_rerouted(self, profile, filler):
        """A select whose options lack the profile value goes to the custom path."""
        field = make_field('Country', FieldType.VIRTUAL_SELECT, key='country',
                           options=['Poland', 'Germany'], element_id='country')
        handler = StandardFieldsHandler(make_session(profile, filler=filler), [field])

        result, rerouted = run(handler.fill([field]))

        assert filler.calls == []
        assert rerouted == [field]
        assert result.total_fields == 0

    def test_native_select_validated_against_live_options(self, profile):
        """Native selects are validated against the options read from the page."""
        filler = RecordingFiller(native_options=[
            {'position': 0, 'value': '', 'text': 'Select...', 'disabled': False},
            {'position': 1, 'value': 'GB', 'text': 'United Kingdom', 'disabled': False},
        ])
        field = make_field('Country', FieldType.NATIVE_SELECT, key='country',
                           options=['United Kingdom'], element_id='country')
        handler = StandardFieldsHandler(make_session(profile, filler=filler), [field])

        result, _ = run(handler.fill([field]))

        assert filler.calls == [('Country', 'United Kingdom', False)]
        assert result.filled_count == 1

    def test_rerouted_without_filling(self, profile, filler):
        """Planning reroutes should never fill anything."""
        field = make_field('Country', FieldType.VIRTUAL_SELECT, key='country', options=['Poland'])
        handler = StandardFieldsHandler(make_session(profile, filler=filler), [field])

        assert run(handler.rerouted([field])) == [field]
        assert filler.calls == []


# ============ Education Handler Tests ============

class TestEducationFieldsHandler:
    """Tests for education fields."""

    def test_school_and_degree(self, profile, filler):
        """Values come from the first education entry."""
        school = make_field('School', key='school', element_id='school--0', education_block=True)
        degree = make_field('Degree', FieldType.VIRTUAL_SELECT, key='degree', element_id='degree--0',
                            options=["Associate's Degree", "Bachelor's Degree", "Master's Degree"])
        handler = EducationFieldsHandler(make_session(profile, filler=filler))

        result, rerouted = run(handler.fill([school, degree]))

        assert filler.calls == [('School', 'University of London', False), ('Degree', "Bachelor's", False)]
        assert result.filled_count == 2
        assert rerouted == []

    def test_missing_select_value_rerouted(self, profile, filler):
        """An education select with no profile value goes to the custom path."""
        end_year = make_field('End date year', FieldType.VIRTUAL_SELECT, element_id='end-year--0',
                              options=['2020', '2021'], education_block=True)
        handler = EducationFieldsHandler(make_session(profile, filler=filler))

        _, rerouted = run(handler.fill([end_year]))

        assert rerouted == [end_year]


# ============ Custom Handler Tests ============

class TestCustomQuestionsHandler:
    """Tests for local resolution and AI escalation."""

    def test_definition_index_list(self, profile, filler, race, race_site):
        """A matching definition answers without calling the provider."""
        provider = MagicMock()
        provider.answer = AsyncMock()
        session = make_session(profile, site=race_site, filler=filler, provider=provider)

        result = run(CustomQuestionsHandler(session).fill([race]))

        assert filler.calls == [('Race', '#0,#2', True)]
        provider.answer.assert_not_awaited()
        assert (result.filled_count, result.ai_questions_handled) == (1, 0)

    def test_escalated_question_answered_by_index(self, profile, filler, relocate):
        """Unresolved fields are escalated and the answer index is replayed."""
        provider = MagicMock()
        provider.answer = AsyncMock(return_value=AnswerBatch(
            answers=[AIAnswer(id='relocate', answer='Yes', selected_index=0)]))
        session = make_session(profile, filler=filler, provider=provider)

        result = run(CustomQuestionsHandler(session).fill([relocate]))

        questions = provider.answer.call_args.args[0]
        assert [(q.id, q.required, q.options) for q in questions] == [('relocate', True, ['Yes', 'No'])]
        assert filler.calls == [('Are you willing to relocate?', '#0', True)]
        assert (result.filled_count, result.total_fields, result.ai_questions_handled) == (1, 1, 1)

    def test_unanswered_question_is_unmatched(self, profile, filler, relocate):
        """Without any answer source the question stays unmatched."""
        result = run(CustomQuestionsHandler(make_session(profile, filler=filler)).fill([relocate]))

        assert filler.calls == []
        assert (result.total_fields, result.unmatched_count) == (1, 1)

    def test_keyed_value_used_before_escalation(self, profile, filler):
        """A rerouted keyed field whose value exists among options is filled by index."""
        gender = make_field('Gender', FieldType.VIRTUAL_SELECT, key='gender',
                            options=['Male', 'Female', 'Decline to self identify'], element_id='gender')
        result = run(CustomQuestionsHandler(make_session(profile, filler=filler)).fill([gender]))

        assert filler.calls == [('Gender', '#1', True)]
        assert result.ai_questions_handled == 0

    def test_phone_country_resolved_by_dial_code(self, profile, filler):
        """A phone country selector is resolved through the dial code lookup."""
        country = make_field('Country', FieldType.VIRTUAL_SELECT, key='phoneCountry',
                             options=['+49 Germany', '+44 UK'], element_id='country')
        run(CustomQuestionsHandler(make_session(profile, filler=filler)).fill([country]))

        assert filler.calls == [('Country', '#1', True)]

    def test_failed_answer_fill_is_unmatched(self, profile, relocate):
        """An answer that cannot be applied leaves the field unmatched."""
        filler = RecordingFiller(results={'Are you willing to relocate?': False})
        session = make_session(profile, filler=filler,
                               overrides=[AIAnswer(id='relocate', selected_index=0)])

        result = run(CustomQuestionsHandler(session).fill([relocate]))

        assert (result.filled_count, result.unmatched_count, result.ai_questions_handled) == (0, 1, 0)

    def test_collect_questions_only_escalated(self, profile, filler, relocate, race, race_site):
        """Collecting questions lists escalated fields and fills nothing."""
        session = make_session(profile, site=race_site, filler=filler)

        questions = run(CustomQuestionsHandler(session).collect_questions([relocate, race]))

        assert [q.id for q in questions] == ['relocate']
        assert filler.calls == []
