"""
Tests for the profile snapshot and the records passed through a fill pass.
"""

import json

import pytest
from pydantic import ValidationError

from application_autofill.errors import AutofillError, ProfileError
from application_autofill.models import (
    AIAnswer,
    AutofillOptions,
    FieldType,
    FillResult,
    PassFailed,
    PassRedirected,
    PassSucceeded,
)
from application_autofill.profile import Profile, load_profile

from conftest import make_field


# ============ Profile Tests ============

class TestLoadProfile:
    """Tests for profile parsing."""

    def test_camel_case_json(self, profile_data):
        """Should parse the camelCase JSON shape."""
        profile = load_profile(json.dumps(profile_data))

        assert profile.personal_info.first_name == 'Ada'
        assert profile.personal_info.phone.country_code == '+44'
        assert profile.personal_info.linkedin_url == 'https://linkedin.com/in/ada'
        assert profile.first_education.school == 'University of London'
        assert profile.first_work_experience.company == 'Analytical Engines Ltd'

    def test_numbers_coerced_to_strings(self, profile):
        """Numeric values in the JSON should become strings."""
        assert profile.additional_info.expected_salary == '120000'
        assert profile.first_education.gpa == '3.9'

    def test_nulls_are_missing(self):
        """Null values should fall back to defaults."""
        profile = load_profile({'personalInfo': {'firstName': None, 'lastName': 'Byron'}, 'education': None})

        assert profile.personal_info.first_name == ''
        assert profile.personal_info.last_name == 'Byron'
        assert profile.education == ()
        assert profile.first_education is None

    def test_empty_profile(self):
        """An empty object is a valid, empty profile."""
        profile = load_profile('{}')
        assert profile.personal_info.email == ''
        assert profile.first_work_experience is None

    def test_profile_passthrough(self, profile):
        """An already parsed profile is returned unchanged."""
        assert load_profile(profile) is profile

    def test_invalid_json(self):
        """Malformed JSON should raise ProfileError."""
        with pytest.raises(ProfileError):
            load_profile('{not json')

    def test_not_an_object(self):
        """A JSON array is not a profile."""
        with pytest.raises(ProfileError):
            load_profile('[1, 2]')

    def test_invalid_shape(self):
        """Wrongly typed sections should raise ProfileError."""
        with pytest.raises(ProfileError) as exc_info:
            load_profile({'education': 5})
        assert isinstance(exc_info.value, AutofillError)

    def test_frozen(self, profile):
        """The snapshot cannot be modified during a pass."""
        with pytest.raises(ValidationError):
            profile.personal_info.first_name = 'Grace'

    def test_summary_hides_password(self):
        """The summary should not leak the stored password."""
        profile = Profile.model_validate({'personalInfo': {'firstName': 'Ada', 'password': 'hunter2'}})
        summary = profile.summary()

        assert summary['personalInfo']['firstName'] == 'Ada'
        assert 'password' not in summary['personalInfo']


# ============ Answer Tests ============

class TestAIAnswer:
    """Tests for AI answers and their replay tokens."""

    def test_id_aliases(self):
        """Should accept the question id under several names."""
        assert AIAnswer.model_validate({'questionId': 'q1'}).id == 'q1'
        assert AIAnswer.model_validate({'question_id': 'q2'}).id == 'q2'

    def test_selected_indices_token(self):
        """Selected indices should replay as an index list."""
        answer = AIAnswer.model_validate({'id': 'race', 'answer': 'Asian, White', 'selectedIndices': [0, 2]})
        assert answer.to_token() == ('#0,#2', True)

    def test_selected_index_token(self):
        """A selected index should replay as one index token, including zero."""
        answer = AIAnswer.model_validate({'id': 'relocate', 'answer': 'Yes', 'selectedIndex': 0})
        assert answer.to_token() == ('#0', True)

    def test_text_token(self):
        """Free text should replay verbatim."""
        answer = AIAnswer(id='why', answer='Because I like engines.', selected_indices=[])
        assert answer.to_token() == ('Because I like engines.', False)

    def test_missing_id_rejected(self):
        """An answer without an id cannot be routed."""
        with pytest.raises(ValidationError):
            AIAnswer.model_validate({'answer': 'Yes'})


class TestAutofillOptions:
    """Tests for caller options."""

    def test_defaults(self):
        """Should default to automatic site detection."""
        options = AutofillOptions()
        assert options.site_profile == 'auto'
        assert options.ai_answer_overrides is None
        assert options.collect_questions is False

    def test_aliases(self):
        """Should accept camelCase option names."""
        options = AutofillOptions.model_validate({
            'engineMode': 'workday',
            'openaiApiKey': 'sk-test',
            'aiAnswerOverrides': [{'id': 'relocate', 'selectedIndex': 1}],
            'collectQuestions': True,
        })
        assert options.site_profile == 'workday'
        assert options.openai_api_key == 'sk-test'
        assert options.ai_answer_overrides[0].selected_index == 1
        assert options.collect_questions is True


# ============ Result Tests ============

class TestResults:
    """Tests for fill counters and pass outcomes."""

    def test_fill_results_add(self):
        """Handler results should sum field by field."""
        total = FillResult(2, 3, 1, 0) + FillResult(1, 2, 1, 1)
        assert total == FillResult(filled_count=3, total_fields=5, unmatched_count=2, ai_questions_handled=1)
        assert total.to_dict()['aiQuestionsHandled'] == 1

    def test_succeeded(self):
        """Success should report the counters."""
        outcome = PassSucceeded(FillResult(4, 5, 1, 2))
        assert outcome.to_dict() == {
            'success': True, 'filled': 4, 'total': 5, 'unmatched': 1, 'aiQuestionsHandled': 2,
        }

    def test_redirected(self):
        """A redirect should carry only the URL."""
        assert PassRedirected('https://boards.greenhouse.io/x').to_dict() == {
            'redirect': 'https://boards.greenhouse.io/x'}

    def test_failed(self):
        """A failure should carry the reason."""
        assert PassFailed('boom').to_dict() == {'error': 'boom'}


class TestFormField:
    """Tests for the collected field record."""

    def test_identity_prefers_id(self):
        """The element id wins over the name."""
        assert make_field('A', element_id='a', name='b').identity == 'a'
        assert make_field('A', name='b').identity == 'b'
        assert make_field('A').identity == ''

    def test_field_type_families(self):
        """Radios are select-like, checkboxes only accept options."""
        assert FieldType.RADIO.is_select_like is True
        assert FieldType.CHECKBOX.is_select_like is False
        assert make_field('A', FieldType.CHECKBOX).accepts_options is True
        assert FieldType.MULTI_VIRTUAL_SELECT.is_virtual is True
        assert FieldType.NATIVE_SELECT.is_virtual is False
