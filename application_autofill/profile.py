"""
Candidate profile snapshot.

The profile is supplied by the caller as JSON (camelCase keys, the same shape
the browser extension stores) and is frozen for the duration of a fill pass.
"""

import json
from typing import Any, Dict, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from pydantic.alias_generators import to_camel

from .errors import ProfileError


class _ProfileModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra='ignore',
        coerce_numbers_to_str=True,
        str_strip_whitespace=True,
    )

    @model_validator(mode='before')
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        # Stored profiles use null for "not provided"; treat it as missing
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data


class Phone(_ProfileModel):
    country_code: str = ''
    number: str = ''


class PersonalInfo(_ProfileModel):
    prefix: str = ''
    first_name: str = ''
    middle_name: str = ''
    last_name: str = ''
    address: str = ''
    city: str = ''
    state: str = ''
    postal_code: str = ''
    country: str = ''
    email: str = ''
    password: str = ''
    phone: Phone = Field(default_factory=Phone)
    nationality: str = ''
    linkedin_url: str = Field(default='', alias='linkedInURL')
    twitter_url: str = Field(default='', alias='twitterURL')
    github_url: str = Field(default='', alias='githubURL')
    website: str = ''
    gender: str = ''


class AdditionalInfo(_ProfileModel):
    current_salary: str = ''
    expected_salary: str = ''
    notice_period: str = ''
    earliest_available_date: str = ''
    cover_letter: str = ''
    gender_identity: str = ''
    race_ethnicity: str = ''
    sexual_orientation: str = ''
    disability_status: str = ''
    veteran_status: str = ''


class Education(_ProfileModel):
    school: str = ''
    degree: str = ''
    major: str = ''
    gpa: str = ''
    start_date: str = ''
    end_date: str = ''
    current: bool = False


class WorkExperience(_ProfileModel):
    company: str = ''
    position: str = ''
    description: str = ''
    start_date: str = ''
    end_date: str = ''
    current: bool = False


class Profile(_ProfileModel):
    personal_info: PersonalInfo = Field(default_factory=PersonalInfo)
    additional_info: AdditionalInfo = Field(default_factory=AdditionalInfo)
    education: Tuple[Education, ...] = ()
    work_experience: Tuple[WorkExperience, ...] = ()

    @property
    def first_education(self) -> Optional[Education]:
        return self.education[0] if self.education else None

    @property
    def first_work_experience(self) -> Optional[WorkExperience]:
        return self.work_experience[0] if self.work_experience else None

    def summary(self) -> Dict[str, Any]:
        """Profile as camelCase data without the stored password, for the AI prompt."""
        return self.model_dump(by_alias=True, exclude={'personal_info': {'password'}})


def load_profile(profile: Union[str, bytes, Dict[str, Any], Profile]) -> Profile:
    """Parse a profile from JSON text or a plain dict."""
    if isinstance(profile, Profile):
        return profile
    try:
        if isinstance(profile, (str, bytes)):
            profile = json.loads(profile or '{}')
        if not isinstance(profile, dict):
            raise ProfileError(f"Profile must be a JSON object, got {type(profile).__name__}")
        return Profile.model_validate(profile)
    except json.JSONDecodeError as e:
        raise ProfileError(f"Profile is not valid JSON: {e}") from e
    except ValidationError as e:
        raise ProfileError(f"Invalid profile: {e}") from e
