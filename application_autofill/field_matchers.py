"""
Matcher registry: maps recognised field concepts to profile values.

Each matcher owns an ordered list of patterns. Keys are tried in registry
order and the first key with any matching pattern wins.
"""

import re
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Pattern, Sequence, Tuple

from .profile import Profile

# Signals read from the element, in the order they are concatenated
MATCH_SIGNALS = ('id', 'name', 'ariaLabel', 'placeholder', 'labelFor', 'containerLabel', 'describedBy',
                 'labelledBy')


@dataclass(frozen=True)
class FieldMatcher:
    key: str
    patterns: Tuple[Pattern, ...]
    extract: Callable[[Profile], Optional[str]]

    def matches(self, text: str, parts: Sequence[str] = ()) -> bool:
        # Anchored patterns like ^state$ only make sense against a single signal
        for pattern in self.patterns:
            if pattern.search(text):
                return True
            if any(pattern.search(part) for part in parts):
                return True
        return False

    def value_for(self, profile: Profile) -> Optional[str]:
        value = self.extract(profile)
        if value is None:
            return None
        value = str(value).strip()
        return value or None


def _p(*patterns: str) -> Tuple[Pattern, ...]:
    return tuple(re.compile(p, re.IGNORECASE) for p in patterns)


def _full_name(profile: Profile) -> str:
    info = profile.personal_info
    return ' '.join(part for part in (info.prefix, info.first_name, info.middle_name, info.last_name) if part)


def _contact_number(profile: Profile) -> str:
    phone = profile.personal_info.phone
    return f"{phone.country_code} {phone.number}".strip()


def _education(attr: str) -> Callable[[Profile], Optional[str]]:
    def extract(profile: Profile) -> Optional[str]:
        education = profile.first_education
        return getattr(education, attr) if education else None
    return extract


def _education_or_work(attr: str) -> Callable[[Profile], Optional[str]]:
    def extract(profile: Profile) -> Optional[str]:
        education = profile.first_education
        work = profile.first_work_experience
        return (education and getattr(education, attr)) or (work and getattr(work, attr)) or None
    return extract


DEFAULT_MATCHERS: Tuple[FieldMatcher, ...] = (
    FieldMatcher(
        'firstName', _p(r'first[_\s-]?name', r'given[_\s-]?name', r'fname'),
        lambda p: p.personal_info.first_name),
    FieldMatcher(
        'familyName', _p(r'family[_\s-]?name'),
        lambda p: p.personal_info.last_name),
    FieldMatcher(
        'lastName', _p(r'last[_\s-]?name', r'surname', r'lname'),
        lambda p: p.personal_info.last_name),
    FieldMatcher(
        'fullName',
        _p(r'full[_\s-]?name', r'complete[_\s-]?name', r'^name$',
           r'applicant[_\s-]?name', r'candidate[_\s-]?name'),
        _full_name),
    FieldMatcher(
        'preferredName', _p(r'preferred[_\s-]?(first[_\s-]?)?name', r'nickname'),
        lambda p: p.personal_info.first_name),
    FieldMatcher(
        'email', _p(r'e?mail', r'email[_\s-]?address'),
        lambda p: p.personal_info.email),
    FieldMatcher(
        'phoneExtension', _p(r'phone.*extension', r'\bextension\b', r'\bext\.?\b'),
        lambda p: None),
    FieldMatcher(
        'phone', _p(r'phone', r'mobile', r'telephone', r'cell', r'phone[_\s-]?number'),
        lambda p: p.personal_info.phone.number),
    FieldMatcher(
        'contactNumber', _p(r'contact[_\s-]?number', r'phone[_\s-]?number.*country[_\s-]?code'),
        _contact_number),
    FieldMatcher(
        'phoneCountry',
        _p(r'phone.*country', r'country.*phone', r'phone.*code', r'dial.*code', r'country.*code'),
        lambda p: p.personal_info.phone.country_code),
    FieldMatcher('linkedIn', _p(r'linkedin', r'linked[_\s-]?in'), lambda p: p.personal_info.linkedin_url),
    FieldMatcher(
        'website', _p(r'website', r'portfolio', r'personal[_\s-]?site', r'url', r'homepage'),
        lambda p: p.personal_info.website),
    FieldMatcher('github', _p(r'github', r'git[_\s-]?hub'), lambda p: p.personal_info.github_url),
    FieldMatcher('twitter', _p(r'twitter', r'x\.com'), lambda p: p.personal_info.twitter_url),
    FieldMatcher('address', _p(r'address', r'addr'), lambda p: p.personal_info.address),
    FieldMatcher(
        'streetName', _p(r'street[_\s-]?name', r'street[_\s-]?address', r'\bstreet\b'),
        lambda p: p.personal_info.address),
    FieldMatcher(
        'city', _p(r'\blocation.*city\b', r'\bcurrent.*city\b', r'\bcity.*location\b', r'^city$'),
        lambda p: p.personal_info.city),
    FieldMatcher(
        'state', _p(r'^state$', r'province', r'region', r'location.*state'),
        lambda p: p.personal_info.state),
    FieldMatcher(
        'postalCode', _p(r'postal[_\s-]?code', r'zip[_\s-]?code', r'postcode', r'^zip$'),
        lambda p: p.personal_info.postal_code),
    FieldMatcher(
        'country',
        _p(r'^country$', r'\blocation.*country\b', r'\bcurrent.*country\b',
           r'\bcountry.*location\b', r'\bcountry.*residence\b'),
        lambda p: p.personal_info.country),
    FieldMatcher(
        'school', _p(r'school', r'university', r'college', r'institution', r'alma[_\s-]?mater'),
        _education('school')),
    FieldMatcher(
        'degree', _p(r'degree', r'qualification', r'diploma', r'education[_\s-]?level'),
        _education('degree')),
    FieldMatcher(
        'fieldOfStudy',
        _p(r'field[_\s-]?of[_\s-]?study', r'major', r'discipline', r'concentration', r'specialization'),
        _education('major')),
    FieldMatcher(
        'currentSalary',
        _p(r'current[\s_-]?salary', r'current[\s_-]?compensation',
           r'expected[\s_-]?annual[\s_-]?cash[\s_-]?compensation',
           r'annual[\s_-]?compensation', r'cash[\s_-]?compensation'),
        lambda p: p.additional_info.current_salary or p.additional_info.expected_salary),
    FieldMatcher(
        'coverLetter',
        _p(r'^cover[\s_-]?letter$', r'^cover\s*letter\s*upload$', r'^attach.*cover.*letter$'),
        lambda p: p.additional_info.cover_letter),
    FieldMatcher(
        'hispanicEthnicity',
        _p(r'hispanic', r'latino', r'latina', r'latinx', r'hispanic.*ethnicity'),
        lambda p: p.additional_info.race_ethnicity),
    FieldMatcher(
        'gender', _p(r'^gender$', r'gender.*identity', r'\bsex\b'),
        lambda p: p.personal_info.gender or p.additional_info.gender_identity),
    FieldMatcher(
        'companyName',
        _p(r'^company.*name$', r'^employer$', r'^current.*employer$', r'^company$'),
        lambda p: p.first_work_experience.company if p.first_work_experience else None),
    FieldMatcher('gpa', _p(r'gpa', r'grade[_\s-]?point'), _education('gpa')),
    FieldMatcher(
        'startDate', _p(r'start[_\s-]?date', r'from[_\s-]?date', r'begin[_\s-]?date'),
        _education_or_work('start_date')),
    FieldMatcher(
        'endDate',
        _p(r'end[_\s-]?date', r'to[_\s-]?date', r'graduation[_\s-]?date', r'completion[_\s-]?date'),
        _education_or_work('end_date')),
    FieldMatcher(
        'password', _p(r'password', r'\bpasscode\b', r'\bpassphrase\b', r'\bpwd\b'),
        lambda p: p.personal_info.password),
)

PHONE_COUNTRY_KEY = 'phoneCountry'
COUNTRY_KEY = 'country'


def signal_parts(descriptor: Dict[str, str]) -> List[str]:
    return [str(descriptor.get(signal) or '').strip().lower() for signal in MATCH_SIGNALS
            if str(descriptor.get(signal) or '').strip()]


def build_match_text(descriptor: Dict[str, str]) -> str:
    """Concatenate the element's identifying signals into one lowercase string."""
    return ' '.join(signal_parts(descriptor))


def is_phone_country_control(descriptor: Dict[str, str]) -> bool:
    """A country control that sits next to a phone number input selects a dial code."""
    if descriptor.get('inPhoneContainer'):
        return True
    labelled_by = descriptor.get('labelledByIds') or ''
    return bool(re.search(r'country.*label', labelled_by, re.IGNORECASE)) and \
        'phone' in build_match_text(descriptor)


def match_field_key(descriptor: Dict[str, str],
                    matchers: Iterable[FieldMatcher] = DEFAULT_MATCHERS) -> Optional[str]:
    """Return the first matcher key whose patterns match the element, or None."""
    parts = signal_parts(descriptor)
    text = ' '.join(parts)
    phone_country = is_phone_country_control(descriptor)

    if phone_country and (descriptor.get('id') or '').lower() in ('country', 'country_code', 'countrycode'):
        return PHONE_COUNTRY_KEY

    for matcher in matchers:
        if matcher.key == COUNTRY_KEY and phone_country:
            continue
        if matcher.matches(text, parts):
            return matcher.key
    return None


def registry_by_key(matchers: Iterable[FieldMatcher]) -> Dict[str, FieldMatcher]:
    return {matcher.key: matcher for matcher in matchers}
