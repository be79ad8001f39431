"""
Site profiles: the selector sets and quirks for each target site family.

One engine serves every site; adding a site is a matter of adding a profile
here, not forking the pipeline.
"""

import logging
from dataclasses import dataclass, replace
from typing import Any, Dict, Optional, Tuple
from urllib.parse import urlparse

from .custom_definitions import DEFAULT_DEFINITIONS, CustomFieldDefinition
from .field_matchers import DEFAULT_MATCHERS, FieldMatcher

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VirtualSelectSelectors:
    """Selectors describing a script-rendered dropdown widget."""
    input: Tuple[str, ...]
    container: Tuple[str, ...]
    control: Tuple[str, ...]
    menu_list: Tuple[str, ...]
    option: Tuple[str, ...]
    multi_value_container: Tuple[str, ...] = ()
    single_value: Tuple[str, ...] = ()
    multi_value_label: Tuple[str, ...] = ()
    # Nested nodes that own the click handler inside an option
    selectable: Tuple[str, ...] = ()
    menu_item: Tuple[str, ...] = ()
    # Lists that look like menus but show already-chosen values
    excluded_lists: Tuple[str, ...] = ()


@dataclass(frozen=True)
class SiteProfile:
    name: str
    form_controls: Tuple[str, ...]
    label_containers: Tuple[str, ...]
    label_elements: Tuple[str, ...]
    required_indicators: Tuple[str, ...]
    virtual_select: VirtualSelectSelectors
    checkbox_wrappers: Tuple[str, ...] = ()
    phone_country_containers: Tuple[str, ...] = ()
    education_containers: Tuple[str, ...] = ()
    question_containers: Tuple[str, ...] = ()
    skip_patterns: Tuple[str, ...] = ('recaptcha', 'g-recaptcha', 'captcha', 'hcaptcha', 'cf-turnstile')
    matchers: Tuple[FieldMatcher, ...] = DEFAULT_MATCHERS
    custom_definitions: Tuple[CustomFieldDefinition, ...] = DEFAULT_DEFINITIONS
    page_markers: Tuple[str, ...] = ()
    url_markers: Tuple[str, ...] = ()
    # Iframe src fragments that mean the real form lives elsewhere
    embed_patterns: Tuple[str, ...] = ()

    def selectors_payload(self) -> Dict[str, Any]:
        """Selector lists in the shape the in-page scripts expect."""
        vs = self.virtual_select
        return {
            'labelContainers': list(self.label_containers),
            'labelElements': list(self.label_elements),
            'requiredIndicators': list(self.required_indicators),
            'checkboxWrappers': list(self.checkbox_wrappers),
            'phoneCountryContainers': list(self.phone_country_containers),
            'educationContainers': list(self.education_containers),
            'questionContainers': list(self.question_containers),
            'skipPatterns': list(self.skip_patterns),
            'virtual': {
                'input': list(vs.input),
                'container': list(vs.container),
                'control': list(vs.control),
                'menuList': list(vs.menu_list),
                'option': list(vs.option),
                'multiValueContainer': list(vs.multi_value_container),
                'singleValue': list(vs.single_value),
                'multiValueLabel': list(vs.multi_value_label),
                'selectable': list(vs.selectable),
                'menuItem': list(vs.menu_item),
                'excludedLists': list(vs.excluded_lists),
            },
        }


_BASE_FORM_CONTROLS = (
    'input[type="text"]:not([type="hidden"])',
    'input:not([type])',
    'input[type="email"]',
    'input[type="tel"]',
    'input[type="url"]',
    'input[type="number"]',
    'input[type="checkbox"]',
    'input[type="radio"]',
    'textarea',
    'select',
)

_BASE_LABEL_ELEMENTS = ('label', 'legend', '.label', 'h1', 'h2', 'h3', 'h4', 'h5', 'h6')

GREENHOUSE = SiteProfile(
    name='greenhouse',
    form_controls=_BASE_FORM_CONTROLS,
    label_containers=(
        '.form-group', '.field', '.input-wrapper', '.select-shell',
        '.select__container', '[class*="question"]',
    ),
    label_elements=_BASE_LABEL_ELEMENTS,
    required_indicators=('.required', '.asterisk', '[aria-label*="required"]'),
    checkbox_wrappers=('.checkbox__wrapper',),
    phone_country_containers=('.phone-input__country', '.phone-input'),
    education_containers=('.education--container', '.education--form', '[class*="education"]'),
    question_containers=('[data-test*="question"]',),
    virtual_select=VirtualSelectSelectors(
        input=('.select__input', '[role="combobox"][aria-autocomplete="list"]'),
        container=('.select-shell', '.select__container', '.select'),
        control=('.select__control',),
        menu_list=('.select__menu-list', '.select_menu-list'),
        option=('.select__option',),
        multi_value_container=('.select__value-container--is-multi',),
        single_value=('.select__single-value',),
        multi_value_label=('.select__multi-value__label',),
    ),
    page_markers=(
        '.application--container', '.application--form', 'form#application-form',
        '[class*="greenhouse"]', 'footer.footer a[href*="greenhouse.com"]',
    ),
    url_markers=('greenhouse.io',),
    embed_patterns=('greenhouse.io/embed/job_app',),
)

WORKDAY = SiteProfile(
    name='workday',
    form_controls=_BASE_FORM_CONTROLS,
    label_containers=(
        '[data-automation-id^="formField"]', '[data-automation-id="formField"]',
        '.css-1wc3w3w', 'fieldset', '[role="group"]',
    ),
    label_elements=_BASE_LABEL_ELEMENTS,
    required_indicators=('abbr[title="required"]', '.required', '[aria-label*="required"]'),
    phone_country_containers=('[data-automation-id="formField-countryPhoneCode"]',),
    education_containers=('[data-automation-id^="education"]',),
    question_containers=('[data-automation-id^="formField-question"]', '[data-automation-id*="primaryQuestionnaire"]'),
    virtual_select=VirtualSelectSelectors(
        input=('input[data-automation-id="searchBox"]', '[role="combobox"][aria-autocomplete="list"]'),
        container=('[data-automation-id="multiSelectContainer"]', '[data-automation-id^="formField"]'),
        control=('[data-automation-id="multiselectInputContainer"]',),
        menu_list=('[role="listbox"]', '[data-automation-id="activeListContainer"]'),
        option=('[role="option"]', '[data-automation-id="promptOption"]'),
        multi_value_container=('[data-automation-id="multiSelectContainer"]',),
        multi_value_label=('[data-automation-id="selectedItem"]',),
        selectable=(
            '[data-automation-id="promptOption"]', '[data-automation-id="promptLeafNode"]',
            '[data-automation-id="radioBtn"]',
        ),
        menu_item=('[data-automation-id="menuItem"]',),
        excluded_lists=('[data-automation-id="selectedItemList"]',),
    ),
    page_markers=('[data-automation-id="applyFlowPage"]', '[data-automation-id="jobPostingPage"]'),
    url_markers=('myworkdayjobs.com', 'myworkday.com', 'workday.com'),
    embed_patterns=('myworkdayjobs.com',),
)

COMMON = SiteProfile(
    name='common',
    form_controls=_BASE_FORM_CONTROLS,
    label_containers=(
        '.form-group', '.field', '.form-field', '.input-wrapper',
        '[class*="question"]', '[class*="field"]',
    ),
    label_elements=_BASE_LABEL_ELEMENTS,
    required_indicators=('.required', '.asterisk', '[aria-label*="required"]'),
    phone_country_containers=('.phone-input__country', '.phone-input', '[class*="phone-country"]'),
    education_containers=('[class*="education"]',),
    question_containers=('[data-test*="question"]',),
    virtual_select=VirtualSelectSelectors(
        input=('[role="combobox"][aria-autocomplete="list"]', '.select__input'),
        container=('.select-shell', '.select__container', '.select', '[class*="select"]'),
        control=('.select__control', '[class*="control"]'),
        menu_list=('[role="listbox"]', '.select__menu-list'),
        option=('[role="option"]', '.select__option'),
        multi_value_container=('.select__value-container--is-multi', '[class*="is-multi"]'),
        single_value=('.select__single-value', '[class*="singleValue"]'),
        multi_value_label=('.select__multi-value__label', '[class*="multiValue"] > div:first-child'),
    ),
)

SITE_PROFILES: Dict[str, SiteProfile] = {
    GREENHOUSE.name: GREENHOUSE,
    WORKDAY.name: WORKDAY,
    COMMON.name: COMMON,
}


def get_site_profile(name: str) -> Optional[SiteProfile]:
    return SITE_PROFILES.get((name or '').strip().lower())


def with_overrides(profile: SiteProfile, **changes: Any) -> SiteProfile:
    """Copy a profile with some fields replaced (e.g. extra custom definitions)."""
    return replace(profile, **changes)


async def detect_site_profile(page) -> SiteProfile:
    """Pick the site profile for a page by URL, then by structural markers."""
    url = (page.url or '').lower()
    for profile in (GREENHOUSE, WORKDAY):
        if any(marker in url for marker in profile.url_markers):
            logger.debug(f"Site profile '{profile.name}' detected from URL")
            return profile

    for profile in (GREENHOUSE, WORKDAY):
        for selector in profile.page_markers:
            try:
                if await page.query_selector(selector):
                    logger.debug(f"Site profile '{profile.name}' detected from marker {selector}")
                    return profile
            except Exception as e:
                logger.debug(f"Marker check failed for {selector}: {e}")
    return COMMON


def host_of(url: str) -> str:
    try:
        return urlparse(url).netloc.lower()
    except ValueError:
        return ''
