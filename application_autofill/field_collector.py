"""
Field collector: scans the loaded page and produces one FormField per
fillable control, in document order.
"""

import logging
import re
from typing import Any, Dict, List, Optional

from playwright.async_api import ElementHandle, Frame, Page

from . import dom_scripts
from .field_matchers import match_field_key
from .input_simulator import InputSimulator
from .models import FieldType, FormField
from .site_profiles import SiteProfile

logger = logging.getLogger(__name__)

UNKNOWN_LABEL = 'Unknown Field'


def clean_label(text: str) -> str:
    """Strip required markers, trailing punctuation and extra whitespace."""
    text = (text or '').replace('*', '')
    text = re.sub(r'\s*\(required\)\s*', ' ', text, flags=re.IGNORECASE)
    text = re.sub(r'\s+', ' ', text).strip()
    return re.sub(r'[:;]+$', '', text).strip()


def infer_label(descriptor: Dict[str, Any]) -> str:
    """
    Pick the human-readable label for a control. Sources in order: the
    associated <label>, aria-label, the label inside the enclosing field
    container, aria-describedby/labelledby text, placeholder, name.
    """
    for source in ('labelFor', 'ariaLabel', 'containerText', 'labelledBy', 'describedBy', 'placeholder', 'name'):
        label = clean_label(descriptor.get(source) or '')
        if label:
            return label
    return UNKNOWN_LABEL


def infer_field_type(descriptor: Dict[str, Any]) -> FieldType:
    tag = descriptor.get('tag')
    if tag == 'textarea':
        return FieldType.TEXTAREA
    if tag == 'select':
        return FieldType.NATIVE_SELECT
    control_type = descriptor.get('type')
    if control_type == 'checkbox':
        return FieldType.CHECKBOX
    if control_type == 'radio':
        return FieldType.RADIO
    if descriptor.get('virtual'):
        return FieldType.MULTI_VIRTUAL_SELECT if descriptor.get('multi') else FieldType.VIRTUAL_SELECT
    return FieldType.TEXT


class FieldCollector:
    def __init__(self, page: Page, site: SiteProfile, simulator: InputSimulator):
        self.logger = logger
        self.page = page
        self.site = site
        self.simulator = simulator
        self._cfg = site.selectors_payload()

    async def collect(self) -> List[FormField]:
        """Walk every candidate control and build the ordered field list."""
        selector = ', '.join(self.site.form_controls)
        elements = await self.page.query_selector_all(selector)
        self.logger.debug(f"Found {len(elements)} candidate controls")

        fields: List[FormField] = []
        seen_groups = set()
        for element in elements:
            try:
                descriptor = await element.evaluate(dom_scripts.DESCRIBE_FIELD, {'cfg': self._cfg})
                if descriptor.get('skip'):
                    continue

                group = descriptor.get('group')
                if group:
                    if group['key'] in seen_groups:
                        continue
                    seen_groups.add(group['key'])
                    field = await self._build_group_field(element, descriptor)
                else:
                    field = await self._build_field(element, descriptor)

                if field:
                    fields.append(field)
            except Exception as e:
                self.logger.debug(f"Skipping control that could not be described: {e}")

        self.logger.info(f"Collected {len(fields)} fields")
        return fields

    async def _build_field(self, element: ElementHandle, descriptor: Dict[str, Any]) -> Optional[FormField]:
        field_type = infer_field_type(descriptor)
        options = None
        if field_type == FieldType.NATIVE_SELECT:
            raw = await self.simulator.read_select_options(element)
            options = tuple(o['text'] for o in raw if not o['disabled'] and o['value'] != '')
        elif field_type.is_virtual:
            options = tuple(await self.simulator.read_virtual_options(element))

        return FormField(
            element=element,
            label=infer_label(descriptor),
            field_type=field_type,
            key=match_field_key(descriptor, self.site.matchers),
            required=bool(descriptor.get('required')),
            options=options,
            element_id=descriptor.get('id') or '',
            name=descriptor.get('name') or '',
            education_block=bool(descriptor.get('educationBlock')),
            question_block=bool(descriptor.get('questionBlock')),
        )

    async def _build_group_field(self, element: ElementHandle, descriptor: Dict[str, Any]) -> FormField:
        """Merge a checkbox fieldset or a named radio set into one field."""
        group = descriptor['group']
        labels = await element.evaluate(dom_scripts.GROUP_OPTION_LABELS, {'cfg': self._cfg})
        label = clean_label(group.get('legend') or '') or infer_label(descriptor)
        # The group label stands in for the per-option label when matching keys
        match_descriptor = dict(descriptor, labelFor=label, containerLabel=label)

        return FormField(
            element=element,
            label=label,
            field_type=infer_field_type(descriptor),
            key=match_field_key(match_descriptor, self.site.matchers),
            required=bool(group.get('required')),
            options=tuple(clean_label(text) for text in labels),
            element_id=descriptor.get('id') or '',
            name=descriptor.get('name') or '',
            education_block=bool(descriptor.get('educationBlock')),
            question_block=bool(descriptor.get('questionBlock')),
        )


async def find_form_frame(page: Page) -> Frame:
    """
    Return the frame holding the application form: the main frame when it
    has form controls, otherwise the first child frame that does.
    """
    probe = 'form input, form textarea, form select'
    try:
        if await page.main_frame.query_selector(probe):
            return page.main_frame
    except Exception as e:
        logger.debug(f"Main frame check failed: {e}")

    for frame in page.frames:
        if frame == page.main_frame:
            continue
        try:
            if await frame.query_selector(probe):
                logger.debug(f"Form found inside frame {frame.url}")
                return frame
        except Exception as e:
            logger.debug(f"Frame check failed: {e}")
    return page.main_frame
