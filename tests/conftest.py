"""
Shared fixtures: sample profile, recording filler and a headless Chromium
helper for tests that need a real DOM.
"""

import contextlib
import json
import sys
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from application_autofill.field_filler import FieldFiller
from application_autofill.models import FieldType, FormField
from application_autofill.profile import load_profile
from application_autofill.session import FillSession
from application_autofill.site_profiles import GREENHOUSE

PROFILE_DATA = {
    "personalInfo": {
        "firstName": "Ada",
        "lastName": "Lovelace",
        "email": "ada@example.com",
        "city": "London",
        "country": "United Kingdom",
        "phone": {"countryCode": "+44", "number": "7700900123"},
        "linkedInURL": "https://linkedin.com/in/ada",
        "gender": "Female",
    },
    "additionalInfo": {"expectedSalary": 120000},
    "education": [{"school": "University of London", "degree": "Bachelor's", "major": "Mathematics", "gpa": 3.9}],
    "workExperience": [{"company": "Analytical Engines Ltd", "position": "Engineer"}],
}

# Delays shrunk so browser tests run fast
FAST_CONFIG = {
    'focus': 0, 'settle': 0, 'click_settle': 10, 'hover': 0, 'scroll': 0,
    'option_commit': 30, 'checkbox_settle': 0, 'menu_close': 10, 'between_fields': 0,
    'menu_wait_steps': [10, 20, 40, 40, 40],
}


@pytest.fixture
def profile_data():
    return dict(PROFILE_DATA)


@pytest.fixture
def profile():
    return load_profile(PROFILE_DATA)


def make_field(label, field_type=FieldType.TEXT, key=None, options=None, element_id='', name='',
               required=False, **extra):
    return FormField(
        element=MagicMock(name=label),
        label=label,
        field_type=field_type,
        key=key,
        required=required,
        options=tuple(options) if options is not None else None,
        element_id=element_id,
        name=name,
        **extra,
    )


class RecordingFiller(FieldFiller):
    """FieldFiller that records fills instead of touching a page."""

    def __init__(self, results=None, native_options=None):
        simulator = MagicMock()
        simulator.read_select_options = AsyncMock(return_value=native_options or [])
        super().__init__(simulator)
        self.calls = []
        self.results = results or {}

    async def fill(self, field, value, index_based=False):
        self.calls.append((field.label, value, index_based))
        return self.results.get(field.label, True)


def make_session(profile, site=GREENHOUSE, filler=None, provider=None, overrides=None):
    filler = filler or RecordingFiller()
    simulator = filler.simulator
    simulator.delays = {'between_fields': 0}
    return FillSession(
        page=MagicMock(),
        profile=profile,
        site=site,
        simulator=simulator,
        filler=filler,
        answer_provider=provider,
        answer_overrides=overrides,
    )


@contextlib.asynccontextmanager
async def html_page(html):
    """Headless Chromium page loaded with ``html``; skips when no browser is installed."""
    from playwright.async_api import async_playwright

    async with async_playwright() as playwright:
        try:
            browser = await playwright.chromium.launch(headless=True)
        except Exception as e:
            pytest.skip(f"Chromium not available: {e}")
        try:
            page = await browser.new_page()
            await page.set_content(html, wait_until='domcontentloaded')
            yield page
        finally:
            await browser.close()


# Minimal stand-in for a react-select widget: the menu is rendered into the
# shell on mousedown, re-rendered on input and removed on selection/Escape.
SELECT_WIDGET_SCRIPT = r'''
document.querySelectorAll('.select-shell').forEach((shell) => {
  const options = JSON.parse(shell.dataset.options || '[]');
  const multi = shell.dataset.multi === 'true';
  const broken = shell.dataset.broken === 'true';
  const control = shell.querySelector('.select__control');
  const valueContainer = shell.querySelector('.select__value-container');
  const input = shell.querySelector('.select__input');
  const selected = [];
  let menu = null;

  const render = () => {
    valueContainer.querySelectorAll('.select__single-value, .select__multi-value').forEach((n) => n.remove());
    if (multi) {
      selected.forEach((text) => {
        const chip = document.createElement('div');
        chip.className = 'select__multi-value';
        const label = document.createElement('div');
        label.className = 'select__multi-value__label';
        label.textContent = text;
        chip.appendChild(label);
        valueContainer.insertBefore(chip, input);
      });
    } else if (selected.length) {
      const single = document.createElement('div');
      single.className = 'select__single-value';
      single.textContent = selected[0];
      valueContainer.insertBefore(single, input);
    }
  };
  const closeMenu = () => { if (menu) { menu.remove(); menu = null; } };
  const openMenu = () => {
    if (broken) return;
    closeMenu();
    menu = document.createElement('div');
    menu.className = 'select__menu-list';
    const filter = input.value.toLowerCase();
    options
      .filter((text) => !(multi && selected.includes(text)))
      .filter((text) => text.toLowerCase().includes(filter))
      .forEach((text) => {
        const option = document.createElement('div');
        option.className = 'select__option';
        option.setAttribute('role', 'option');
        option.textContent = text;
        option.addEventListener('click', () => {
          if (multi) selected.push(text); else selected.splice(0, selected.length, text);
          input.value = '';
          render();
          closeMenu();
        });
        menu.appendChild(option);
      });
    shell.appendChild(menu);
  };

  control.addEventListener('mousedown', () => { if (!menu) openMenu(); });
  input.addEventListener('input', () => openMenu());
  input.addEventListener('keydown', (e) => { if (e.key === 'Escape') closeMenu(); });
});
'''


def select_widget(field_id, label, options, multi=False, broken=False):
    """HTML for one script-rendered dropdown wrapped in a labelled field."""
    value_class = 'select__value-container'
    if multi:
        value_class += ' select__value-container--is-multi'
    return f'''
      <div class="field">
        <label for="{field_id}">{label}</label>
        <div class="select-shell" data-options='{json.dumps(options)}'
             data-multi="{'true' if multi else 'false'}" data-broken="{'true' if broken else 'false'}">
          <div class="select__control">
            <div class="{value_class}">
              <input class="select__input" id="{field_id}" role="combobox" aria-autocomplete="list">
            </div>
          </div>
        </div>
      </div>'''


def application_page(*fragments):
    body = '\n'.join(fragments)
    return f'''<!DOCTYPE html>
<html><body>
  <form id="application-form">
    {body}
  </form>
  <script>{SELECT_WIDGET_SCRIPT}</script>
</body></html>'''
