"""
In-page scripts evaluated through Playwright element handles.

Every script takes ``(el, arg)`` where ``arg['cfg']`` is the site profile's
selector payload (see ``SiteProfile.selectors_payload``).
"""

_HELPERS = r'''
  const cfg = (arg && arg.cfg) || {};
  const vcfg = cfg.virtual || {};
  const matchesAny = (node, selectors) => (selectors || []).some((s) => {
    try { return node.matches(s); } catch (e) { return false; }
  });
  const closestAny = (node, selectors) => {
    if (!node) return null;
    for (const s of selectors || []) {
      try { const found = node.closest(s); if (found) return found; } catch (e) {}
    }
    return null;
  };
  const queryAny = (root, selectors) => {
    for (const s of selectors || []) {
      try { const found = root.querySelector(s); if (found) return found; } catch (e) {}
    }
    return null;
  };
  const queryAllAny = (root, selectors) => {
    const out = [];
    for (const s of selectors || []) {
      let nodes = [];
      try { nodes = root.querySelectorAll(s); } catch (e) { continue; }
      for (const n of nodes) { if (!out.includes(n)) out.push(n); }
    }
    return out.sort((a, b) => (a.compareDocumentPosition(b) & Node.DOCUMENT_POSITION_FOLLOWING) ? -1 : 1);
  };
  const isVisible = (node) => {
    if (!node || !node.isConnected) return false;
    const style = window.getComputedStyle(node);
    if (style.display === 'none' || style.visibility === 'hidden' || style.opacity === '0') return false;
    return node.offsetParent !== null || style.position === 'fixed';
  };
  const textOf = (node) => (node && node.textContent ? node.textContent.replace(/\s+/g, ' ').trim() : '');
  const textByIds = (ids) => (ids || '').split(/\s+/).filter(Boolean)
    .map((id) => textOf(document.getElementById(id))).filter(Boolean).join(' ');
  const labelFor = (node) => {
    if (!node || !node.id) return null;
    try { return document.querySelector('label[for="' + CSS.escape(node.id) + '"]'); } catch (e) { return null; }
  };
  const optionLabel = (input) => {
    const byFor = labelFor(input);
    if (byFor && textOf(byFor)) return textOf(byFor);
    const wrapping = input.closest('label');
    if (wrapping && textOf(wrapping)) return textOf(wrapping);
    const next = input.nextElementSibling;
    if (next && textOf(next)) return textOf(next);
    const wrapper = closestAny(input, cfg.checkboxWrappers);
    if (wrapper && textOf(wrapper.querySelector('label'))) return textOf(wrapper.querySelector('label'));
    return input.value || '';
  };
  const groupMembers = (input) => {
    let members = [input];
    if (input.type === 'radio' && input.name) {
      const scope = input.form || document;
      members = Array.from(scope.querySelectorAll('input[type="radio"]')).filter((r) => r.name === input.name);
    } else if (input.type === 'checkbox') {
      const fieldset = input.closest('fieldset');
      if (fieldset) members = Array.from(fieldset.querySelectorAll('input[type="checkbox"]'));
    }
    return members.filter((m) => !m.disabled &&
      (isVisible(m) || isVisible(m.closest('label')) || isVisible(labelFor(m))));
  };
  const isMenuCandidate = (node) => {
    if (!node || !isVisible(node)) return false;
    if (closestAny(node, vcfg.excludedLists)) return false;
    const aria = (node.getAttribute('aria-label') || '').toLowerCase();
    return !aria.includes('items selected');
  };
  const fire = (node, type) => {
    const isMouse = /^mouse|click$/.test(type);
    const init = { bubbles: type !== 'mouseenter', cancelable: true, view: window, button: 0 };
    node.dispatchEvent(isMouse ? new MouseEvent(type, init) : new Event(type, { bubbles: true, cancelable: true }));
  };
'''


def _script(body: str) -> str:
    return '(el, arg) => {\n' + _HELPERS + body + '\n}'


DESCRIBE_FIELD = _script(r'''
  const tag = el.tagName.toLowerCase();
  const type = (el.getAttribute('type') || (tag === 'input' ? 'text' : tag)).toLowerCase();
  const id = el.getAttribute('id') || '';
  const name = el.getAttribute('name') || '';
  const haystack = [id, el.getAttribute('class') || '', name, el.getAttribute('data-test') || ''].join(' ').toLowerCase();
  const grouped = type === 'checkbox' || type === 'radio';
  const skip = type === 'hidden' || el.disabled ||
    (cfg.skipPatterns || []).some((p) => haystack.includes(p)) ||
    (!grouped && el.getClientRects().length === 0);

  const labelContainer = closestAny(el, (cfg.labelContainers || []).concat(cfg.phoneCountryContainers || []));
  const containerLabel = labelContainer ? textOf(labelContainer.querySelector('label')) : '';
  const fieldContainer = closestAny(el, cfg.labelContainers);
  const containerText = fieldContainer ? textOf(queryAny(fieldContainer, cfg.labelElements)) : '';
  const forLabel = labelFor(el);

  let required = el.required === true || el.getAttribute('aria-required') === 'true';
  if (!required && fieldContainer) required = !!queryAny(fieldContainer, cfg.requiredIndicators);
  if (!required) required = /\*\s*$/.test(textOf(forLabel) || containerText);

  let group = null;
  if (type === 'checkbox') {
    const fieldset = el.closest('fieldset');
    const boxes = fieldset ? Array.from(fieldset.querySelectorAll('input[type="checkbox"]')) : [];
    if (boxes.length > 1) {
      group = {
        key: 'fieldset:' + Array.from(document.querySelectorAll('fieldset')).indexOf(fieldset),
        legend: textOf(fieldset.querySelector('legend')) || containerText,
        required: required || fieldset.getAttribute('aria-required') === 'true' ||
          !!queryAny(fieldset, cfg.requiredIndicators),
      };
    }
  } else if (type === 'radio' && name) {
    const fieldset = el.closest('fieldset');
    group = {
      key: 'radio:' + name,
      legend: (fieldset && textOf(fieldset.querySelector('legend'))) || containerText,
      required: required || !!(fieldset && queryAny(fieldset, cfg.requiredIndicators)),
    };
  }

  return {
    tag, type, id, name, skip, required, group,
    ariaLabel: el.getAttribute('aria-label') || '',
    placeholder: el.getAttribute('placeholder') || '',
    describedBy: textByIds(el.getAttribute('aria-describedby')),
    labelledBy: textByIds(el.getAttribute('aria-labelledby')),
    labelledByIds: el.getAttribute('aria-labelledby') || '',
    labelFor: textOf(forLabel) || (grouped ? '' : textOf(el.closest('label'))),
    containerLabel,
    containerText,
    virtual: tag === 'input' && matchesAny(el, vcfg.input),
    multi: id.includes('[]') || el.getAttribute('aria-multiselectable') === 'true' ||
      !!closestAny(el, vcfg.multiValueContainer),
    inPhoneContainer: !!closestAny(el, cfg.phoneCountryContainers),
    educationBlock: !!closestAny(el, cfg.educationContainers),
    questionBlock: !!closestAny(el, cfg.questionContainers),
  };
''')

GROUP_MEMBERS = _script(r'''
  return groupMembers(el);
''')

GROUP_OPTION_LABELS = _script(r'''
  return groupMembers(el).map(optionLabel);
''')

READ_SELECT_OPTIONS = r'''(el) => Array.from(el.options).map((o, i) => ({
  position: i, value: o.value, text: (o.text || '').replace(/\s+/g, ' ').trim(), disabled: o.disabled,
}))'''

SET_NATIVE_VALUE = r'''(el, arg) => {
  const proto = el.tagName === 'TEXTAREA' ? HTMLTextAreaElement.prototype : HTMLInputElement.prototype;
  const setter = Object.getOwnPropertyDescriptor(proto, 'value').set;
  setter.call(el, arg.value);
  el.dispatchEvent(new Event('input', { bubbles: true }));
  el.dispatchEvent(new Event('change', { bubbles: true }));
  if (arg.commit) {
    el.dispatchEvent(new KeyboardEvent('keydown', { key: 'Enter', code: 'Enter', bubbles: true }));
    el.dispatchEvent(new KeyboardEvent('keyup', { key: 'Enter', code: 'Enter', bubbles: true }));
    el.dispatchEvent(new Event('blur'));
    el.dispatchEvent(new FocusEvent('focusout', { bubbles: true }));
  }
  return el.value;
}'''

COMMIT_SELECT = r'''(el, arg) => {
  const option = el.options[arg.position];
  if (!option) return false;
  el.focus();
  el.selectedIndex = arg.position;
  const setter = Object.getOwnPropertyDescriptor(HTMLSelectElement.prototype, 'value').set;
  setter.call(el, option.value);
  el.dispatchEvent(new Event('change', { bubbles: true, cancelable: true }));
  el.dispatchEvent(new Event('input', { bubbles: true, cancelable: true }));
  el.dispatchEvent(new MouseEvent('click', { bubbles: true }));
  el.blur();
  el.dispatchEvent(new FocusEvent('focusout', { bubbles: true }));
  return el.selectedIndex === arg.position;
}'''

ANCHOR_CANDIDATES = _script(r'''
  const anchors = [];
  const push = (node) => { if (node && !anchors.includes(node)) anchors.push(node); };
  push(closestAny(el, vcfg.control));
  push(closestAny(el, vcfg.container));
  push(el);
  let parent = el.parentElement;
  for (let i = 0; i < 3 && parent; i++) { push(parent); parent = parent.parentElement; }
  return anchors;
''')

ANCHOR_KIND = _script(r'''
  if (el === arg.input) return 'input';
  return matchesAny(el, vcfg.control) ? 'control' : 'other';
''')

OPEN_MENU = _script(r'''
  try { arg.input.focus(); } catch (e) {}
  for (const type of ['mousedown', 'mouseup', 'click']) fire(el, type);
''')

FIND_MENU = _script(r'''
  const input = arg.input || el;
  const container = closestAny(input, vcfg.container) || closestAny(el, vcfg.container);
  if (container) {
    for (const menu of queryAllAny(container, vcfg.menuList)) {
      if (isMenuCandidate(menu)) return menu;
    }
  }
  const fromAria = (node) => {
    if (!node) return null;
    for (const attr of ['aria-controls', 'aria-owns']) {
      for (const id of (node.getAttribute(attr) || '').split(/\s+/).filter(Boolean)) {
        const target = document.getElementById(id);
        if (isMenuCandidate(target)) return target;
      }
    }
    return null;
  };
  const viaAria = fromAria(el) || fromAria(input) ||
    fromAria(el.closest('[role="combobox"]')) || fromAria(input.closest('[role="combobox"]'));
  if (viaAria) return viaAria;

  const candidates = queryAllAny(document, vcfg.menuList).filter(isMenuCandidate);
  if (candidates.length <= 1) return candidates[0] || null;
  const anchor = el.getBoundingClientRect();
  let best = null;
  let bestScore = Infinity;
  for (const candidate of candidates) {
    const rect = candidate.getBoundingClientRect();
    const score = Math.abs(rect.top - anchor.bottom) * 2 + Math.abs(rect.left - anchor.left);
    if (score < bestScore) { bestScore = score; best = candidate; }
  }
  return best;
''')

MENU_OPTIONS = _script(r'''
  const options = [];
  for (const node of queryAllAny(el, vcfg.option)) {
    if (!isVisible(node) || node.getAttribute('aria-disabled') === 'true') continue;
    const item = closestAny(node, vcfg.menuItem) || node;
    if (!options.includes(item)) options.push(item);
  }
  return options;
''')

CURRENT_VIRTUAL_VALUES = _script(r'''
  const container = closestAny(el, vcfg.container);
  if (!container) return [];
  const labels = queryAllAny(container, vcfg.multiValueLabel).map(textOf).filter(Boolean);
  if (labels.length) return labels;
  const single = textOf(queryAny(container, vcfg.singleValue));
  return single ? [single] : [];
''')

CLICK_CANDIDATES = _script(r'''
  const candidates = [];
  const push = (node) => { if (node && !candidates.includes(node)) candidates.push(node); };
  const pushWithParents = (node) => {
    let current = node;
    for (let i = 0; i < 4 && current; i++) { push(current); current = current.parentElement; }
  };
  pushWithParents(queryAny(el, vcfg.selectable) || el);
  pushWithParents(el);
  return candidates;
''')

HOVER_NODE = _script(r'''
  el.scrollIntoView({ block: 'nearest' });
  fire(el, 'mouseenter');
  fire(el, 'mouseover');
''')

PRESS_NODE = _script(r'''
  for (const type of ['mousedown', 'mouseup', 'click']) fire(el, type);
''')

OPTION_STATE = r'''(el) => {
  if (!el.isConnected) return 'detached';
  const selected = el.getAttribute('aria-selected') === 'true' ||
    el.getAttribute('data-automation-selected') === 'true';
  return selected ? 'selected' : 'pending';
}'''

CLOSE_MENU = r'''(el) => {
  el.blur();
  el.dispatchEvent(new KeyboardEvent('keydown', { key: 'Escape', code: 'Escape', bubbles: true }));
}'''

TOGGLE_CHECKABLE = _script(r'''
  el.focus();
  fire(el, 'mousedown');
  fire(el, 'mouseup');
  el.click();
  return el.checked;
''')

IS_CHECKED = r'''(el) => el.checked === true'''

FIND_IFRAME_SOURCES = r'''() => Array.from(document.querySelectorAll('iframe'))
  .map((f) => f.getAttribute('src') || '').filter(Boolean)'''

# window.open is replaced so a page that tries to open the real application
# in a new window leaves the URL behind instead.
INSTALL_WINDOW_OPEN_HOOK = r'''() => {
  if (window.__autofillOpenHooked) return;
  window.__autofillOpenHooked = true;
  window.__autofillRedirectUrl = null;
  const original = window.open;
  window.open = function (url, ...rest) {
    if (url) {
      window.__autofillRedirectUrl = new URL(String(url), window.location.href).href;
      return null;
    }
    return original.call(window, url, ...rest);
  };
}'''

READ_CAPTURED_REDIRECT = r'''() => window.__autofillRedirectUrl || null'''
