"""
Interaction engine: commits values into live form controls.

Host pages are usually rendered by a framework that wraps native controls,
so values are written through the platform's native setters and followed by
the events the framework listens for. Script-rendered dropdowns have no
native semantics at all and are driven through synthetic pointer events.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Tuple

from playwright.async_api import ElementHandle, JSHandle

from . import dom_scripts
from .config import build_delays
from .option_matching import (
    find_option_index,
    is_index_token,
    is_truthy,
    match_native_option,
    normalize_text,
    parse_index_list,
    parse_option_index,
    split_multi_values,
)
from .site_profiles import SiteProfile

logger = logging.getLogger(__name__)


async def handles_from_array(array: JSHandle) -> List[ElementHandle]:
    """Unpack a JS array handle into element handles, preserving order."""
    properties = await array.get_properties()
    elements = []
    for key in sorted((k for k in properties if k.isdigit()), key=int):
        element = properties[key].as_element()
        if element:
            elements.append(element)
    await array.dispose()
    return elements


class InputSimulator:
    def __init__(self, site: SiteProfile, config: Optional[Dict[str, Any]] = None):
        self.logger = logger
        self.site = site
        self.delays = build_delays(config)
        self._cfg = site.selectors_payload()

    async def _smart_wait(self, milliseconds: int):
        await asyncio.sleep(milliseconds / 1000)

    def _arg(self, **extra) -> Dict[str, Any]:
        return {'cfg': self._cfg, **extra}

    async def _scroll_into_view(self, element: ElementHandle):
        try:
            await element.scroll_into_view_if_needed()
            await self._smart_wait(self.delays['scroll'])
        except Exception as e:
            self.logger.debug(f"Could not scroll element into view: {e}")

    # ------------------------------------------------------------------
    # Plain text
    # ------------------------------------------------------------------

    async def fill_input(self, element: ElementHandle, value: str) -> bool:
        """Assign a value verbatim to a text input or textarea."""
        try:
            await element.focus()
            await self._smart_wait(self.delays['focus'])
            actual = await element.evaluate(dom_scripts.SET_NATIVE_VALUE, {'value': value, 'commit': True})
            await self._smart_wait(self.delays['settle'])
            await element.evaluate('el => el.blur()')
            return actual == value
        except Exception as e:
            self.logger.debug(f"Text fill failed: {e}")
            return False

    # ------------------------------------------------------------------
    # Native <select>
    # ------------------------------------------------------------------

    async def read_select_options(self, element: ElementHandle) -> List[Dict[str, Any]]:
        return await element.evaluate(dom_scripts.READ_SELECT_OPTIONS)

    async def fill_select(self, element: ElementHandle, value: str, index_based: bool = False) -> bool:
        """
        Select a native option. With no value the first usable option is
        taken; otherwise the matching strategies run in priority order.
        Index tokens count only enabled options with a value.
        """
        try:
            options = await self.read_select_options(element)
            usable = [o for o in options if not o['disabled'] and o['value'] != '']
            if not usable:
                return False

            position = None
            if not value:
                position = usable[0]['position']
            elif index_based and is_index_token(value):
                index = parse_option_index(value, len(usable))
                if index is not None:
                    position = usable[index]['position']
            else:
                matched = match_native_option(options, value)
                if matched is not None:
                    position = options[matched]['position']

            if position is None:
                self.logger.debug(f"No native option matches '{value}'")
                return False
            return await element.evaluate(dom_scripts.COMMIT_SELECT, {'position': position})
        except Exception as e:
            self.logger.debug(f"Select fill failed: {e}")
            return False

    # ------------------------------------------------------------------
    # Virtual (script-rendered) dropdowns
    # ------------------------------------------------------------------

    async def current_values(self, element: ElementHandle) -> List[str]:
        try:
            return await element.evaluate(dom_scripts.CURRENT_VIRTUAL_VALUES, self._arg())
        except Exception as e:
            self.logger.debug(f"Could not read current dropdown value: {e}")
            return []

    async def _find_menu(self, anchor: ElementHandle, element: ElementHandle) -> Optional[ElementHandle]:
        handle = await anchor.evaluate_handle(dom_scripts.FIND_MENU, self._arg(input=element))
        menu = handle.as_element()
        if not menu:
            await handle.dispose()
        return menu

    async def _menu_options(self, menu: ElementHandle) -> Tuple[List[ElementHandle], List[str]]:
        options = await handles_from_array(await menu.evaluate_handle(dom_scripts.MENU_OPTIONS, self._arg()))
        texts = []
        for option in options:
            texts.append(' '.join((await option.text_content() or '').split()))
        return options, texts

    async def _wait_for_menu_with_options(self, anchor: ElementHandle, element: ElementHandle
                                          ) -> Optional[Tuple[List[ElementHandle], List[str]]]:
        """Poll for an open menu with at least one visible option."""
        for step in self.delays['menu_wait_steps']:
            await self._smart_wait(step)
            try:
                menu = await self._find_menu(anchor, element)
                if not menu:
                    continue
                options, texts = await self._menu_options(menu)
                if options:
                    return options, texts
            except Exception as e:
                self.logger.debug(f"Menu poll failed: {e}")
        return None

    async def _type_filter(self, element: ElementHandle, value: str):
        await element.evaluate(dom_scripts.SET_NATIVE_VALUE, {'value': value, 'commit': False})

    async def open_menu(self, element: ElementHandle, filter_text: Optional[str] = None
                        ) -> Optional[Tuple[List[ElementHandle], List[str]]]:
        """
        Open the dropdown owning ``element`` and return its visible options.

        Candidate anchors are tried in order (control wrapper, container,
        the input, then three ancestors). ``filter_text`` is typed into the
        input when the anchor is the control or the input itself.
        """
        await self._scroll_into_view(element)
        anchors = await handles_from_array(
            await element.evaluate_handle(dom_scripts.ANCHOR_CANDIDATES, self._arg()))
        for anchor in anchors:
            try:
                await anchor.evaluate(dom_scripts.OPEN_MENU, self._arg(input=element))
                await self._smart_wait(self.delays['click_settle'])
                if filter_text:
                    kind = await anchor.evaluate(dom_scripts.ANCHOR_KIND, self._arg(input=element))
                    if kind in ('control', 'input'):
                        await self._type_filter(element, filter_text)
                found = await self._wait_for_menu_with_options(anchor, element)
                if found:
                    return found
            except Exception as e:
                self.logger.debug(f"Anchor failed to open menu: {e}")
        self.logger.debug("Dropdown menu never appeared")
        return None

    async def close_menu(self, element: ElementHandle):
        try:
            await element.evaluate(dom_scripts.CLOSE_MENU)
            await self._smart_wait(self.delays['menu_close'])
        except Exception as e:
            self.logger.debug(f"Error closing menu: {e}")

    async def read_virtual_options(self, element: ElementHandle) -> List[str]:
        """Open the dropdown just long enough to read its option texts."""
        found = await self.open_menu(element)
        await self.close_menu(element)
        return found[1] if found else []

    async def select_option(self, option: ElementHandle) -> bool:
        """
        Click an option like a user would, retrying on its ancestors until it
        reports itself selected or leaves the document.
        """
        candidates = await handles_from_array(
            await option.evaluate_handle(dom_scripts.CLICK_CANDIDATES, self._arg()))
        for candidate in candidates:
            try:
                await candidate.evaluate(dom_scripts.HOVER_NODE, self._arg())
                await self._smart_wait(self.delays['hover'])
                await candidate.evaluate(dom_scripts.PRESS_NODE, self._arg())
                await self._smart_wait(self.delays['option_commit'])
                state = await option.evaluate(dom_scripts.OPTION_STATE)
                if state != 'pending':
                    return True
            except Exception as e:
                # A detached candidate usually means the menu closed on selection
                self.logger.debug(f"Option click candidate failed: {e}")
                try:
                    if await option.evaluate(dom_scripts.OPTION_STATE) != 'pending':
                        return True
                except Exception:
                    return True
        return False

    async def _already_selected(self, element: ElementHandle, target_text: str) -> bool:
        wanted = normalize_text(target_text)
        return bool(wanted) and any(normalize_text(v) == wanted for v in await self.current_values(element))

    async def fill_virtual_select(self, element: ElementHandle, value: str, index_based: bool = False,
                                  multi: bool = False) -> bool:
        """Single-select protocol for a script-rendered dropdown."""
        try:
            if value and not index_based and not multi and await self._already_selected(element, value):
                self.logger.debug(f"Dropdown already shows '{value}'")
                return True

            typed = value if (value and not multi and not index_based) else None
            found = await self.open_menu(element, filter_text=typed)
            if not found and typed:
                # Host filtering may have hidden every option; retry unfiltered
                await self._type_filter(element, '')
                found = await self.open_menu(element)
            if not found:
                return False
            options, texts = found

            if not value:
                index = 0
            else:
                index = find_option_index(texts, value, index_based)
            if index is None:
                self.logger.debug(f"No dropdown option matches '{value}' in {texts}")
                await self.close_menu(element)
                return False

            if await self._already_selected(element, texts[index]):
                await self.close_menu(element)
                return True
            return await self.select_option(options[index])
        except Exception as e:
            self.logger.debug(f"Virtual select fill failed: {e}")
            return False

    async def fill_multi_virtual_select(self, element: ElementHandle, value: str,
                                        index_based: bool = False) -> bool:
        """
        Apply each item of a multi value through the single-select protocol.
        Index tokens are resolved to option texts up front, since selected
        options usually disappear from the menu and shift later indices.
        """
        items = split_multi_values(value)
        if index_based and items:
            found = await self.open_menu(element)
            await self.close_menu(element)
            if not found:
                return False
            texts = found[1]
            items = [texts[i] for i in parse_index_list(value, len(texts))]

        current = [normalize_text(v) for v in await self.current_values(element)]
        any_success = False
        for item in items:
            if normalize_text(item) in current:
                any_success = True
                continue
            if await self.fill_virtual_select(element, item, multi=True):
                any_success = True

        if not any_success and not current:
            self.logger.debug("No multi-select item matched, selecting the first option")
            any_success = await self.fill_virtual_select(element, '', multi=True)
        return any_success

    # ------------------------------------------------------------------
    # Checkboxes and radios
    # ------------------------------------------------------------------

    async def group_members(self, element: ElementHandle) -> List[ElementHandle]:
        return await handles_from_array(await element.evaluate_handle(dom_scripts.GROUP_MEMBERS, self._arg()))

    async def _click_checkable(self, element: ElementHandle) -> bool:
        await self._scroll_into_view(element)
        checked = await element.evaluate(dom_scripts.TOGGLE_CHECKABLE, self._arg())
        await self._smart_wait(self.delays['checkbox_settle'])
        return checked

    async def fill_checkbox(self, element: ElementHandle, value: str, index_based: bool = False) -> bool:
        """
        Index mode checks every listed member of the group; otherwise a
        boolean-like token decides the state of this single checkbox.
        """
        try:
            if index_based:
                members = await self.group_members(element)
                indices = parse_index_list(value, len(members))
                if not indices:
                    return False
                all_checked = True
                for index in indices:
                    box = members[index]
                    if not await box.evaluate(dom_scripts.IS_CHECKED) and not await self._click_checkable(box):
                        all_checked = False
                return all_checked

            wanted = is_truthy(value)
            if await element.evaluate(dom_scripts.IS_CHECKED) != wanted:
                return await self._click_checkable(element) == wanted
            return True
        except Exception as e:
            self.logger.debug(f"Checkbox fill failed: {e}")
            return False

    async def fill_radio(self, element: ElementHandle, value: str, index_based: bool = False) -> bool:
        try:
            members = await self.group_members(element)
            labels = await element.evaluate(dom_scripts.GROUP_OPTION_LABELS, self._arg())
            index = find_option_index(labels, value, index_based) if value else None
            if index is None or index >= len(members):
                return False
            radio = members[index]
            if await radio.evaluate(dom_scripts.IS_CHECKED):
                return True
            return await self._click_checkable(radio)
        except Exception as e:
            self.logger.debug(f"Radio fill failed: {e}")
            return False
