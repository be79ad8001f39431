#!/usr/bin/env python3
"""
Browser host for the autofill engine.

Launches a stealth Chromium, loads the application page, runs one bridge call
and follows a reported redirect once. The browser can stay open afterwards so
the user can review and submit the form manually.
"""

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright
from undetected_playwright import stealth_async

from . import dom_scripts
from .config import configure_logging, env_flag
from .runtime import autofill_runtime, collect_questions

logger = logging.getLogger(__name__)

BROWSER_ARGS = [
    '--disable-blink-features=AutomationControlled',
    '--disable-dev-shm-usage',
    '--no-sandbox',
    '--disable-setuid-sandbox',
    '--disable-extensions',
    '--disable-plugins',
]

USER_AGENT = ('Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 '
              '(KHTML, like Gecko) Chrome/121.0.0.0 Safari/537.36')


class BrowserSession:
    def __init__(self, headless: Optional[bool] = None, config: Optional[Dict[str, Any]] = None):
        self.logger = logger
        self.headless = env_flag('AUTOFILL_HEADLESS') if headless is None else headless
        self.config = config or {}
        self.playwright: Optional[Playwright] = None
        self.browser: Optional[Browser] = None
        self.context: Optional[BrowserContext] = None
        self.page: Optional[Page] = None
        self.popup_url: Optional[str] = None

        self.timeouts = {
            'navigation': 15000,
            'page_settle': 1500,
            'overlay': 2000,
        }
        self.timeouts.update({k: v for k, v in self.config.items() if k in self.timeouts})

    async def __aenter__(self) -> 'BrowserSession':
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def start(self):
        """Initialize browser with stealth mode."""
        self.logger.info("Initializing browser...")
        self.playwright = await async_playwright().start()
        self.browser = await self.playwright.chromium.launch(headless=self.headless, args=BROWSER_ARGS)
        self.context = await self.browser.new_context(
            viewport={'width': 1280, 'height': 900},
            user_agent=USER_AGENT,
            extra_http_headers={'Accept-Language': 'en-US,en;q=0.9'},
        )
        # Installed before any page script runs so early window.open calls are caught too
        await self.context.add_init_script(f"({dom_scripts.INSTALL_WINDOW_OPEN_HOOK})()")
        self.page = await self.context.new_page()
        await stealth_async(self.page)
        self.page.on('popup', self._on_popup)
        self.logger.info("Browser initialized successfully")

    def _on_popup(self, popup: Page):
        self.popup_url = popup.url
        self.logger.info(f"Page opened a popup: {popup.url}")
        asyncio.ensure_future(popup.close())

    async def _smart_wait(self, milliseconds: int):
        await asyncio.sleep(milliseconds / 1000)

    async def navigate(self, url: str) -> Page:
        self.logger.info(f"Navigating to: {url}")
        self.popup_url = None
        response = await self.page.goto(url, timeout=self.timeouts['navigation'], wait_until='domcontentloaded')
        if response:
            self.logger.info(f"Navigation response: {response.status}")
        try:
            await self.page.wait_for_load_state('networkidle', timeout=self.timeouts['navigation'])
        except Exception as e:
            self.logger.debug(f"Network never went idle: {e}")
        await self._smart_wait(self.timeouts['page_settle'])
        await self._dismiss_overlays()
        return self.page

    async def _dismiss_overlays(self):
        """Dismiss cookie banners and modal overlays."""
        dismiss_selectors = [
            'button:has-text("Accept All")',
            'button:has-text("Accept Cookies")',
            'button:has-text("Accept")',
            'button:has-text("Dismiss")',
            '[aria-label="close"]',
            '.cookie-banner button',
            '.modal-close',
        ]
        for selector in dismiss_selectors:
            try:
                for element in await self.page.query_selector_all(selector):
                    box = await element.bounding_box()
                    if box and box['width'] > 0 and box['height'] > 0:
                        await element.click(timeout=self.timeouts['overlay'])
                        await self._smart_wait(300)
                        self.logger.info(f"Dismissed overlay with: {selector}")
                        return
            except Exception as e:
                self.logger.debug(f"Overlay selector {selector} failed: {e}")

    async def _record_popup_redirect(self):
        if self.popup_url and self.popup_url != 'about:blank':
            await self.page.evaluate('(url) => { window.__autofillRedirectUrl = url; }', self.popup_url)

    async def autofill(self, url: str, profile: Any, options: Any = None,
                       follow_redirect: bool = True) -> Dict[str, Any]:
        """Load ``url`` and run one fill pass, following one redirect if reported."""
        await self.navigate(url)
        await self._record_popup_redirect()
        result = await autofill_runtime(self.page, profile, options, config=self.config)

        if follow_redirect and result.get('redirect'):
            self.logger.info(f"🔀 Following redirect to {result['redirect']}")
            await self.navigate(result['redirect'])
            result = await autofill_runtime(self.page, profile, options, config=self.config)
            result.setdefault('redirectedFrom', url)
        return result

    async def collect_questions(self, url: str, profile: Any, options: Any = None) -> List[Dict[str, Any]]:
        await self.navigate(url)
        return await collect_questions(self.page, profile, options, config=self.config)

    async def wait_for_user_submission(self, poll_seconds: float = 2.0):
        """Keep the browser open until the user submits the form or closes the window."""
        self.logger.info("📋 Please review all filled fields and submit the form when ready")
        try:
            initial_url = self.page.url
            while True:
                await asyncio.sleep(poll_seconds)
                try:
                    if self.page.url != initial_url:
                        self.logger.info("🎉 Form submission detected")
                        break
                    submitted = await self.page.evaluate('''() => {
                        const text = document.body.innerText.toLowerCase();
                        return text.includes('thank you') ||
                               text.includes('application submitted') ||
                               text.includes('application received');
                    }''')
                    if submitted:
                        self.logger.info("🎉 Success message detected")
                        break
                except Exception:
                    self.logger.info("Browser closed or navigated away")
                    break
        finally:
            await self.close()

    async def close(self):
        """Release browser resources."""
        try:
            if self.context:
                await self.context.close()
            if self.browser:
                await self.browser.close()
            if self.playwright:
                await self.playwright.stop()
            self.logger.info("Browser resources cleaned up successfully")
        except Exception as e:
            self.logger.debug(f"Error during browser cleanup: {e}")
        finally:
            self.page = None
            self.context = None
            self.browser = None
            self.playwright = None


def _read_json(path: str) -> Dict[str, Any]:
    return json.loads(Path(path).read_text(encoding='utf-8'))


async def main():
    """Command line entry: fill one application page with a profile file."""
    if len(sys.argv) < 3:
        print("Usage: python -m application_autofill.browser_session <url> <profile.json> [options.json]")
        return

    configure_logging('browser_session')
    url, profile_path = sys.argv[1], sys.argv[2]
    options = _read_json(sys.argv[3]) if len(sys.argv) > 3 else {}

    session = BrowserSession()
    await session.start()
    result = await session.autofill(url, _read_json(profile_path), options)
    print(json.dumps(result, indent=2))
    if session.headless:
        await session.close()
    else:
        await session.wait_for_user_submission()


def run():
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\n⚠️ Program interrupted by user")


if __name__ == "__main__":
    run()
