"""
Orchestrator for one fill pass:
collection -> classification -> standard -> education -> custom/AI -> summary.
"""

import logging
from typing import List, Optional

from . import dom_scripts
from .field_categorizer import categorize_fields
from .field_collector import FieldCollector
from .handlers import CustomQuestionsHandler, EducationFieldsHandler, StandardFieldsHandler
from .models import AIQuestion, FillResult, PassFailed, PassOutcome, PassRedirected, PassSucceeded
from .session import FillSession
from .site_profiles import SITE_PROFILES, host_of

logger = logging.getLogger(__name__)


class AutofillEngine:
    def __init__(self, session: FillSession):
        self.logger = logger
        self.session = session

    async def detect_redirect(self) -> Optional[str]:
        """
        Return a URL when the real form lives elsewhere: either the page tried
        to open it in a new window, or it is embedded from another host.
        """
        page = self.session.page
        try:
            captured = await page.evaluate(dom_scripts.READ_CAPTURED_REDIRECT)
            if captured:
                self.logger.info(f"Page tried to open {captured}")
                return captured
        except Exception as e:
            self.logger.debug(f"Could not read captured window.open URL: {e}")

        try:
            sources = await page.evaluate(dom_scripts.FIND_IFRAME_SOURCES)
        except Exception as e:
            self.logger.debug(f"Could not list iframes: {e}")
            return None

        page_host = host_of(page.url)
        patterns = [pattern for profile in SITE_PROFILES.values() for pattern in profile.embed_patterns]
        for src in sources:
            if src.startswith('//'):
                src = 'https:' + src
            if not any(pattern in src for pattern in patterns):
                continue
            if host_of(src) and host_of(src) != page_host:
                self.logger.info(f"🔀 Application form is embedded from {src}")
                return src
        return None

    async def _collect(self):
        collector = FieldCollector(self.session.form_root, self.session.site, self.session.simulator)
        return categorize_fields(await collector.collect())

    async def run(self) -> PassOutcome:
        try:
            redirect = await self.detect_redirect()
            if redirect:
                return PassRedirected(redirect)

            categorized = await self._collect()
            self.logger.info(f"Categorized fields: {len(categorized.standard)} standard, "
                             f"{len(categorized.education)} education, {len(categorized.custom)} custom")

            standard = StandardFieldsHandler(self.session, categorized.standard)
            standard_result, standard_rerouted = await standard.fill(categorized.standard)
            education_result, education_rerouted = await EducationFieldsHandler(self.session).fill(
                categorized.education)
            custom_result = await CustomQuestionsHandler(self.session).fill(
                categorized.custom + standard_rerouted + education_rerouted)

            result: FillResult = standard_result + education_result + custom_result
            self.logger.info(f"🎉 Pass complete: {result.filled_count}/{result.total_fields} filled, "
                             f"{result.unmatched_count} unmatched, {result.ai_questions_handled} via AI")
            return PassSucceeded(result)
        except Exception as e:
            self.logger.error(f"Fill pass failed: {e}")
            return PassFailed(str(e))

    async def collect_questions(self) -> List[AIQuestion]:
        """Questions a fill pass would escalate, without filling anything."""
        categorized = await self._collect()
        rerouted = await StandardFieldsHandler(self.session, categorized.standard).rerouted(categorized.standard)
        rerouted += await EducationFieldsHandler(self.session).rerouted(categorized.education)
        return await CustomQuestionsHandler(self.session).collect_questions(categorized.custom + rerouted)
