"""
Runtime bridge: the single externally callable surface of the engine.

    result = await autofill_runtime(page, profile_json, options_json)

returns one of ``{success, filled, total, unmatched, aiQuestionsHandled}``,
``{redirect: url}`` or ``{error: message}``.
"""

import json
import logging
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError

from . import dom_scripts
from .answer_providers import AnswerProvider, provider_from_credentials
from .engine import AutofillEngine
from .errors import AutofillError, OptionsError
from .field_collector import find_form_frame
from .models import AutofillOptions, PassFailed, PassOutcome
from .profile import Profile, load_profile
from .session import FillSession
from .site_profiles import SiteProfile, detect_site_profile, get_site_profile

logger = logging.getLogger(__name__)

JsonInput = Union[str, bytes, Dict[str, Any], None]


def load_options(options: Union[JsonInput, AutofillOptions]) -> AutofillOptions:
    if isinstance(options, AutofillOptions):
        return options
    try:
        if isinstance(options, (str, bytes)):
            options = json.loads(options or '{}')
        return AutofillOptions.model_validate(options or {})
    except json.JSONDecodeError as e:
        raise OptionsError(f"Options are not valid JSON: {e}") from e
    except ValidationError as e:
        raise OptionsError(f"Invalid options: {e}") from e


async def resolve_site_profile(page, name: str) -> SiteProfile:
    if name and name.lower() != 'auto':
        profile = get_site_profile(name)
        if profile:
            return profile
        logger.warning(f"Unknown site profile '{name}', falling back to auto detection")
    return await detect_site_profile(page)


async def install_redirect_hook(page) -> None:
    """Capture window.open calls so a redirect can be reported instead of followed."""
    try:
        await page.evaluate(dom_scripts.INSTALL_WINDOW_OPEN_HOOK)
    except Exception as e:
        logger.debug(f"Could not install window.open hook: {e}")


async def build_session(page, profile: Profile, options: AutofillOptions,
                        answer_provider: Optional[AnswerProvider] = None,
                        config: Optional[Dict[str, Any]] = None) -> FillSession:
    site = await resolve_site_profile(page, options.site_profile)
    frame = await find_form_frame(page)
    if answer_provider is None and options.ai_answer_overrides is None:
        answer_provider = provider_from_credentials(
            options.openai_api_key, options.openai_base_url, options.ai_model)
    logger.info(f"Using site profile '{site.name}'")
    return FillSession.create(
        page, profile, site,
        frame=frame,
        answer_provider=answer_provider,
        answer_overrides=options.ai_answer_overrides,
        config=config,
    )


async def run_autofill_pass(page, profile: Union[JsonInput, Profile],
                            options: Union[JsonInput, AutofillOptions] = None,
                            answer_provider: Optional[AnswerProvider] = None,
                            config: Optional[Dict[str, Any]] = None) -> PassOutcome:
    """Run exactly one fill pass and return its typed outcome."""
    try:
        profile = load_profile(profile or {})
        options = load_options(options)
        await install_redirect_hook(page)
        session = await build_session(page, profile, options, answer_provider, config)
        return await AutofillEngine(session).run()
    except AutofillError as e:
        logger.error(f"Autofill rejected: {e}")
        return PassFailed(str(e))
    except Exception as e:
        logger.error(f"Autofill failed: {e}")
        return PassFailed(str(e))


async def autofill_runtime(page, profile_json: Union[JsonInput, Profile],
                           options_json: Union[JsonInput, AutofillOptions] = None,
                           answer_provider: Optional[AnswerProvider] = None,
                           config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """JSON-shaped bridge call. With ``collect_questions`` set, returns the questions instead."""
    try:
        options = load_options(options_json)
    except OptionsError as e:
        return PassFailed(str(e)).to_dict()

    if options.collect_questions:
        try:
            questions = await collect_questions(page, profile_json, options, config=config)
        except AutofillError as e:
            logger.error(f"Question collection rejected: {e}")
            return PassFailed(str(e)).to_dict()
        except Exception as e:
            logger.error(f"Question collection failed: {e}")
            return PassFailed(str(e)).to_dict()
        return {'questions': questions}

    outcome = await run_autofill_pass(page, profile_json, options, answer_provider, config)
    return outcome.to_dict()


async def collect_questions(page, profile_json: Union[JsonInput, Profile],
                            options_json: Union[JsonInput, AutofillOptions] = None,
                            config: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
    """
    Return the AI questions a pass would escalate, without filling anything,
    so the caller can fetch answers itself and replay them as overrides.

    Bad input raises ``ProfileError`` or ``OptionsError``; an empty list
    always means there is nothing to escalate.
    """
    profile = load_profile(profile_json or {})
    options = load_options(options_json)
    session = await build_session(page, profile, options, config=config)
    # No answers are requested in this mode
    session.answer_provider = None
    questions = await AutofillEngine(session).collect_questions()
    return [question.model_dump() for question in questions]
