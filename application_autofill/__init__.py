"""
Application Autofill

Fills job application forms on live pages from a structured candidate profile,
escalating only the questions it cannot answer deterministically to an AI
answering service.

Features:
- Field collection with label, type, required flag and options
- Site profiles for Greenhouse, Workday and generic forms
- Native, virtual single and virtual multi dropdown interaction protocols
- Preset answers for recurring compliance questions
- Batched AI question escalation with pre-supplied answer replay
- Claude Desktop MCP integration

Usage:
    pip install application-autofill
    playwright install chromium
    application-autofill-server
"""

__version__ = "1.1.0"
__author__ = "Job Automator Team"
__email__ = "contact@jobautomator.dev"

from .engine import AutofillEngine
from .models import AIAnswer, AIQuestion, FieldType, FillResult, FormField
from .profile import Profile, load_profile
from .runtime import autofill_runtime, collect_questions, run_autofill_pass
from .session import FillSession
from .site_profiles import SITE_PROFILES, SiteProfile

__all__ = [
    "AutofillEngine",
    "AIAnswer",
    "AIQuestion",
    "FieldType",
    "FillResult",
    "FillSession",
    "FormField",
    "Profile",
    "SITE_PROFILES",
    "SiteProfile",
    "autofill_runtime",
    "collect_questions",
    "load_profile",
    "run_autofill_pass",
]
