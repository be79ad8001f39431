#!/usr/bin/env python3
"""
MCP Server for Application Autofill
Provides tools:
1. autofill_application - Fill a job application page from a candidate profile
2. collect_application_questions - List the questions that need AI answers
3. health_check - Server status

This server implements the Model Context Protocol (MCP) specification
for integration with Claude Desktop and other MCP clients.
"""

import asyncio
import logging
import sys
from datetime import datetime
from typing import Any, Dict, Optional

from mcp.server.fastmcp import FastMCP

from . import __version__
from .browser_session import BrowserSession
from .config import configure_logging

logger = logging.getLogger(__name__)

# Initialize FastMCP server
mcp = FastMCP("application-autofill-server")

# Browsers left open for manual review, keyed by URL
review_sessions: Dict[str, BrowserSession] = {}


async def _review_then_close(url: str, session: BrowserSession):
    try:
        await session.wait_for_user_submission()
    except Exception as e:
        logger.error(f"Review session error: {e}")
    finally:
        review_sessions.pop(url, None)


@mcp.tool()
async def autofill_application(url: str, profile: Dict[str, Any],
                               options: Optional[Dict[str, Any]] = None,
                               keep_open: bool = True) -> Dict[str, Any]:
    """
    Open a job application page and fill it from the candidate profile.

    Fields are matched to profile values deterministically; compliance
    questions use preset answers; the rest are answered by the AI service when
    `openaiApiKey` (or OPENAI_API_KEY) is available, or from `aiAnswerOverrides`
    collected earlier with `collect_application_questions`.

    Args:
        url: Application page URL
        profile: Candidate profile (personalInfo, additionalInfo, education, workExperience)
        options: siteProfile ("auto" | "greenhouse" | "workday" | "common"),
                 openaiApiKey, aiModel, aiAnswerOverrides
        keep_open: Leave the browser open for review and manual submission

    Returns:
        Fill summary, redirect target, or error
    """
    session = BrowserSession(headless=None if keep_open else True)
    try:
        logger.info(f"Starting autofill for {url}")
        await session.start()
        result = await session.autofill(url, profile, options or {})
    except Exception as e:
        error_msg = f"Autofill failed: {str(e)}"
        logger.error(error_msg)
        await session.close()
        return {"status": "error", "message": error_msg, "url": url}

    status = "error" if result.get("error") else "success"
    if keep_open and not session.headless and status == "success":
        review_sessions[url] = session
        asyncio.create_task(_review_then_close(url, session))
        browser_status = "open for review"
    else:
        await session.close()
        browser_status = "closed"

    return {"status": status, "url": url, "result": result, "browser_status": browser_status}


@mcp.tool()
async def collect_application_questions(url: str, profile: Dict[str, Any],
                                        options: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    List the questions on an application page that cannot be answered from the
    profile or preset answers. Answer them, then pass the answers to
    `autofill_application` as options.aiAnswerOverrides, e.g.
    [{"id": "question_123", "answer": "Yes", "selectedIndex": 0}].

    Args:
        url: Application page URL
        profile: Candidate profile
        options: siteProfile selection

    Returns:
        The questions with id, type, label, required and options
    """
    try:
        async with BrowserSession(headless=True) as session:
            questions = await session.collect_questions(url, profile, options or {})
        return {"status": "success", "url": url, "questions": questions, "count": len(questions)}
    except Exception as e:
        error_msg = f"Question collection failed: {str(e)}"
        logger.error(error_msg)
        return {"status": "error", "message": error_msg, "url": url}


@mcp.tool()
async def health_check() -> Dict[str, Any]:
    """
    Check the health status of the autofill server.

    Returns:
        A dictionary containing the server status and open review sessions
    """
    return {
        "status": "healthy",
        "server": "application-autofill-server",
        "version": __version__,
        "review_sessions": list(review_sessions),
        "timestamp": datetime.now().isoformat(),
        "tools_available": [
            "autofill_application",
            "collect_application_questions",
            "health_check"
        ]
    }


@mcp.resource("server://info")
def get_server_info() -> str:
    """Get information about the autofill server."""
    return f"""# Application Autofill Server

Fills job application forms (Greenhouse, Workday and generic pages) from a candidate profile.

## Available Tools:

### 1. autofill_application
- Input: `url`, `profile`, optional `options`, `keep_open`
- Output: `{{success, filled, total, unmatched, aiQuestionsHandled}}`, `{{redirect}}` or `{{error}}`

### 2. collect_application_questions
- Input: `url`, `profile`, optional `options`
- Output: questions that need an answer (id, type, label, required, options)

### 3. health_check
- Output: server status and open review sessions

## Two-phase workflow:
1. `collect_application_questions` to get the open questions
2. Answer them
3. `autofill_application` with `options.aiAnswerOverrides`

## Server Status:
- Version: {__version__}
- Review sessions: {len(review_sessions)}
- Timestamp: {datetime.now().isoformat()}
"""


def main():
    """Main entry point for the MCP server."""
    configure_logging('mcp_server')
    logger.info(f"Starting Application Autofill MCP Server v{__version__}")
    logger.info("Available tools: autofill_application, collect_application_questions, health_check")

    try:
        mcp.run()
    except KeyboardInterrupt:
        logger.info("Server stopped by user")
    except Exception as e:
        logger.error(f"Server error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
