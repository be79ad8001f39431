"""
AI answering collaborators.

A provider receives the batched questions plus the profile and returns an
AnswerBatch. Providers never raise: any failure degrades to an empty batch.
"""

import json
import logging
import os
import re
from typing import List, Optional, Protocol, Sequence

from openai import AsyncOpenAI, OpenAIError
from pydantic import ValidationError

from .models import AIAnswer, AIQuestion, AnswerBatch
from .profile import Profile

logger = logging.getLogger(__name__)

DEFAULT_MODEL = 'gpt-4o'

SYSTEM_PROMPT = (
    "You answer job application questions on behalf of a candidate, using only the "
    "candidate profile provided. Answer every question. For SELECT questions return "
    '{"id": "...", "answer": "option text", "selectedIndex": n}. For CHECKBOX and '
    'MULTI questions return {"id": "...", "answer": "text", "selectedIndices": [n, ...]}. '
    "Return a JSON array."
)


class AnswerProvider(Protocol):
    async def answer(self, questions: Sequence[AIQuestion], profile: Profile) -> AnswerBatch:
        ...


def _question_kind(question: AIQuestion) -> str:
    if not question.options:
        return 'TEXT'
    if question.type in ('checkbox', 'multi_select'):
        return 'CHECKBOX' if question.type == 'checkbox' else 'MULTI'
    return 'SELECT'


def build_prompt(questions: Sequence[AIQuestion], profile: Profile) -> str:
    """Render the user prompt: candidate summary followed by numbered questions."""
    info = profile.personal_info

    question_lines = []
    for number, question in enumerate(questions, 1):
        text = f"{number}. [id: {question.id}] {question.label}"
        if question.required:
            text += ' (REQUIRED)'
        if question.options:
            options = ', '.join(f"[{i}] {option}" for i, option in enumerate(question.options))
            text += f"\n   Type: {_question_kind(question)}\n   Options: {options}"
        question_lines.append(text)

    work_history = '\n\n'.join(
        '\n'.join(part for part in (
            f"Company: {job.company}" if job.company else None,
            f"Role: {job.position}" if job.position else None,
            f"Period: {job.start_date or 'N/A'} - {job.end_date or 'Present'}"
            if job.start_date or job.end_date else None,
            f"Description: {job.description}" if job.description else None,
        ) if part)
        for job in profile.work_experience
    ) or 'Not provided'

    education = '\n\n'.join(
        '\n'.join(part for part in (
            f"School: {edu.school}" if edu.school else None,
            f"Degree: {edu.degree}" if edu.degree else None,
            f"Major: {edu.major}" if edu.major else None,
            f"Period: {edu.start_date or 'N/A'} - {edu.end_date or 'Present'}"
            if edu.start_date or edu.end_date else None,
            f"GPA: {edu.gpa}" if edu.gpa else None,
        ) if part)
        for edu in profile.education
    ) or 'Not provided'

    additional = '\n'.join(
        f"{key}: {value}" for key, value in profile.summary()['additionalInfo'].items() if value
    ) or 'Not provided'

    location = ', '.join(part for part in (info.city, info.state, info.country) if part)
    questions_text = '\n'.join(question_lines)
    return f"""
CANDIDATE: {info.first_name} {info.last_name}
Contact: {info.email} | {info.phone.country_code} {info.phone.number}
Location: {location}

WORK HISTORY:
{work_history}

EDUCATION:
{education}

ADDITIONAL INFO:
{additional}

QUESTIONS:
{questions_text}

RULES:
1. Base every answer on the candidate profile; make reasonable inferences where it is silent.
2. Work authorization and demographic questions: answer from the profile, otherwise pick the
   option closest to "prefer not to say".
3. Text answers: 40-150 words, first person.
4. Copy each question's id exactly into the "id" field.

FORMAT:
- SELECT: {{"id": "question id", "answer": "exact option text", "selectedIndex": 0}}
- CHECKBOX / MULTI: {{"id": "question id", "answer": "Opt1, Opt2", "selectedIndices": [0, 2]}}
- TEXT: {{"id": "question id", "answer": "your answer"}}

Return ONLY a valid JSON array.
"""


def parse_answers(content: str) -> List[AIAnswer]:
    """Extract answers from the first JSON array in a model response."""
    if not content:
        return []
    match = re.search(r'\[[\s\S]*\]', content)
    if not match:
        return []
    try:
        parsed = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        logger.warning(f"AI response is not valid JSON: {e}")
        return []
    if not isinstance(parsed, list):
        return []

    answers = []
    for item in parsed:
        try:
            answers.append(AIAnswer.model_validate(item))
        except ValidationError as e:
            logger.debug(f"Dropping malformed answer {item!r}: {e}")
    return answers


class OpenAIAnswerProvider:
    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout_s: float = 60.0,
        max_retries: int = 2,
        temperature: float = 0.7,
    ):
        self.logger = logger
        self._model = model or os.getenv('OPENAI_MODEL', DEFAULT_MODEL).strip()
        self._temperature = temperature
        self._client = AsyncOpenAI(
            api_key=api_key,
            base_url=(base_url or os.getenv('OPENAI_BASE_URL') or None),
            timeout=float(os.getenv('OPENAI_TIMEOUT_S', str(timeout_s))),
            max_retries=int(os.getenv('OPENAI_MAX_RETRIES', str(max_retries))),
        )

    async def answer(self, questions: Sequence[AIQuestion], profile: Profile) -> AnswerBatch:
        if not questions:
            return AnswerBatch()

        prompt = build_prompt(questions, profile)
        self.logger.info(f"Sending {len(questions)} questions to {self._model}")
        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=[
                    {'role': 'system', 'content': SYSTEM_PROMPT},
                    {'role': 'user', 'content': prompt},
                ],
                temperature=self._temperature,
                max_tokens=2000,
            )
            content = response.choices[0].message.content or ''
        except (OpenAIError, IndexError) as e:
            self.logger.warning(f"AI answering failed: {e}")
            return AnswerBatch(prompt=prompt)

        answers = parse_answers(content)
        self.logger.info(f"Received {len(answers)} answers")
        return AnswerBatch(answers=answers, prompt=prompt, raw_response=content)


def provider_from_credentials(api_key: Optional[str] = None, base_url: Optional[str] = None,
                              model: Optional[str] = None) -> Optional[OpenAIAnswerProvider]:
    """Build the OpenAI provider when a key is available, else None."""
    key = (api_key or os.getenv('OPENAI_API_KEY') or '').strip()
    if not key:
        return None
    return OpenAIAnswerProvider(api_key=key, model=model, base_url=base_url)
