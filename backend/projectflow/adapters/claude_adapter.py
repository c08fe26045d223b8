"""Claude Intent Adapter.

Implements IntentExtractor using Claude via Anthropic's OpenAI-compatible API.
This approach provides:
- The same client stack (openai.AsyncOpenAI) as other providers
- A single-turn request with low temperature for stable parsing

Default model: claude-sonnet-4-5 (configurable via CLAUDE_MODEL env var)
"""

import json
import logging
import re

from openai import APIError, APITimeoutError, AsyncOpenAI, RateLimitError
from pydantic import ValidationError

from projectflow.config import get_anthropic_api_key, get_claude_base_url, get_claude_model
from projectflow.domain.constants import VoiceMessages
from projectflow.domain.value_objects.project_context import ProjectContext
from projectflow.infrastructure.usage_tracker import log_claude_usage
from projectflow.ports.llm_service import (
    IntentExtractor,
    IntentResult,
    LLMRateLimitError,
    LLMServiceError,
    LLMTimeoutError,
    UnknownIntent,
    intent_result_adapter,
)

logger = logging.getLogger(__name__)

VOICE_SYSTEM_PROMPT = (
    "You are a voice command parser for a project management app. "
    "Extract structured data from natural language voice commands. "
    "Be precise and only extract clear information. "
    "Respond with a single JSON object and nothing else."
)

_CODE_FENCE = re.compile(r"^\s*```(?:json)?\s*(.*?)\s*```\s*$", re.DOTALL | re.IGNORECASE)


def build_voice_prompt(text: str, project_context: ProjectContext | None = None) -> str:
    """Build the single-turn intent extraction prompt."""
    project_id = project_context.project_id if project_context else ""
    prompt_parts = [f'Analyze this voice input and determine the user\'s intent: "{text}"', ""]
    if project_context:
        prompt_parts.extend(
            [
                f'Context: Currently in project "{project_context.project_name}" '
                f"(ID: {project_context.project_id})",
                "",
            ]
        )
    prompt_parts.extend(
        [
            "Return JSON with:",
            "{",
            '  "intent": "create_task|create_project|query|unknown",',
            '  "data": {',
            '    "title": "extracted title",',
            '    "description": "extracted description",',
            '    "priority": "low|medium|high",',
            f'    "project_id": "{project_id}"',
            "  },",
            '  "clarification": "question if more info needed"',
            "}",
        ]
    )
    return "\n".join(prompt_parts)


def parse_intent_content(content: str) -> IntentResult:
    """Parse model output into an IntentResult.

    Tolerates a surrounding Markdown code fence.

    Raises:
        ValueError: If the content is not valid JSON or doesn't match the schema
    """
    fenced = _CODE_FENCE.match(content)
    if fenced:
        content = fenced.group(1)
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON response: {e}") from e
    try:
        return intent_result_adapter.validate_python(data)
    except ValidationError as e:
        raise ValueError(f"Intent schema mismatch: {e.error_count()} errors") from e


class ClaudeIntentAdapter(IntentExtractor):
    """Claude intent extractor using the OpenAI-compatible API.

    Never raises for model or parse failures: every failure becomes an
    UnknownIntent asking the user to try again. No retries here.
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str | None = None,
        timeout: float = 15.0,
        client: AsyncOpenAI | None = None,
    ) -> None:
        """Initialize Claude adapter.

        Args:
            api_key: Anthropic API key. Defaults to ANTHROPIC_API_KEY env var.
            model: Model name. Defaults to CLAUDE_MODEL env var.
            base_url: OpenAI-compatible API endpoint. Defaults to CLAUDE_BASE_URL.
            timeout: Request timeout in seconds.
            client: Preconfigured client (tests)
        """
        self._model = model or get_claude_model()
        if client is not None:
            self._client = client
        else:
            api_key = api_key or get_anthropic_api_key()
            if not api_key:
                raise ValueError("ANTHROPIC_API_KEY environment variable required")
            self._client = AsyncOpenAI(
                api_key=api_key,
                base_url=base_url or get_claude_base_url(),
                timeout=timeout,
            )
        logger.info(f"ClaudeIntentAdapter initialized with model: {self._model}")

    async def process_voice_input(
        self,
        text: str,
        project_context: ProjectContext | None = None,
    ) -> IntentResult:
        """Extract intent from a voice command.

        Args:
            text: Raw recognized command text
            project_context: Current project, embedded in the prompt

        Returns:
            Parsed intent, or UnknownIntent with a clarification on failure
        """
        try:
            content = await self._complete(build_voice_prompt(text, project_context))
            result = parse_intent_content(content)
        except (LLMServiceError, ValueError) as e:
            logger.warning(f"Voice intent extraction failed: {e}", extra={"text": text[:50]})
            return UnknownIntent(clarification=VoiceMessages.CLARIFY)

        logger.debug("voice_intent", extra={"intent": result.intent, "text": text[:50]})
        return result

    async def _complete(self, user_prompt: str) -> str:
        """Run one completion and return its text content.

        Raises:
            LLMServiceError: If the request fails or returns no content
            LLMRateLimitError: If rate limited
            LLMTimeoutError: If request times out
        """
        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=[
                    {"role": "system", "content": VOICE_SYSTEM_PROMPT},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=0.1,
                max_tokens=1000,
            )
        except RateLimitError as e:
            logger.warning(f"Claude rate limited: {e}")
            raise LLMRateLimitError(str(e)) from e
        except APITimeoutError as e:
            logger.warning(f"Claude timeout: {e}")
            raise LLMTimeoutError(str(e)) from e
        except APIError as e:
            logger.error(f"Claude request failed: {e}")
            raise LLMServiceError(str(e)) from e

        if response.usage:
            log_claude_usage(
                model=self._model,
                prompt_tokens=response.usage.prompt_tokens,
                completion_tokens=response.usage.completion_tokens,
            )
            logger.debug(
                "llm_usage",
                extra={
                    "model": self._model,
                    "prompt_tokens": response.usage.prompt_tokens,
                    "completion_tokens": response.usage.completion_tokens,
                    "total_tokens": response.usage.total_tokens,
                },
            )

        if not response.choices or not response.choices[0].message.content:
            raise LLMServiceError("Empty response from Claude")
        return response.choices[0].message.content
