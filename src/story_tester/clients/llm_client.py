"""
OpenAI LLM Client
Thin wrapper over the chat completions API used for test case generation.
The model is treated as a black box: prompt in, JSON text and usage out.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from story_tester.config import Settings
from story_tester.core.errors import GenerationError

logger = logging.getLogger(__name__)


@dataclass
class Usage:
    """Token usage reported by the model"""
    prompt_tokens: int = 0
    completion_tokens: int = 0


class LLMClient:
    """Client for OpenAI API interactions."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        settings: Optional[Settings] = None,
        client=None
    ):
        """
        Initialize LLM client.

        Args:
            api_key: OpenAI key (default: from settings)
            model: Model to use (default: from settings)
            settings: Runtime settings
            client: Pre-built OpenAI client, mainly for tests
        """
        settings = settings or Settings()
        self.api_key = api_key or settings.openai_api_key
        self.model = model or settings.openai_model
        self._client = client
        self.enabled = bool(self.api_key) or client is not None

    def status_label(self) -> str:
        """Get a status label for the LLM."""
        if not self.enabled:
            return "AI: OFF (no key)"
        return f"AI: ON ({self.model})"

    def _get_client(self):
        if self._client is None:
            from openai import OpenAI
            self._client = OpenAI(api_key=self.api_key)
        return self._client

    def complete_json(
        self,
        sys_prompt: str,
        user_prompt: str,
        max_tokens: int = 3000
    ) -> Tuple[str, Usage]:
        """
        Send a request to the LLM and get a JSON response.

        Args:
            sys_prompt: System prompt
            user_prompt: User prompt
            max_tokens: Maximum tokens in response

        Returns:
            Tuple of (response_text, usage)

        Raises:
            GenerationError: If AI is disabled or the API call fails
        """
        if not self.enabled:
            raise GenerationError("AI disabled or missing OPENAI_API_KEY")

        client = self._get_client()
        try:
            resp = client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": sys_prompt},
                    {"role": "user", "content": user_prompt}
                ],
                response_format={"type": "json_object"},
                max_tokens=max_tokens,
                temperature=0.2,
            )
        except Exception as e:
            logger.error(f"OpenAI call failed: {type(e).__name__}: {e}")
            raise GenerationError(f"AI service call failed: {e}") from e

        text = (resp.choices[0].message.content or "").strip()
        usage = Usage()
        if getattr(resp, "usage", None) is not None:
            usage = Usage(
                prompt_tokens=resp.usage.prompt_tokens or 0,
                completion_tokens=resp.usage.completion_tokens or 0,
            )
        logger.info(
            f"OpenAI {self.model} returned {len(text)} chars "
            f"({usage.prompt_tokens} prompt / {usage.completion_tokens} completion tokens)"
        )
        return text, usage
