"""
LLM API Client

The provider (DeepSeek by default) speaks the OpenAI chat API, so we use
the openai library with a configurable base URL.

AI is used ONLY for:
- "Why this candidate" justifications for the top-ranked matches
- Job description -> skills extraction

Scores, filtering and ranking never depend on the model. Callers own
retries and fallbacks, so the SDK's own retries are switched off here.
"""
import json
import logging
from typing import Optional

from openai import OpenAI

from placement_matching.core.config import get_settings

logger = logging.getLogger(__name__)


class LLMClient:
    """
    Thin wrapper around an OpenAI-compatible chat completion endpoint.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None
    ):
        settings = get_settings()
        self.client = OpenAI(
            api_key=api_key or settings.llm_api_key,
            base_url=base_url or settings.llm_base_url,
            timeout=timeout or settings.matching.justification_timeout,
            max_retries=0
        )
        self.model = model or settings.llm_model

    def complete(
        self,
        system_prompt: str,
        user_content: str,
        max_tokens: int = 256,
        temperature: float = 0.6,
        json_mode: bool = False
    ) -> str:
        """
        Call the chat API and return the raw text response.
        """
        kwargs = {}
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        response = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_content}
            ],
            max_tokens=max_tokens,
            temperature=temperature,
            **kwargs
        )
        return (response.choices[0].message.content or "").strip()

    def extract_json(self, text: str) -> dict:
        """
        Extract JSON from API response.
        Handles cases where model wraps JSON in markdown code blocks.
        """
        text = text.strip()
        if text.startswith("```json"):
            text = text[7:]
        if text.startswith("```"):
            text = text[3:]
        if text.endswith("```"):
            text = text[:-3]

        return json.loads(text.strip())

    def test_connection(self) -> bool:
        """Test if the LLM API is reachable"""
        try:
            response = self.complete(
                "You are a test assistant.",
                "Reply with exactly: OK",
                max_tokens=10,
                temperature=0
            )
            return "OK" in response.upper()
        except Exception as e:
            logger.warning("LLM connection failed: %s", e)
            return False


# Singleton instance
_llm_client: Optional[LLMClient] = None


def get_llm_client() -> Optional[LLMClient]:
    """Get or create the LLM client. None when no API key is configured."""
    global _llm_client
    if not get_settings().llm_enabled:
        return None
    if _llm_client is None:
        _llm_client = LLMClient()
    return _llm_client
