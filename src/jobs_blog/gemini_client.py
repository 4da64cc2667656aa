# -*- coding: utf-8 -*-
"""
Gemini API client for AI-assisted rewriting.

Uses the REST API directly through httpx (no google-generativeai SDK).
"""
import logging

import httpx

from .config import settings

logger = logging.getLogger(__name__)

# Gemini API base URL
GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/models"


class GeminiClient:
    """
    Async client for the Google Gemini REST API.

    One request per call: failures are raised to the caller, never retried.
    """

    def __init__(
            self,
            api_key: str | None = None,
            model: str | None = None,
            temperature: float | None = None,
            max_tokens: int | None = None,
            timeout: int | None = None,
    ):
        """
        Initialize Gemini client.

        Args:
            api_key: Gemini API key. Defaults to settings.GEMINI_API_KEY.
            model: Model name. Defaults to settings.GEMINI_MODEL.
            temperature: Generation temperature. Defaults to settings.GEMINI_TEMPERATURE.
            max_tokens: Max output tokens. Defaults to settings.GEMINI_MAX_TOKENS.
            timeout: Request timeout in seconds. Defaults to settings.GEMINI_TIMEOUT.
        """
        self.api_key = api_key or settings.GEMINI_API_KEY
        self.model_name = model or settings.GEMINI_MODEL
        self.temperature = temperature if temperature is not None else settings.GEMINI_TEMPERATURE
        self.max_tokens = max_tokens or settings.GEMINI_MAX_TOKENS
        self.timeout = timeout or settings.GEMINI_TIMEOUT

    @property
    def url(self) -> str:
        """Get the API endpoint URL."""
        return f"{GEMINI_BASE_URL}/{self.model_name}:generateContent"

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def build_payload(self, prompt: str, system_prompt: str | None = None) -> dict:
        """Request body for generateContent."""
        payload = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": self.temperature,
                "maxOutputTokens": self.max_tokens,
            },
        }
        if system_prompt:
            payload["systemInstruction"] = {"parts": [{"text": system_prompt}]}
        return payload

    async def generate(self, prompt: str, system_prompt: str | None = None) -> str:
        """
        Generate text from a prompt.

        Args:
            prompt: The user prompt
            system_prompt: Optional system instruction

        Returns:
            Generated text ("" when Gemini returns no candidates)

        Raises:
            ValueError: if no API key is configured
            httpx.HTTPError: on transport or HTTP status errors
        """
        if not self.api_key:
            raise ValueError(
                "GEMINI_API_KEY is required. Set it in environment, .env file or admin settings."
            )

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(
                self.url,
                headers={
                    "Content-Type": "application/json",
                    "x-goog-api-key": self.api_key,
                },
                json=self.build_payload(prompt, system_prompt),
            )
            response.raise_for_status()

            data = response.json()
            candidates = data.get("candidates", [])

            if not candidates:
                logger.warning("Gemini returned no candidates")
                return ""

            parts = candidates[0].get("content", {}).get("parts", [])
            text = "".join(part.get("text", "") for part in parts)

            usage = data.get("usageMetadata", {})
            logger.debug(
                "Gemini generation complete",
                extra={
                    "prompt_length": len(prompt),
                    "response_length": len(text),
                    "tokens_in": usage.get("promptTokenCount", 0),
                    "tokens_out": usage.get("candidatesTokenCount", 0),
                },
            )

            return text
