"""
LLM Client wrapper for the answer evaluator.
Talks to a llama.cpp /completion server or the Gemini REST API, with retries.
"""
import time
import requests
import logging
from typing import Dict, Any, Optional
from dataclasses import dataclass

from utils.config import config, LLMConfig

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@dataclass
class LLMResponse:
    """Structured response from LLM."""
    content: str
    is_valid: bool
    raw_response: Dict[str, Any]
    tokens_used: int = 0


class LLMClient:
    """
    Client for the remote text-completion endpoint.
    Never raises from generate(); failures come back as invalid responses.
    """

    def __init__(self, settings: Optional[LLMConfig] = None, session: Optional[requests.Session] = None):
        self.settings = settings or config.llm
        self.provider = self.settings.provider
        self.timeout = self.settings.timeout
        self.max_retries = self.settings.max_retries
        self.http = session or requests.Session()
        logger.info(f"LLM Client initialized: provider={self.provider} (timeout={self.timeout}s)")

    def _make_request(self, url: str, payload: Dict[str, Any], params: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        """Make HTTP request to LLM server with retries."""
        last_error = None

        for attempt in range(self.max_retries + 1):
            try:
                response = self.http.post(
                    url,
                    json=payload,
                    params=params,
                    timeout=self.timeout
                )
                response.raise_for_status()
                return response.json()
            except requests.exceptions.Timeout as e:
                last_error = e
                if attempt < self.max_retries:
                    time.sleep(1 * (attempt + 1))
            except requests.exceptions.RequestException as e:
                last_error = e
                if attempt < self.max_retries:
                    time.sleep(0.5 * (attempt + 1))

        raise ConnectionError(f"Failed to reach LLM server after {self.max_retries + 1} attempts: {last_error}")

    def _llamacpp_payload(self, prompt: str, max_tokens: int, temperature: float) -> Dict[str, Any]:
        return {
            "prompt": prompt,
            "n_predict": max_tokens,
            "temperature": temperature,
            "top_p": self.settings.default_top_p,
            "repeat_penalty": self.settings.default_repeat_penalty,
        }

    def _gemini_payload(self, prompt: str, max_tokens: int, temperature: float) -> Dict[str, Any]:
        return {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": temperature,
                "maxOutputTokens": max_tokens,
            },
        }

    @staticmethod
    def _gemini_text(response: Dict[str, Any]) -> str:
        candidates = response.get("candidates") or []
        if not candidates:
            return ""
        parts = (candidates[0].get("content") or {}).get("parts") or []
        return "".join(p.get("text", "") for p in parts if isinstance(p.get("text"), str))

    def generate(
        self,
        prompt: str,
        max_tokens: int = 1024,
        temperature: Optional[float] = None,
    ) -> LLMResponse:
        """
        Generate completion from LLM.

        Args:
            prompt: The input prompt
            max_tokens: Maximum tokens to generate
            temperature: Sampling temperature (None uses default)

        Returns:
            LLMResponse with raw content
        """
        temperature = temperature if temperature is not None else self.settings.default_temperature

        try:
            if self.provider == "gemini":
                if not self.settings.api_key:
                    logger.warning("GEMINI_API_KEY not set, evaluator unavailable")
                    return LLMResponse(content="", is_valid=False, raw_response={"error": "missing api key"})
                response = self._make_request(
                    self.settings.gemini_url,
                    self._gemini_payload(prompt, max_tokens, temperature),
                    params={"key": self.settings.api_key},
                )
                content = self._gemini_text(response)
                tokens = (response.get("usageMetadata") or {}).get("candidatesTokenCount", 0)
            else:
                response = self._make_request(
                    self.settings.completion_url,
                    self._llamacpp_payload(prompt, max_tokens, temperature),
                )
                content = response.get("content", "")
                tokens = response.get("tokens_predicted", 0)

            return LLMResponse(
                content=content,
                is_valid=bool(content.strip()),
                raw_response=response,
                tokens_used=tokens
            )
        except Exception as e:
            logger.warning(f"LLM request failed: {e}")
            return LLMResponse(
                content="",
                is_valid=False,
                raw_response={"error": str(e)},
                tokens_used=0
            )

    def health_check(self) -> bool:
        """Check if LLM server is responding."""
        return self.generate("Hello", max_tokens=5).is_valid
