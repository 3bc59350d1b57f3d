"""
Gemini chat client.

Turns role-tagged messages into google-genai `contents`. Gemini has no system
role, so a system message is sent as a leading user turn.
"""
import json
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.0-flash"
DEFAULT_MAX_TOKENS = 2048
DEFAULT_TEMPERATURE = 0.7


class LLMError(Exception):
    """Raised when the LLM is not configured or returns nothing usable."""


@dataclass
class LLMConfig:
    api_key: Optional[str]
    model_name: str = DEFAULT_MODEL

    @classmethod
    def from_env(cls) -> "LLMConfig":
        return cls(
            api_key=os.getenv("LLM_API_KEY"),
            model_name=os.getenv("LLM_MODEL_NAME", DEFAULT_MODEL),
        )


def build_contents(messages: List[Dict[str, str]]) -> List[Dict[str, Any]]:
    """Map `{role, content}` messages onto Gemini `contents`."""
    system_parts = [m["content"] for m in messages if m.get("role") == "system"]
    contents: List[Dict[str, Any]] = []
    if system_parts:
        system_text = "\n\n".join(system_parts)
        contents.append({
            "role": "user",
            "parts": [{
                "text": f"SYSTEM INSTRUCTIONS:\n{system_text}\n\n---\n\nNow respond to the following:",
            }],
        })
    for message in messages:
        role = message.get("role")
        if role == "system":
            continue
        contents.append({
            "role": "model" if role == "assistant" else "user",
            "parts": [{"text": message.get("content", "")}],
        })
    return contents


class LLMClient:
    def __init__(self, config: Optional[LLMConfig] = None) -> None:
        self.config = config or LLMConfig.from_env()

    @property
    def is_configured(self) -> bool:
        return bool(self.config.api_key)

    def invoke(
        self,
        messages: List[Dict[str, str]],
        max_tokens: int = DEFAULT_MAX_TOKENS,
        *,
        json_response: bool = False,
    ) -> str:
        if not self.config.api_key:
            raise LLMError("LLM_API_KEY is not configured")

        from google import genai

        client = genai.Client(api_key=self.config.api_key)
        config: Dict[str, Any] = {
            "temperature": DEFAULT_TEMPERATURE,
            "max_output_tokens": max_tokens,
        }
        if json_response:
            config["response_mime_type"] = "application/json"
        try:
            response = client.models.generate_content(
                model=self.config.model_name,
                contents=build_contents(messages),
                config=config,
            )
        except Exception as exc:
            logger.error("Gemini request failed: %s", exc)
            raise LLMError(f"LLM request failed: {exc}") from exc

        text = response.text if response is not None else None
        if not text:
            raise LLMError("Empty response from LLM")
        return text

    def invoke_json(self, messages: List[Dict[str, str]], max_tokens: int = DEFAULT_MAX_TOKENS) -> Dict[str, Any]:
        text = self.invoke(messages, max_tokens, json_response=True)
        cleaned = text.strip()
        if cleaned.startswith("```"):
            cleaned = cleaned.strip("`")
            if cleaned.lower().startswith("json"):
                cleaned = cleaned[4:]
        try:
            return json.loads(cleaned)
        except json.JSONDecodeError as exc:
            raise LLMError(f"LLM returned invalid JSON: {exc}") from exc


_llm_client: Optional[LLMClient] = None


def get_llm_client() -> LLMClient:
    global _llm_client
    if _llm_client is None:
        _llm_client = LLMClient()
    return _llm_client


def reset_llm_client_for_tests() -> None:
    global _llm_client
    _llm_client = None
