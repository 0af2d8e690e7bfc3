from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, List, Optional

import jsonschema
import requests

from pipeline.config import LLMSettings


logger = logging.getLogger(__name__)


class AgentUnavailable(RuntimeError):
    """The text-generation service could not produce a usable reply."""


class BaseAgent:
    def __init__(self, name: str, system_prompt: str, settings: LLMSettings, schema: Optional[Dict] = None):
        self.name = name
        self.system_prompt = system_prompt
        self.settings = settings
        self.schema = schema

    def call_openrouter(self, messages: List[Dict[str, str]], model: Optional[str] = None) -> str:
        """Single request/response exchange; no retries."""
        if not self.settings.configured:
            raise AgentUnavailable("OPENROUTER_API_KEY is not set")

        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.settings.api_key}",
            # Optional but recommended by OpenRouter
            "HTTP-Referer": self.settings.http_referer,
            "X-Title": self.settings.app_title,
        }
        data = {
            "model": model or self.settings.model,
            "messages": messages,
            "temperature": self.settings.temperature,
            "max_tokens": self.settings.max_tokens,
        }

        try:
            response = requests.post(self.settings.base_url, headers=headers, json=data, timeout=self.settings.timeout)
        except requests.RequestException as exc:
            raise AgentUnavailable(f"OpenRouter request failed: {exc}") from exc
        if response.status_code != 200:
            raise AgentUnavailable(f"OpenRouter API Error: {response.status_code} - {response.text[:200]}")
        try:
            body = response.json()
            return body["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise AgentUnavailable(f"Unexpected OpenRouter response shape: {exc}") from exc

    def _extract_json(self, text: str) -> Optional[Dict[str, Any]]:
        # Try direct JSON
        try:
            data = json.loads(text)
        except (TypeError, ValueError):
            data = None
        if data is None and isinstance(text, str):
            # Try to find first JSON object in text
            match = re.search(r"\{[\s\S]*\}", text)
            if match:
                try:
                    data = json.loads(match.group(0))
                except ValueError:
                    logger.debug("Failed to parse JSON from text (len=%d)", len(text))
        return data if isinstance(data, dict) else None

    def build_messages(self, user_message: str, context: Optional[Dict] = None) -> List[Dict[str, str]]:
        messages: List[Dict[str, str]] = [
            {"role": "system", "content": self.system_prompt},
            {"role": "user", "content": user_message},
        ]
        if context:
            messages.insert(1, {"role": "system", "content": f"Context: {json.dumps(context, ensure_ascii=False)}"})
        return messages

    def respond_json(self, user_message: str, context: Optional[Dict] = None) -> Dict[str, Any]:
        """Ask for a JSON object and validate it against ``self.schema``.

        Raises AgentUnavailable when the call fails, no JSON object can be found,
        or the object does not match the schema.
        """
        messages = self.build_messages(user_message, context)
        logger.debug("%s: calling model with %d messages", self.name, len(messages))
        response_text = self.call_openrouter(messages)
        logger.debug("%s: raw response length=%d", self.name, len(response_text) if isinstance(response_text, str) else 0)

        response_json = self._extract_json(response_text)
        if response_json is None:
            raise AgentUnavailable("No JSON object found in response")
        if self.schema:
            try:
                jsonschema.validate(instance=response_json, schema=self.schema)
            except jsonschema.ValidationError as exc:
                raise AgentUnavailable(f"Response failed schema validation: {exc.message}") from exc
        return response_json
