# analyzer.py - calls the external model and turns its answer into a SentenceAnalysis

import json
import logging
import re

import anthropic
import google.generativeai as genai
from pydantic import ValidationError

from config import Settings
from errors import ConfigurationMissing, UpstreamFailure
from models import SentenceAnalysis
from prompts import (
    ANALYSIS_SCHEMA,
    TOOL_DESCRIPTION,
    TOOL_NAME,
    build_prompt,
    to_gemini_schema,
)
from sanitize import sanitize_analysis

logger = logging.getLogger(__name__)


# ========== 1. Payload decoding ==========

def parse_payload(raw_text: str) -> dict:
    """
    Decode the JSON object the model wrote as text:
    - strips a surrounding ```json ... ``` fence
    - if there is chatter before the object, pulls out the { ... } part
    """
    cleaned = (raw_text or "").strip()

    if not cleaned:
        raise UpstreamFailure("model returned an empty response")

    if cleaned.startswith("```"):
        parts = cleaned.split("```")
        if len(parts) >= 3:
            cleaned = parts[1].strip()
            if cleaned.lower().startswith("json"):
                cleaned = cleaned[4:].strip()

    if not cleaned.startswith("{"):
        m = re.search(r"\{.*\}", cleaned, re.DOTALL)
        if m:
            cleaned = m.group(0).strip()

    try:
        data = json.loads(cleaned)
    except ValueError as e:
        preview = cleaned[:80].replace("\n", " ")
        raise UpstreamFailure(f"model output is not valid JSON (first 80 chars): {preview}") from e

    if not isinstance(data, dict):
        raise UpstreamFailure(f"expected a JSON object, got {type(data).__name__}")
    return data


def decode_analysis(payload) -> SentenceAnalysis:
    """Validate a raw payload against the analysis schema."""
    if not isinstance(payload, dict):
        raise UpstreamFailure(f"structured payload is not an object: {type(payload).__name__}")
    try:
        return SentenceAnalysis.model_validate(payload)
    except ValidationError as e:
        raise UpstreamFailure(f"structured payload does not match the schema: {e}") from e


# ========== 2. Backends ==========

class AnthropicBackend:
    """Forces a single tool call whose input is the analysis payload."""

    def __init__(self, settings: Settings, client=None):
        self.settings = settings
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = anthropic.Anthropic(
                api_key=self.settings.api_key,
                timeout=self.settings.timeout,
            )
        return self._client

    def request(self, sentence: str) -> dict:
        message = self.client.messages.create(
            model=self.settings.model_name,
            max_tokens=self.settings.max_tokens,
            messages=[{"role": "user", "content": build_prompt(sentence)}],
            tools=[
                {
                    "name": TOOL_NAME,
                    "description": TOOL_DESCRIPTION,
                    "input_schema": ANALYSIS_SCHEMA,
                }
            ],
            tool_choice={"type": "tool", "name": TOOL_NAME},
        )

        for block in message.content or []:
            if getattr(block, "type", None) == "tool_use" and getattr(block, "name", None) == TOOL_NAME:
                return block.input

        raise UpstreamFailure("no structured analysis returned from the model")


class GeminiBackend:
    """JSON-mode generation constrained by a response schema."""

    def __init__(self, settings: Settings, model=None):
        self.settings = settings
        self._model = model

    @property
    def model(self):
        if self._model is None:
            genai.configure(api_key=self.settings.api_key)
            self._model = genai.GenerativeModel(self.settings.model_name)
        return self._model

    def request(self, sentence: str) -> dict:
        response = self.model.generate_content(
            build_prompt(sentence, json_only=True),
            generation_config=genai.GenerationConfig(
                response_mime_type="application/json",
                response_schema=to_gemini_schema(ANALYSIS_SCHEMA),
            ),
            request_options={"timeout": self.settings.timeout},
        )
        return parse_payload(response.text)


BACKENDS = {
    "anthropic": AnthropicBackend,
    "gemini": GeminiBackend,
}


# ========== 3. Analyzer ==========

class SentenceAnalyzer:
    def __init__(self, settings: Settings, backend=None):
        self.settings = settings
        self.backend = backend or BACKENDS[settings.provider](settings)

    def analyze(self, sentence: str) -> SentenceAnalysis:
        """Run one analysis call; no retries, no partial results."""
        if not self.settings.has_api_key:
            raise ConfigurationMissing(self.settings.api_key_env)

        logger.info("analyzing sentence with %s (%s): %r",
                    self.settings.provider, self.settings.model_name, sentence)
        try:
            payload = self.backend.request(sentence)
        except UpstreamFailure:
            raise
        except Exception as e:
            raise UpstreamFailure(f"{self.settings.provider} call failed: {e}") from e

        return sanitize_analysis(decode_analysis(payload))
