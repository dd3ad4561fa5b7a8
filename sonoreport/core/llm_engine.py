"""
SonoReport - Language Model Client

Sends redacted report text and image references to the drafting model
and returns its JSON answer. Callers are responsible for redacting text
before it reaches this module and for validating every returned field.

IMPORTANT: Model output is a draft. All reports require clinician review.
"""

import json
from typing import Any, Dict, List, Optional, Sequence, Union

import httpx

from dotenv import load_dotenv
load_dotenv()

from openai import APIConnectionError, APIError, APIStatusError, OpenAI

from sonoreport.config import settings
from sonoreport.utils.errors import DraftingError
from sonoreport.utils.logger import get_logger

logger = get_logger("llm_engine")

MessageContent = Union[str, List[Dict[str, Any]]]


class LLMEngine:
    """
    Chat-completions client for the drafting model.

    Every call is a single request/response with JSON output; there is
    no retry, so a failure reaches the caller immediately.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        http_client: Optional[httpx.Client] = None,
    ):
        """
        Initialize the client if an API key is configured.

        Args:
            http_client: Custom transport for the OpenAI client (proxies, tests)
        """
        self.api_key = api_key if api_key is not None else settings.openai_api_key
        self.model = model or settings.openai_model
        self.temperature = settings.llm_temperature
        self.client: Optional[OpenAI] = None

        if not self.api_key:
            logger.info("Drafting model not configured")
            return

        self.client = OpenAI(
            api_key=self.api_key,
            base_url=base_url or settings.openai_base_url,
            timeout=settings.llm_timeout_seconds,
            max_retries=0,
            http_client=http_client,
        )
        logger.info("Drafting model initialized", model=self.model)

    def complete_json(self, system: str, content: MessageContent) -> Dict[str, Any]:
        """
        Run one chat completion constrained to a JSON object.

        Args:
            system: System instructions
            content: User message text, or a list of content parts

        Returns:
            The parsed JSON object

        Raises:
            DraftingError: model not configured, request failed, or the
                answer was not a JSON object
        """
        if self.client is None:
            raise DraftingError("Missing OPENAI_API_KEY", status_code=500)

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                temperature=self.temperature,
                response_format={"type": "json_object"},
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": content},
                ],
            )
        except APIStatusError as e:
            body = ""
            if e.response is not None:
                body = e.response.text
            logger.warning("Model request rejected", status_code=e.status_code)
            raise DraftingError(body or "OpenAI request failed") from e
        except APIConnectionError as e:
            logger.warning("Model request failed", error=type(e).__name__)
            raise DraftingError(str(e) or "OpenAI request failed") from e
        except APIError as e:
            logger.warning("Model request failed", error=type(e).__name__)
            raise DraftingError(e.message or "OpenAI request failed") from e

        raw = ""
        if response.choices:
            raw = response.choices[0].message.content or ""

        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError as e:
            raise DraftingError("OpenAI returned non-JSON output") from e
        if not isinstance(parsed, dict):
            raise DraftingError("OpenAI returned non-JSON output")

        logger.info("Model response received", model=self.model, keys=sorted(parsed))
        return parsed

    @staticmethod
    def build_content(text: str, images: Sequence[Any] = ()) -> MessageContent:
        """
        Build a multi-part user message: the prompt text, then each image
        preceded by its filename.
        """
        if not images:
            return text
        parts: List[Dict[str, Any]] = [{"type": "text", "text": text}]
        for image in images:
            parts.append({"type": "text", "text": f"Image filename: {image.filename}"})
            parts.append({"type": "image_url", "image_url": {"url": image.url}})
        return parts

    def is_available(self) -> bool:
        """Check if the drafting model can be called."""
        return self.client is not None

    def get_status(self) -> Dict[str, Any]:
        """Get engine status information."""
        return {
            "available": self.is_available(),
            "model": self.model,
        }


# Module-level singleton
_engine_instance: Optional[LLMEngine] = None


def get_llm_engine() -> LLMEngine:
    """Get or create singleton engine instance."""
    global _engine_instance
    if _engine_instance is None:
        _engine_instance = LLMEngine()
    return _engine_instance
