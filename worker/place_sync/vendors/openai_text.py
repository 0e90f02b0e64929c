"""
OpenAI text generation client used for summaries and tag classification.
"""
import logging
from typing import Any, Optional

import openai
from openai import OpenAI

from place_sync.vendors.errors import GenerationError

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o-mini-2024-07-18"


class OpenAITextClient:
    """
    Thin wrapper around the OpenAI Responses API.

    Only the output text is used downstream; callers should expect plain text,
    JSON or JSON fenced in markdown.
    """

    def __init__(self, api_key: str, model: str = DEFAULT_MODEL, client: Optional[Any] = None):
        if not api_key and client is None:
            raise ValueError("OPENAI_API_KEY must be set to create a generation client")
        self.model = model
        self.client = client or OpenAI(api_key=api_key, max_retries=0, timeout=30.0)

    def generate(self, prompt: str) -> str:
        """
        Send one prompt and return the trimmed output text.

        Raises:
            GenerationError: when the API call fails or returns an error status.
        """
        try:
            response = self.client.responses.create(model=self.model, input=prompt)
        except openai.APIStatusError as exc:
            raise GenerationError(
                "OpenAI API error", status=exc.status_code, body=getattr(exc.response, "text", "") or ""
            ) from exc
        except openai.APIError as exc:
            raise GenerationError(f"OpenAI request failed: {exc}") from exc

        text = (getattr(response, "output_text", None) or "").strip()
        logger.debug("OpenAI output_text length=%d", len(text))
        return text


def build_text_client(api_key: str, model: str = DEFAULT_MODEL) -> Optional[OpenAITextClient]:
    """Return a client, or None when generation is not configured."""
    if not api_key:
        logger.info("OPENAI_API_KEY missing; generation will use deterministic fallbacks")
        return None
    return OpenAITextClient(api_key, model=model)
