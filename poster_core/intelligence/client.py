import warnings
from typing import Optional

import httpx
from loguru import logger
from openai import APIConnectionError, APIError, APIStatusError, AsyncOpenAI
from openai.types.chat import ChatCompletion

from poster_core.config_manager import ConfigManager, GenerationConfig
from poster_core.errors import ConfigurationError, TruncationWarning, UpstreamError
from poster_core.intelligence.models import Completion


class GenerationClient:
    """
    Single-shot client for an OpenAI-compatible chat-completion endpoint.

    Works against any provider that speaks the chat/completions protocol
    (Gemini's compatibility layer by default). There are no retries: one
    request per call, failures surface as UpstreamError.
    """

    def __init__(self, config_manager: ConfigManager, http_client: Optional[httpx.AsyncClient] = None):
        self.cfg: GenerationConfig = config_manager.generation
        if not self.cfg.api_key:
            raise ConfigurationError("Generation API key is not configured; set GEMINI_API_KEY.")
        self.client = AsyncOpenAI(
            api_key=self.cfg.api_key,
            base_url=self.cfg.base_url,
            max_retries=0,
            http_client=http_client,
        )

    def _redact(self, text: str) -> str:
        if self.cfg.api_key and self.cfg.api_key in text:
            return text.replace(self.cfg.api_key, "***")
        return text

    async def complete(self, prompt: str, system_instruction: str) -> Completion:
        logger.debug(f"Calling {self.cfg.model_name} ({len(prompt)} prompt chars)")
        try:
            resp = await self.client.chat.completions.create(
                model=self.cfg.model_name,
                messages=[
                    {"role": "system", "content": system_instruction},
                    {"role": "user", "content": prompt},
                ],
                temperature=self.cfg.temperature,
                max_tokens=self.cfg.max_tokens,
            )
        except APIStatusError as e:
            body = self._redact(e.response.text)
            logger.error(f"Generation endpoint error {e.status_code}: {body}")
            raise UpstreamError(
                f"Generation request failed: {e.status_code} - {body}", status_code=e.status_code, body=body
            ) from e
        except APIConnectionError as e:
            message = self._redact(str(e))
            logger.error(f"Generation endpoint unreachable: {message}")
            raise UpstreamError(f"Generation request failed: {message}") from e
        except APIError as e:
            message = self._redact(str(e))
            logger.error(f"Generation request rejected: {message}")
            raise UpstreamError(f"Generation request failed: {message}") from e

        # Non-JSON 200 bodies (proxy pages, wrong base_url) come back as plain str
        if not isinstance(resp, ChatCompletion):
            logger.error(f"Generation endpoint returned a non-completion body: {type(resp).__name__}")
            raise UpstreamError("Generation endpoint returned empty content")

        choice = resp.choices[0] if resp.choices else None
        text = choice.message.content if choice and choice.message else None
        if not text:
            raise UpstreamError("Generation endpoint returned empty content")

        finish_reason = choice.finish_reason
        truncated = finish_reason == "length"
        if truncated:
            logger.warning(f"Generation hit max_tokens={self.cfg.max_tokens}; output may be incomplete")
            warnings.warn("Generated text was truncated by the length cap", TruncationWarning, stacklevel=2)

        logger.debug(f"finish_reason={finish_reason}, {len(text)} chars")
        return Completion(text=text, truncated=truncated, finish_reason=finish_reason, model=resp.model)
