# llm gateway over a local ollama server or a hosted openai-compatible api
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import requests

from .errors import (
    MissingCredential, ProviderError, ProviderFailure, ProviderTimeout, ProviderUnreachable
)
from .models import ProviderConfig, ProviderKind
from .prompt_builder import SYSTEM_PROMPT

logger = logging.getLogger(__name__)

# health checks are advisory and must answer quickly
PING_TIMEOUT_SECONDS = 5


# common interface for every llm backend
class LLMProvider(ABC):
    name = "provider"

    def __init__(self, session: Optional[requests.Session] = None):
        self.session = session or requests.Session()

    @abstractmethod
    def invoke(self, prompt: str, config: ProviderConfig) -> str:
        """Send the prompt and return the raw generated text"""

    @abstractmethod
    def ping(self, config: ProviderConfig) -> bool:
        """Return True if the backend answers its health endpoint"""

    def context_length(self, config: ProviderConfig) -> Optional[int]:
        """Context window of the configured model in tokens, None if unknown"""
        return None

    # send a request and map transport failures onto the provider error taxonomy
    def _request_json(self, method: str, url: str, config: ProviderConfig, **kwargs) -> Dict[str, Any]:
        try:
            response = self.session.request(method, url, timeout=config.timeout_seconds, **kwargs)
        except requests.exceptions.Timeout as e:
            raise ProviderTimeout(
                f"{self.name} did not answer within {config.timeout_ms} ms", provider=self.name
            ) from e
        except requests.exceptions.ConnectionError as e:
            raise ProviderUnreachable(
                f"Cannot connect to {self.name} at {config.endpoint}. Is it running?",
                provider=self.name,
            ) from e
        except requests.exceptions.RequestException as e:
            raise ProviderError(f"{self.name} request failed: {e}", provider=self.name) from e

        if not 200 <= response.status_code < 300:
            raise ProviderError(
                f"{self.name} API error: {response.status_code} - {response.text[:200]}",
                provider=self.name,
            )

        try:
            return response.json()
        except ValueError as e:
            raise ProviderError(f"{self.name} returned a non-JSON body", provider=self.name) from e


# provider for a local ollama inference server
class OllamaProvider(LLMProvider):
    """Local LLM served by Ollama"""

    name = "ollama"

    def invoke(self, prompt: str, config: ProviderConfig) -> str:
        payload = {
            "model": config.model,
            "prompt": prompt,
            "stream": False,
            "options": {
                "temperature": config.temperature,
                "num_predict": config.max_tokens,
            },
        }
        result = self._request_json("POST", f"{_base(config)}/api/generate", config, json=payload)

        text = result.get("response") if isinstance(result, dict) else None
        if not isinstance(text, str) or not text.strip():
            raise ProviderError("Empty response from Ollama", provider=self.name)
        return text.strip()

    # check if ollama server is responding on its model list endpoint
    def ping(self, config: ProviderConfig) -> bool:
        try:
            response = self.session.get(f"{_base(config)}/api/tags", timeout=PING_TIMEOUT_SECONDS)
            return response.status_code == 200
        except requests.exceptions.RequestException:
            return False

    def context_length(self, config: ProviderConfig) -> Optional[int]:
        try:
            info = self._request_json("POST", f"{_base(config)}/api/show", config,
                                      json={"model": config.model})
        except ProviderFailure as e:
            logger.warning(f"Could not read context length for {config.model}: {e}")
            return None

        details = info.get("details") or {}
        value = details.get("context_length")
        if value is None:
            # newer ollama versions report it per architecture in model_info
            for key, candidate in (info.get("model_info") or {}).items():
                if key.endswith(".context_length"):
                    value = candidate
                    break
        if isinstance(value, int) and value > 0:
            return value
        return None


# provider for a hosted openai-compatible chat completion api
class OpenAIProvider(LLMProvider):
    """Hosted chat-completion API with bearer token auth"""

    name = "openai"

    def _headers(self, config: ProviderConfig) -> Dict[str, str]:
        if not config.api_key:
            raise MissingCredential(
                f"No API key configured for hosted provider {config.endpoint}", provider=self.name
            )
        return {
            "Authorization": f"Bearer {config.api_key}",
            "Content-Type": "application/json",
        }

    def invoke(self, prompt: str, config: ProviderConfig) -> str:
        headers = self._headers(config)
        payload = {
            "model": config.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "temperature": config.temperature,
            "max_tokens": config.max_tokens,
        }
        result = self._request_json("POST", f"{_base(config)}/chat/completions", config,
                                    json=payload, headers=headers)

        try:
            content = result["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            content = None
        if not isinstance(content, str) or not content.strip():
            raise ProviderError("Empty response from hosted API", provider=self.name)
        return content.strip()

    def ping(self, config: ProviderConfig) -> bool:
        if not config.api_key:
            return False
        try:
            response = self.session.get(
                f"{_base(config)}/models",
                headers={"Authorization": f"Bearer {config.api_key}"},
                timeout=PING_TIMEOUT_SECONDS,
            )
            return response.status_code == 200
        except requests.exceptions.RequestException:
            return False


def _base(config: ProviderConfig) -> str:
    return config.endpoint.rstrip("/")


class LLMGateway:
    """Dispatches prompts to the configured provider with a single fallback hop.

    The HTTP session is owned by whoever builds the gateway; ``close`` only
    closes a session the gateway created itself.
    """

    def __init__(self, session: Optional[requests.Session] = None,
                 providers: Optional[Dict[ProviderKind, LLMProvider]] = None):
        self._owns_session = session is None
        self.session = session or requests.Session()
        self.providers = providers or {
            ProviderKind.LOCAL_LLM: OllamaProvider(self.session),
            ProviderKind.HOSTED_API: OpenAIProvider(self.session),
        }

    def provider_for(self, config: ProviderConfig) -> LLMProvider:
        try:
            return self.providers[config.provider]
        except KeyError:
            raise ProviderError(f"Unsupported LLM provider: {config.provider}") from None

    def invoke(self, prompt: str, config: ProviderConfig) -> str:
        """Generate text, retrying once against config.fallback on provider failure"""
        try:
            return self.provider_for(config).invoke(prompt, config)
        except ProviderFailure as primary_error:
            fallback = config.fallback
            if fallback is None:
                raise
            logger.warning(
                f"Provider {config.provider.value} failed ({primary_error}), "
                f"falling back to {fallback.provider.value}"
            )
            try:
                return self.provider_for(fallback).invoke(prompt, fallback)
            except ProviderFailure as fallback_error:
                raise primary_error.with_fallback_failure(fallback_error) from fallback_error

    def ping(self, config: ProviderConfig) -> bool:
        """Advisory reachability check of the primary provider"""
        reachable = self.provider_for(config).ping(config)
        if reachable:
            logger.debug(f"✓ {config.provider.value} reachable at {config.endpoint}")
        return reachable

    def context_length(self, config: ProviderConfig) -> Optional[int]:
        return self.provider_for(config).context_length(config)

    def close(self):
        if self._owns_session:
            self.session.close()
