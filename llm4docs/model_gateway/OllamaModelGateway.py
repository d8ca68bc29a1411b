"""
Talk to a local Ollama-style generation endpoint over HTTP using httpx.

The request is a single non-streaming POST of {model, prompt, stream: false};
the reply carries the generated text under "response".

"""

import httpx

from llm4docs.config import ModelConfig
from llm4docs.errors import ServiceError, TransportError
from llm4docs.model_gateway.ModelGateway import ModelGateway
from llm4docs.logger import logger

_USER_AGENT = "llm4docs/0.1"


class OllamaModelGateway(ModelGateway):
    def __init__(
        self,
        config: ModelConfig | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        """
        Arguments:
            config: Endpoint, model and timeout. Defaults to ModelConfig().
            transport: Optional httpx transport, e.g. httpx.MockTransport in
                tests.

        """
        self._config = config or ModelConfig()
        self._transport = transport
        self._client: httpx.Client | None = None

    def _ensure_client(self) -> httpx.Client:
        if self._client is None:
            headers = {"User-Agent": _USER_AGENT}
            if self._config.api_key:
                headers["Authorization"] = f"Bearer {self._config.api_key}"
            self._client = httpx.Client(
                headers=headers,
                timeout=httpx.Timeout(self._config.timeout_sec),
                transport=self._transport,
            )
        return self._client

    def close(self):
        if self._client is not None:
            self._client.close()
            self._client = None

    def generate(self, prompt: str) -> str:
        payload = {
            "model": self._config.model,
            "prompt": prompt,
            "stream": False,
        }
        logger.debug(
            f"Sending {len(prompt)} chars to {self._config.model} at {self._config.url}"
        )
        try:
            response = self._ensure_client().post(self._config.url, json=payload)
        except httpx.HTTPError as e:
            raise TransportError(f"AI request failed: {e}") from e

        if response.is_error:
            raise ServiceError(response.status_code, response.text)

        try:
            data = response.json()
        except ValueError as e:
            raise TransportError(f"AI response was not valid JSON: {e}") from e

        if not isinstance(data, dict):
            raise TransportError(f"Unexpected AI response body: {data!r}")
        return data.get("response") or ""
