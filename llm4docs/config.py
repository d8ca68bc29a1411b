from pydantic_settings import BaseSettings, SettingsConfigDict


class ModelConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="LLM4DOCS_MODEL_")

    # Endpoint of a local Ollama-style /api/generate service.
    url: str = "http://localhost:11434/api/generate"

    # Model identifier sent with every request.
    model: str = "deepseek-r1:7b"

    # Seconds to wait for a single generation before giving up. Requests are
    # never retried.
    timeout_sec: float = 120.0

    # Sent as a bearer token when set. Local services usually need none.
    api_key: str | None = None


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="LLM4DOCS_")

    # If the session is reset while a request is in flight, should the late
    # result still be applied to the document (without entering the new
    # history)? When False the late result is dropped.
    apply_superseded_results: bool = False

    # Should recent conversation turns be rendered into the prompt?
    include_history_in_prompt: bool = False

    # How many of the most recent turns to include when the above is on.
    history_prompt_turns: int = 6
