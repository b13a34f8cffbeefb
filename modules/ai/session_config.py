"""
AI connection settings read once at startup.

The values live in ``.env`` (or the real environment, which wins)::

    BASE_URL=https://api.openai.com
    API_KEY=sk-...
    MODEL=gpt-4o-mini

``load_session_config()`` builds an immutable ``AISessionConfig`` that is handed to
``ResilientAIClient``. A missing value stops the bot before anything runs, it is
never retried.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import find_dotenv, load_dotenv

from modules.validator import validate_session_values

CHAT_COMPLETIONS_PATH = "/v1/chat/completions"


class ConfigurationError(ValueError):
    """Raised at startup when the AI connection settings are missing or invalid."""


@dataclass(frozen=True)
class AISessionConfig:
    base_url: str
    api_key: str
    model_name: str

    @property
    def chat_completions_url(self) -> str:
        return self.base_url.rstrip("/") + CHAT_COMPLETIONS_PATH

    def __repr__(self) -> str:
        # keep the key out of logs
        return f"AISessionConfig(base_url={self.base_url!r}, model_name={self.model_name!r})"


def load_session_config(env: Optional[Mapping[str, str]] = None, env_file: Optional[str] = None) -> AISessionConfig:
    """
    Reads BASE_URL, API_KEY and MODEL.
    * `env` replaces `os.environ` (tests), `.env` is only loaded when `env` is not given
    * Without `env_file`, `.env` is looked up from the current working directory upwards
    * Raises `ConfigurationError` listing every missing or invalid value
    """
    if env is None:
        load_dotenv(dotenv_path=env_file or find_dotenv(usecwd=True), override=False)
        env = os.environ

    values = {name: (env.get(name) or "").strip() for name in ("BASE_URL", "API_KEY", "MODEL")}
    missing = [name for name, value in values.items() if not value]
    if missing:
        raise ConfigurationError(
            f"Missing AI configuration: {', '.join(missing)}. "
            "Add them to the `.env` file in the project folder or export them as environment variables."
        )
    try:
        validate_session_values(values["BASE_URL"], values["API_KEY"], values["MODEL"])
    except (ValueError, TypeError) as e:
        raise ConfigurationError(str(e)) from e

    return AISessionConfig(base_url=values["BASE_URL"], api_key=values["API_KEY"], model_name=values["MODEL"])
