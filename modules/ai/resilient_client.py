'''
Author:     Suraj Panwar
LinkedIn:   https://www.linkedin.com/in/surajpanwar26/

Copyright (C) 2024 Suraj Panwar

License:    GNU Affero General Public License
            https://www.gnu.org/licenses/agpl-3.0.en.html
            
GitHub:     https://github.com/GodsScion/Auto_job_applier_linkedIn

version:    24.12.29.12.30
'''

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

import requests

from config.settings import ai_request_timeout
from modules import metrics
from modules.ai.session_config import AISessionConfig
from modules.fault_tolerance import (
    CancellationToken,
    ErrorKind,
    Failure,
    OperationError,
    OperationOutcome,
    call_with_timeout,
)
from modules.retry_policy import RetryPolicy, execute_with_retry

logger = logging.getLogger(__name__)

# Returned when every attempt failed. Callers reading the answer as a yes/no
# (e.g. "is this job relevant?") get a "no" for a failed call as well.
FALLBACK_ANSWER = "false"

CHAT_TEMPERATURE = 0.5


class ResponseShapeError(OperationError):
    """A 200 response whose body doesn't have the expected chat completion shape."""
    kind = ErrorKind.OTHER


class HTTPStatusError(OperationError):
    """The API answered with anything but 200."""
    kind = ErrorKind.OTHER

    def __init__(self, status_code: int, body: str):
        super().__init__(f"AI request failed with HTTP {status_code}: {body[:500]}")
        self.status_code = status_code
        self.body = body


@dataclass(frozen=True)
class ChatMessage:
    role: str
    content: str


@dataclass(frozen=True)
class ChatRequest:
    model: str
    messages: tuple[ChatMessage, ...]
    temperature: float = CHAT_TEMPERATURE

    @classmethod
    def single_user_message(cls, model: str, content: str) -> "ChatRequest":
        return cls(model=model, messages=(ChatMessage(role="user", content=content),))

    def to_payload(self) -> dict:
        return {
            "model": self.model,
            "temperature": self.temperature,
            "messages": [{"role": m.role, "content": m.content} for m in self.messages],
        }

    def to_json(self) -> str:
        return json.dumps(self.to_payload(), ensure_ascii=False)


@dataclass(frozen=True)
class ChatUsage:
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


@dataclass(frozen=True)
class ChatResponse:
    """Structured response of the chat completions endpoint."""
    request_id: str
    created_at: int
    model: str
    content: str
    usage: ChatUsage

    def created_local(self) -> datetime:
        return datetime.fromtimestamp(self.created_at)

    def created_display(self) -> str:
        return self.created_local().strftime("%Y-%m-%d %H:%M:%S")


def _require(obj: dict, key: str, expected: type, path: str = "") -> Any:
    if key not in obj:
        raise ResponseShapeError(f"AI response is missing `{path}{key}`")
    value = obj[key]
    if not isinstance(value, expected) or (expected is int and isinstance(value, bool)):
        raise ResponseShapeError(f"`{path}{key}` in AI response should be {expected.__name__}, got {type(value).__name__}")
    return value


def parse_chat_response(body: str) -> ChatResponse:
    """
    Parses a chat completions body.
    * Raises `ResponseShapeError` unless id, created, model, the first choice's content
      and all three usage counts are present, a half parsed response is never returned
    """
    try:
        data = json.loads(body)
    except ValueError as e:
        raise ResponseShapeError(f"AI response is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ResponseShapeError(f"AI response should be a JSON object, got {type(data).__name__}")

    request_id = _require(data, "id", str)
    created = _require(data, "created", int)
    model = _require(data, "model", str)

    choices = _require(data, "choices", list)
    if not choices or not isinstance(choices[0], dict):
        raise ResponseShapeError("AI response has no usable `choices[0]`")
    message = _require(choices[0], "message", dict, "choices[0].")
    content = _require(message, "content", str, "choices[0].message.")

    usage = _require(data, "usage", dict)
    return ChatResponse(
        request_id=request_id,
        created_at=created,
        model=model,
        content=content,
        usage=ChatUsage(
            prompt_tokens=_require(usage, "prompt_tokens", int, "usage."),
            completion_tokens=_require(usage, "completion_tokens", int, "usage."),
            total_tokens=_require(usage, "total_tokens", int, "usage."),
        ),
    )


def interpret_boolean_answer(answer: str) -> bool:
    """True only for an explicit "true". The fallback answer therefore reads as "no"."""
    return isinstance(answer, str) and answer.strip().lower() == "true"


class ResilientAIClient:
    """
    Chat completions client with a hard deadline per attempt, classified retries and a safe fallback.

    Every attempt gets `timeout` seconds (default `ai_request_timeout`), attempts follow
    `policy` (default `RetryPolicy.for_ai()`: 3 attempts, 2s then 4s apart).
    """

    def __init__(
        self,
        config: AISessionConfig,
        *,
        policy: Optional[RetryPolicy] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        self.config = config
        self.policy = policy or RetryPolicy.for_ai()
        self.timeout = ai_request_timeout if timeout is None else timeout
        self._session = session

    def __repr__(self) -> str:
        return f"<ResilientAIClient model={self.config.model_name!r} url={self.config.chat_completions_url!r}>"

    def build_request(self, content: str) -> ChatRequest:
        return ChatRequest.single_user_message(self.config.model_name, content)

    def _headers(self) -> dict:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.config.api_key}",
        }

    def _exchange(self, body: bytes) -> ChatResponse:
        """One HTTP round trip. Transport failures are tagged here, where they are detected."""
        url = self.config.chat_completions_url
        post = self._session.post if self._session is not None else requests.post
        try:
            response = post(url, data=body, headers=self._headers(), timeout=self.timeout)
        except requests.exceptions.ConnectionError as e:
            raise OperationError(f"Could not reach AI API at {url}: {e}", ErrorKind.NETWORK) from e
        except requests.exceptions.Timeout as e:
            raise OperationError(f"AI API did not answer within {self.timeout}s: {e}", ErrorKind.TIMEOUT) from e

        if response.status_code != 200:
            logger.error("AI request failed! Status code: %s, response body: %s", response.status_code, response.text)
            raise HTTPStatusError(response.status_code, response.text)

        logger.debug("Raw AI response: %s", response.text)
        return parse_chat_response(response.text)

    def ask(self, content: str, cancel_token: Optional[CancellationToken] = None) -> OperationOutcome:
        """
        Sends `content` as a single user message.
        * Returns `Success(ChatResponse)` or the last `Failure`, for callers that need to tell
          "the model said false" apart from "the call failed"
        """
        label = f"AI chat request ({self.config.model_name})"
        try:
            body = self.build_request(content).to_json().encode("utf-8")
        except UnicodeEncodeError as e:
            # not retried, every attempt would send the same bytes
            logger.error("%s can not be sent, content is not valid UTF-8: %s", label, e)
            metrics.inc("ai_requests_total")
            metrics.inc("ai_requests_failed")
            return Failure.from_exception(e)
        started = time.perf_counter()

        outcome = execute_with_retry(
            lambda: call_with_timeout(lambda: self._exchange(body), self.timeout, label=label),
            self.policy,
            label,
            cancel_token=cancel_token,
        )

        metrics.inc("ai_requests_total")
        if not outcome.ok:
            metrics.inc("ai_requests_failed")
            return outcome

        response: ChatResponse = outcome.value
        metrics.append_sample("ai_latency", time.perf_counter() - started)
        metrics.inc("ai_tokens_total", response.usage.total_tokens)
        logger.info(
            "Request ID: %s, created: %s, model: %s, prompt tokens: %d, completion tokens: %d, total tokens: %d",
            response.request_id, response.created_display(), response.model,
            response.usage.prompt_tokens, response.usage.completion_tokens, response.usage.total_tokens,
        )
        return outcome

    def send_chat_request(self, content: str, cancel_token: Optional[CancellationToken] = None) -> str:
        """
        Returns the model's answer, or `FALLBACK_ANSWER` ("false") once all attempts failed.
        Never raises for request failures.
        """
        outcome = self.ask(content, cancel_token=cancel_token)
        if outcome.ok:
            return outcome.value.content

        logger.warning("AI request failed after %d attempt(s), using default answer %r", outcome.attempt, FALLBACK_ANSWER)
        logger.error("Last error: %s", outcome.message)
        return FALLBACK_ANSWER
