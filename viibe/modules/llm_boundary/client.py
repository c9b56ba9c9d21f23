from __future__ import annotations

import asyncio
from typing import Literal, TypedDict

import httpx

from viibe.modules.llm_boundary.errors import (
    GENERATION_EMPTY,
    GENERATION_HTTP_STATUS,
    GENERATION_NETWORK,
    GENERATION_TIMEOUT,
)
from viibe.modules.llm_boundary.schemas import SamplingParams


class ChatCompletionMessage(TypedDict):
    role: Literal["system", "user", "assistant"]
    content: str


class LLMCallError(RuntimeError):
    def __init__(self, message: str, *, error_kind: str = GENERATION_NETWORK):
        super().__init__(message)
        self.error_kind = error_kind


def _normalize_messages(messages: list[dict]) -> list[ChatCompletionMessage]:
    normalized: list[ChatCompletionMessage] = []
    for item in messages:
        if not isinstance(item, dict):
            continue
        role = str(item.get("role") or "").strip().lower()
        content = str(item.get("content") or "")
        if role not in {"system", "user", "assistant"}:
            continue
        normalized.append({"role": role, "content": content})
    return normalized


def _endpoint_url(*, base_url: str, path: str) -> str:
    return f"{base_url.rstrip('/')}/{path.lstrip('/')}"


async def _post_chat_completions(
    *,
    api_key: str,
    endpoint_url: str,
    model: str,
    messages: list[ChatCompletionMessage],
    sampling: SamplingParams,
    timeout_s: float,
) -> dict:
    headers = {
        "Authorization": f"Bearer {api_key}",
        "Content-Type": "application/json",
    }
    payload = {
        "model": model,
        "messages": messages,
        "temperature": sampling.temperature,
        "top_p": sampling.top_p,
        "max_tokens": sampling.max_tokens,
    }
    timeout = httpx.Timeout(timeout_s)
    async with httpx.AsyncClient(timeout=timeout) as client:
        response = await client.post(endpoint_url, headers=headers, json=payload)
    if response.status_code != 200:
        raise httpx.HTTPStatusError(
            f"chat/completions non-200: {response.status_code}",
            request=response.request,
            response=response,
        )
    return response.json()


def extract_message_content(data: dict) -> str:
    try:
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as exc:
        raise LLMCallError("missing choices[0].message.content", error_kind=GENERATION_EMPTY) from exc
    if not isinstance(content, str) or not content.strip():
        raise LLMCallError("empty model content", error_kind=GENERATION_EMPTY)
    return content


def _classify(exc: Exception) -> str:
    if isinstance(exc, LLMCallError):
        return exc.error_kind
    if isinstance(exc, httpx.TimeoutException):
        return GENERATION_TIMEOUT
    if isinstance(exc, httpx.HTTPStatusError):
        return GENERATION_HTTP_STATUS
    if isinstance(exc, ValueError):
        return GENERATION_EMPTY
    return GENERATION_NETWORK


async def call_chat_completions_text(
    *,
    api_key: str,
    base_url: str,
    path: str,
    model: str,
    messages: list[dict],
    sampling: SamplingParams,
    timeout_s: float,
    max_attempts: int = 1,
) -> str:
    normalized = _normalize_messages(messages)
    if not normalized:
        normalized = [{"role": "user", "content": ""}]
    endpoint = _endpoint_url(base_url=base_url, path=path)

    attempts = max(1, int(max_attempts))
    delays = (0.2, 0.5)
    last_error: Exception | None = None
    for attempt in range(attempts):
        try:
            data = await _post_chat_completions(
                api_key=api_key,
                endpoint_url=endpoint,
                model=model,
                messages=normalized,
                sampling=sampling,
                timeout_s=timeout_s,
            )
            return extract_message_content(data)
        except (httpx.HTTPError, ValueError, LLMCallError) as exc:
            last_error = exc
            if attempt >= attempts - 1:
                break
            pause_idx = min(attempt, len(delays) - 1)
            await asyncio.sleep(delays[pause_idx])
    kind = _classify(last_error) if last_error is not None else GENERATION_NETWORK
    raise LLMCallError(f"chat completions text failed after retries: {last_error}", error_kind=kind)
