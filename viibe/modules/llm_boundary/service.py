from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Sequence
from dataclasses import dataclass

from viibe.config import Settings
from viibe.modules.generation.schemas import Candidate
from viibe.modules.llm_boundary.client import LLMCallError, call_chat_completions_text
from viibe.modules.llm_boundary.errors import (
    GENERATION_PARSE,
    GENERATION_TIMEOUT,
    GenerationFailure,
    LinesParseError,
)
from viibe.modules.llm_boundary.fake import fake_generate
from viibe.modules.llm_boundary.parsing import parse_generated_lines
from viibe.modules.llm_boundary.schemas import GeneratedBatch, SamplingParams

logger = logging.getLogger(__name__)

CHAT_COMPLETIONS_PATH = "/chat/completions"
TEMPERATURE_RANGE = (0.9, 1.05)
TOP_P_RANGE = (0.85, 0.95)
DEFAULT_CALL_TIMEOUT_S = 20.0
_SNIPPET_LIMIT = 240


@dataclass(frozen=True)
class _LLMChannelConfig:
    api_key: str
    base_url: str
    path: str
    model: str
    timeout_s: float
    max_tokens: int
    max_attempts: int


def draw_sampling_params(rng: random.Random, *, max_tokens: int = 400) -> SamplingParams:
    return SamplingParams(
        temperature=round(rng.uniform(*TEMPERATURE_RANGE), 3),
        top_p=round(rng.uniform(*TOP_P_RANGE), 3),
        seed=rng.randrange(1 << 30),
        max_tokens=max_tokens,
    )


def _redact(text: str | None, secret: str) -> str | None:
    if text is None:
        return None
    out = str(text)
    if secret:
        out = out.replace(secret, "***")
    return out[:_SNIPPET_LIMIT]


class GenerationClient:
    """Calls the chat-completions model, or the offline fake when no key is set.

    ``rng`` is injected so sampling parameters are reproducible under a seed.
    Every failure mode (timeout, transport, non-2xx, malformed body) surfaces
    as ``GenerationFailure``.
    """

    def __init__(
        self,
        *,
        rng: random.Random,
        api_key: str = "",
        base_url: str = "https://api.openai.com/v1",
        model: str = "gpt-4o-mini",
        timeout_s: float = DEFAULT_CALL_TIMEOUT_S,
        max_tokens: int = 400,
        max_attempts: int = 1,
        system_prompt: str | None = None,
    ):
        self.rng = rng
        self.system_prompt = system_prompt
        self._channel = _LLMChannelConfig(
            api_key=self._clean(api_key),
            base_url=self._clean(base_url),
            path=CHAT_COMPLETIONS_PATH,
            model=self._clean(model),
            timeout_s=float(timeout_s),
            max_tokens=int(max_tokens),
            max_attempts=max(1, int(max_attempts)),
        )

    @classmethod
    def from_settings(cls, settings: Settings, *, rng: random.Random, system_prompt: str | None = None) -> GenerationClient:
        return cls(
            rng=rng,
            api_key=settings.llm_api_key,
            base_url=settings.llm_base_url,
            model=settings.llm_model,
            timeout_s=settings.llm_timeout_s,
            max_tokens=settings.llm_max_tokens,
            max_attempts=settings.llm_max_attempts,
            system_prompt=system_prompt,
        )

    @staticmethod
    def _clean(value: str | None) -> str:
        return str(value or "").strip()

    def provider_trace_label(self) -> str:
        return "real_auto" if self._is_real_mode() else "fake_auto"

    def _is_real_mode(self) -> bool:
        return bool(self._channel.api_key)

    def draw_sampling(self) -> SamplingParams:
        return draw_sampling_params(self.rng, max_tokens=self._channel.max_tokens)

    async def generate(self, prompt: str, sampling: SamplingParams) -> GeneratedBatch:
        if not self._is_real_mode():
            return fake_generate(prompt, sampling)

        channel = self._channel
        messages = []
        if self.system_prompt:
            messages.append({"role": "system", "content": self.system_prompt})
        messages.append({"role": "user", "content": prompt})
        try:
            raw_text = await call_chat_completions_text(
                api_key=channel.api_key,
                base_url=channel.base_url,
                path=channel.path,
                model=channel.model,
                messages=messages,
                sampling=sampling,
                timeout_s=channel.timeout_s,
                max_attempts=channel.max_attempts,
            )
        except LLMCallError as exc:
            raise GenerationFailure(
                _redact(str(exc), channel.api_key) or "generation call failed",
                error_kind=exc.error_kind,
            ) from exc

        try:
            return parse_generated_lines(raw_text)
        except LinesParseError as exc:
            raise GenerationFailure(
                f"{exc.error_kind}: {exc}",
                error_kind=GENERATION_PARSE,
                raw_snippet=_redact(exc.raw_snippet, channel.api_key),
            ) from exc

    async def _bounded(self, prompt: str, sampling: SamplingParams) -> GeneratedBatch:
        try:
            return await asyncio.wait_for(self.generate(prompt, sampling), timeout=self._channel.timeout_s)
        except asyncio.TimeoutError as exc:
            raise GenerationFailure(
                f"generation call exceeded {self._channel.timeout_s:.1f}s",
                error_kind=GENERATION_TIMEOUT,
            ) from exc

    async def generate_candidates(self, prompts: Sequence[str]) -> list[Candidate]:
        """Send one model call per prompt concurrently and flatten the batches in call order."""
        prompts = list(prompts)
        samplings = [self.draw_sampling() for _ in prompts]
        batches = await asyncio.gather(
            *(self._bounded(prompt, sampling) for prompt, sampling in zip(prompts, samplings))
        )

        candidates: list[Candidate] = []
        for batch in batches:
            for item in batch.items:
                candidates.append(Candidate(text=item.text, source_index=len(candidates), comedian=item.comedian))
        logger.debug(
            "generation fan-out calls=%s candidates=%s provider=%s",
            len(samplings),
            len(candidates),
            self.provider_trace_label(),
        )
        return candidates
