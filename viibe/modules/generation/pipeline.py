from __future__ import annotations

import asyncio
import logging
import random
import time

from viibe.config import Settings
from viibe.config import settings as app_settings
from viibe.modules.generation.balancer import select_balanced
from viibe.modules.generation.dedup import Deduplicator, text_hash
from viibe.modules.generation.errors import (
    GenerationFailure,
    InvalidRequest,
    PersistenceFailure,
    ValidationExhaustion,
)
from viibe.modules.generation.prompt_builder import SYSTEM_PROMPT, build_prompt, build_shortfall_prompt
from viibe.modules.generation.schemas import (
    RESULT_LINE_COUNT,
    Candidate,
    GenerationRequest,
    GenerationResult,
    LadderState,
    ResolvedScenario,
)
from viibe.modules.generation.validator import Validator
from viibe.modules.history.store import HistoryStore, InMemoryHistoryStore, SqlHistoryStore
from viibe.modules.llm_boundary.service import GenerationClient
from viibe.modules.rules.constraint_config import ConstraintConfig, build_constraint_config
from viibe.modules.rules.default_banks import lines_for_category
from viibe.modules.rules.tone_compat import ToneResolver
from viibe.modules.telemetry.service import (
    record_generation_failure,
    record_generation_result,
    record_invalid_request,
    record_persistence_failure,
    record_validation_exhaustion,
)

logger = logging.getLogger(__name__)

HISTORY_LOOKUP_FAILED = "HISTORY_LOOKUP_FAILED"


def validate_request(config: ConstraintConfig, request: GenerationRequest) -> None:
    if not request.category:
        raise InvalidRequest("category is required", field="category")
    if request.tone not in config.tone_vocabulary:
        raise InvalidRequest(f"unknown tone: {request.tone}", field="tone")
    if request.style not in config.style_vocabulary:
        raise InvalidRequest(f"unknown style: {request.style}", field="style")
    if request.rating not in config.rating_vocabulary:
        raise InvalidRequest(f"unknown rating: {request.rating}", field="rating")
    if request.comedian_style and request.comedian_style not in config.comedian_vocabulary:
        raise InvalidRequest(f"unknown comedian style: {request.comedian_style}", field="comedian_style")
    if len(request.mandatory_words) > config.max_mandatory_words:
        raise InvalidRequest(
            f"at most {config.max_mandatory_words} mandatory words allowed, got {len(request.mandatory_words)}",
            field="mandatory_words",
        )
    if any(not word for word in request.mandatory_words):
        raise InvalidRequest("mandatory words must be non-empty", field="mandatory_words")


class GenerationPipeline:
    """Entry point that always returns four lines.

    Ladder: primary fan-out, up to ``shortfall_rounds`` supplemental calls,
    one safe re-run with neutral tone/rating and no mandatory words, and
    finally the curated static bank. Only ``InvalidRequest`` escapes.

    When the static bank is reached, lines accepted by a partial safe re-run
    come first, then primary lines that also pass the safe rules, then bank
    lines. Primary lines that fail the safe rules are dropped.
    """

    def __init__(
        self,
        *,
        config: ConstraintConfig,
        client: GenerationClient,
        deduplicator: Deduplicator,
        fanout_calls: int = 3,
        shortfall_rounds: int = 2,
    ):
        self.config = config
        self.client = client
        self.deduplicator = deduplicator
        self.validator = Validator(config)
        self.resolver = ToneResolver(config)
        self.fanout_calls = max(1, int(fanout_calls))
        self.shortfall_rounds = max(0, int(shortfall_rounds))

    def generate_lines(self, request: GenerationRequest) -> GenerationResult:
        started = time.perf_counter()
        try:
            validate_request(self.config, request)
        except InvalidRequest:
            record_invalid_request()
            raise
        result = asyncio.run(self._run(request))
        record_generation_result(latency_ms=(time.perf_counter() - started) * 1000.0, result=result)
        return result

    async def _run(self, request: GenerationRequest) -> GenerationResult:
        scenario = self.resolver.resolve(subcategory=request.subcategory, tone=request.tone, rating=request.rating)
        primary_partial: list[Candidate] = []
        try:
            selected, state = await self._attempt(request, scenario, request.mandatory_words)
            self._persist(selected, request=request, scenario=scenario)
            return self._result(
                [c.text for c in selected],
                scenario=scenario,
                was_adjusted=scenario.was_adjusted,
                reason=scenario.adjustment_reason,
                fallback_used=False,
                state=state,
            )
        except ValidationExhaustion as exc:
            self._note_failure(exc, stage="primary")
            primary_partial = list(exc.accepted)
        except GenerationFailure as exc:
            self._note_failure(exc, stage="primary")

        safe_request = request.model_copy(
            update={
                "tone": self.config.safe_tone,
                "rating": self.config.safe_rating,
                "mandatory_words": [],
                "comedian_style": None,
            }
        )
        safe_scenario = ResolvedScenario(
            tone=self.config.safe_tone,
            rating=self.config.safe_rating,
            was_adjusted=True,
            adjustment_reason=(
                f"Generation fell back to safe defaults ({self.config.safe_tone}, {self.config.safe_rating}) "
                "without mandatory words."
            ),
        )
        logger.info("ladder safe_default_retry category=%s", request.category)
        partial: list[Candidate] = []
        try:
            selected, _ = await self._attempt(safe_request, safe_scenario, [])
            self._persist(selected, request=safe_request, scenario=safe_scenario)
            return self._result(
                [c.text for c in selected],
                scenario=safe_scenario,
                was_adjusted=True,
                reason=safe_scenario.adjustment_reason,
                fallback_used=True,
                state="safe_default_retry",
            )
        except ValidationExhaustion as exc:
            self._note_failure(exc, stage="safe_default_retry")
            partial = list(exc.accepted)
        except GenerationFailure as exc:
            self._note_failure(exc, stage="safe_default_retry")

        seen = {c.text for c in partial}
        carried = [
            c
            for c in primary_partial
            if c.text not in seen
            and self.validator.validate(c.text, request=safe_request, scenario=safe_scenario, mandatory_words=[]).valid
        ][: max(0, RESULT_LINE_COUNT - len(partial))]
        logger.info(
            "ladder static_bank category=%s partial=%s carried=%s",
            request.category,
            len(partial),
            len(carried),
        )
        lines = [c.text for c in partial] + [c.text for c in carried]
        for line in lines_for_category(request.category):
            if len(lines) >= RESULT_LINE_COUNT:
                break
            if line not in lines:
                lines.append(line)
        self._persist(partial, request=safe_request, scenario=safe_scenario)
        self._persist(carried, request=request, scenario=scenario)
        return self._result(
            lines,
            scenario=safe_scenario,
            was_adjusted=True,
            reason=safe_scenario.adjustment_reason,
            fallback_used=True,
            state="static_bank",
        )

    async def _attempt(
        self,
        request: GenerationRequest,
        scenario: ResolvedScenario,
        words: list[str],
    ) -> tuple[list[Candidate], LadderState]:
        state: LadderState = "primary"
        slots: list[int | None] = list(range(self.fanout_calls)) if self.fanout_calls > 1 else [None]
        prompts = [build_prompt(self.config, request, scenario, slot=slot) for slot in slots]
        pool = await self._collect(prompts, request, scenario, words, exclude=set())
        selected = select_balanced(pool, words)

        rounds = 0
        while len(selected) < RESULT_LINE_COUNT and rounds < self.shortfall_rounds:
            rounds += 1
            state = "shortfall_retry"
            missing = RESULT_LINE_COUNT - len(selected)
            logger.info("ladder shortfall_retry round=%s missing=%s", rounds, missing)
            retry_prompt = build_shortfall_prompt(
                self.config,
                request,
                scenario,
                missing=missing,
                accepted=[c.text for c in selected],
            )
            exclude = {text_hash(c.text) for c in pool}
            pool.extend(await self._collect([retry_prompt], request, scenario, words, exclude=exclude))
            selected = select_balanced(pool, words)

        if len(selected) < RESULT_LINE_COUNT:
            raise ValidationExhaustion(
                f"only {len(selected)} of {RESULT_LINE_COUNT} lines survived validation",
                accepted=selected,
            )
        return selected, state

    async def _collect(
        self,
        prompts: list[str],
        request: GenerationRequest,
        scenario: ResolvedScenario,
        words: list[str],
        *,
        exclude: set[str],
    ) -> list[Candidate]:
        raw = await self.client.generate_candidates(prompts)
        valid: list[Candidate] = []
        for candidate in raw:
            verdict = self.validator.validate(candidate.text, request=request, scenario=scenario, mandatory_words=words)
            if verdict.valid:
                valid.append(candidate)
            else:
                logger.debug(
                    "candidate rejected index=%s kind=%s detail=%s",
                    candidate.source_index,
                    verdict.violations[0].value,
                    verdict.detail,
                )
        try:
            return self.deduplicator.filter(valid, exclude=exclude)
        except PersistenceFailure as exc:
            raise GenerationFailure(str(exc), error_kind=HISTORY_LOOKUP_FAILED) from exc

    def _persist(self, selected: list[Candidate], *, request: GenerationRequest, scenario: ResolvedScenario) -> None:
        if not selected:
            return
        ok = self.deduplicator.persist_accepted([c.text for c in selected], request=request, scenario=scenario)
        if not ok:
            record_persistence_failure()

    @staticmethod
    def _note_failure(exc: Exception, *, stage: str) -> None:
        if isinstance(exc, GenerationFailure):
            record_generation_failure(error_kind=exc.error_kind)
            logger.warning("generation failed stage=%s kind=%s: %s", stage, exc.error_kind, exc)
        else:
            record_validation_exhaustion()
            logger.warning("validation exhausted stage=%s: %s", stage, exc)

    def _result(
        self,
        lines: list[str],
        *,
        scenario: ResolvedScenario,
        was_adjusted: bool,
        reason: str | None,
        fallback_used: bool,
        state: LadderState,
    ) -> GenerationResult:
        report = self.validator.check_batch(lines)
        return GenerationResult(
            lines=lines,
            was_adjusted=was_adjusted,
            adjustment_reason=reason,
            fallback_used=fallback_used,
            ladder_state=state,
            resolved_tone=scenario.tone,
            resolved_rating=scenario.rating,
            batch_notes=list(report.notes),
        )


def build_pipeline(
    settings: Settings | None = None,
    *,
    config: ConstraintConfig | None = None,
    store: HistoryStore | None = None,
    rng: random.Random | None = None,
) -> GenerationPipeline:
    cfg = settings or app_settings
    rules = config or build_constraint_config()
    if store is None:
        store = SqlHistoryStore() if cfg.history_enabled else InMemoryHistoryStore()
    client = GenerationClient.from_settings(
        cfg,
        rng=rng or random.Random(cfg.generation_random_seed),
        system_prompt=SYSTEM_PROMPT,
    )
    return GenerationPipeline(
        config=rules,
        client=client,
        deduplicator=Deduplicator(store),
        fanout_calls=cfg.generation_fanout_calls,
        shortfall_rounds=cfg.generation_shortfall_rounds,
    )


_pipeline: GenerationPipeline | None = None


def get_generation_pipeline() -> GenerationPipeline:
    global _pipeline
    if _pipeline is None:
        _pipeline = build_pipeline()
    return _pipeline


def reset_generation_pipeline() -> None:
    global _pipeline
    _pipeline = None
