"""Cost-aware naming pipeline.

Each file walks through up to three stages and stops at the first one that
is confident enough:

1. ``metadata``: the :class:`MetadataScorer` names the file for free.
2. ``cheap-model``: a short prompt goes to the low-cost model.
3. ``premium-model``: a standard prompt goes to the high-quality model.

Batches are grouped first so one representative per group pays for a model
call and its siblings reuse the resulting name pattern.
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict, deque
from dataclasses import dataclass, field
from pathlib import Path
from typing import Deque, Dict, Iterable, List, Optional, Set, Union

from namewise.cache import ResultCache, derive_cache_key
from namewise.config.models import NamewiseConfig
from namewise.grouping import BatchGrouper, FileGroup
from namewise.ingestion import FileDescriptor, describe_file, file_type_for
from namewise.invocation import InvocationMetrics, ResilientInvoker
from namewise.prompts import PromptBuilder, PromptContext, PromptMetadata, PromptMode
from namewise.providers.base import GenerationRequest, GenerativeTextService
from namewise.providers.errors import ProviderError
from namewise.sampling import ContentSampler
from namewise.scoring import ConfidenceScore, MetadataScorer
from namewise.text import clean_model_output, format_name

from .models import NamingFailure, PipelineResult, PipelineStage, PipelineStats
from .pricing import calculate_cost
from .stats import summarize
from .strategy import StrategyPreset, resolve_strategy

LOGGER = logging.getLogger(__name__)

FileInput = Union[FileDescriptor, Path, str]

FINISH_REASON_CONFIDENCE = {
    "stop": 0.95,
    "length": 0.7,
    "content_filter": 0.5,
}
DEFAULT_FINISH_CONFIDENCE = 0.8


def confidence_for_finish_reason(finish_reason: Optional[str]) -> float:
    """Map a service finish reason to a confidence value."""
    return FINISH_REASON_CONFIDENCE.get(finish_reason or "", DEFAULT_FINISH_CONFIDENCE)


@dataclass
class _BatchRun:
    """Mutable state shared by the tasks of one ``process_batch`` call."""

    results: List[Optional[PipelineResult]]
    positions: Dict[str, Deque[int]]
    semaphore: asyncio.Semaphore
    fail_fast: bool
    tasks: Set[asyncio.Task] = field(default_factory=set)
    stopped: bool = False

    def record(self, descriptor: FileDescriptor, result: PipelineResult) -> None:
        index = self.positions[str(descriptor.path)].popleft()
        self.results[index] = result
        if self.fail_fast and result.error is not None and not self.stopped:
            LOGGER.warning("Stopping batch after failure on %s", descriptor.path)
            self.stopped = True
            for task in list(self.tasks):
                task.cancel()


@dataclass(frozen=True)
class _PatternHint:
    """Pattern from an untrusted representative, offered to siblings as a prompt hint."""

    pattern: str
    example: str


class NamingPipeline:
    """Name files through metadata, cheap-model, and premium-model stages.

    All collaborators are injected; omitted ones are built from ``config``.
    """

    def __init__(
        self,
        service: GenerativeTextService,
        config: Optional[NamewiseConfig] = None,
        *,
        scorer: Optional[MetadataScorer] = None,
        sampler: Optional[ContentSampler] = None,
        prompt_builder: Optional[PromptBuilder] = None,
        grouper: Optional[BatchGrouper] = None,
        cache: Optional[ResultCache[PipelineResult]] = None,
        invoker: Optional[ResilientInvoker] = None,
    ) -> None:
        """Assemble the pipeline.

        Args:
            service: Text-generation service used by the model stages.
            config: Full configuration; defaults to :class:`NamewiseConfig`.
            scorer: Metadata scorer for the first stage.
            sampler: Content sampler; sized from the strategy when omitted.
            prompt_builder: Prompt builder for model stages.
            grouper: Batch grouper for ``process_batch``.
            cache: Result cache; built from ``config.cache`` when omitted and
                caching is enabled.
            invoker: Retrying invoker; built from ``config.retry`` when omitted.
        """
        self.config = config or NamewiseConfig()
        self.strategy: StrategyPreset = resolve_strategy(self.config.pipeline)

        self._service = service
        self._capabilities = service.capabilities
        self._scorer = scorer or MetadataScorer()
        self._sampler = sampler or ContentSampler(
            text_chars=self.strategy.text_chars,
            image_size=self.strategy.image_size,
        )
        self._prompts = prompt_builder or PromptBuilder()
        self._grouper = grouper or BatchGrouper()
        if cache is None and self.config.cache.enabled:
            cache = ResultCache(
                max_size=self.config.cache.max_size,
                ttl_seconds=self.config.cache.ttl_seconds,
            )
        self._cache = cache
        self._invoker = invoker or ResilientInvoker(self.config.retry)
        self._tasks: Set[asyncio.Task] = set()
        self._cache_options = self._effective_options()

    @property
    def metrics(self) -> InvocationMetrics:
        return self._invoker.metrics

    # ------------------------------------------------------------------ #
    # Public API                                                         #
    # ------------------------------------------------------------------ #

    async def process_file(self, file: FileInput) -> PipelineResult:
        """Name a single file.

        Args:
            file: Descriptor or path of the file to name.

        Returns:
            PipelineResult: Result of the first satisfied stage, a terminal
            provider failure, or a ``cancelled`` result after :meth:`cancel_all`.

        Raises:
            OSError: If ``file`` is a path that cannot be statted.
        """
        descriptor = self._describe(file)
        return await self._tracked(descriptor)

    async def process_batch(
        self,
        files: Iterable[FileInput],
        *,
        fail_fast: Optional[bool] = None,
    ) -> List[PipelineResult]:
        """Name many files, reusing naming patterns within similar groups.

        Args:
            files: Descriptors or paths to name.
            fail_fast: Cancel outstanding work after the first terminal error;
                defaults to ``config.pipeline.fail_fast``.

        Returns:
            List[PipelineResult]: One result per input, in input order.
        """
        if fail_fast is None:
            fail_fast = self.config.pipeline.fail_fast

        items = list(files)
        run = _BatchRun(
            results=[None] * len(items),
            positions=defaultdict(deque),
            semaphore=asyncio.Semaphore(self.config.pipeline.concurrency),
            fail_fast=fail_fast,
        )

        descriptors: List[FileDescriptor] = []
        for index, item in enumerate(items):
            try:
                descriptor = self._describe(item)
            except OSError as exc:
                LOGGER.warning("Unable to read %s: %s", item, exc)
                run.results[index] = PipelineResult(
                    original=str(item),
                    error=NamingFailure(code="file_unreadable", message=str(exc)),
                )
                continue
            run.positions[str(descriptor.path)].append(index)
            descriptors.append(descriptor)

        groups = self._grouper.group(descriptors)
        LOGGER.debug("Grouped %d files into %d groups", len(descriptors), len(groups))
        await asyncio.gather(*(self._process_group(group, run) for group in groups))

        return [
            result
            if result is not None
            else PipelineResult(original=str(items[index]), error=_cancelled_failure())
            for index, result in enumerate(run.results)
        ]

    def get_stats(self, results: Iterable[PipelineResult]) -> PipelineStats:
        """Return aggregate statistics for ``results``."""
        return summarize(results)

    def cancel_all(self) -> int:
        """Cancel every in-flight file and return how many were cancelled."""
        pending = [task for task in self._tasks if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            LOGGER.info("Cancelled %d in-flight files", len(pending))
        return len(pending)

    # ------------------------------------------------------------------ #
    # Batch coordination                                                 #
    # ------------------------------------------------------------------ #

    async def _process_group(self, group: FileGroup, run: _BatchRun) -> None:
        representative = await self._run_member(group.representative, run)
        if not group.siblings:
            return

        if self._pattern_trusted(representative):
            group.pattern = self._grouper.extract_pattern(representative.suggested_name)
            LOGGER.debug(
                "Applying pattern %s from %s to %d siblings",
                group.pattern,
                group.representative.name,
                len(group.siblings),
            )
            for index, sibling in enumerate(group.siblings):
                if run.stopped:
                    run.record(sibling, _cancelled_result(sibling))
                else:
                    run.record(sibling, self._pattern_result(group, representative, sibling, index))
            return

        LOGGER.debug(
            "Pattern from %s untrusted (confidence %.2f); naming %d siblings individually",
            group.representative.name,
            representative.confidence,
            len(group.siblings),
        )
        hint = None
        if (
            self.config.pipeline.pattern_prompt
            and representative.error is None
            and representative.suggested_name
        ):
            group.pattern = self._grouper.extract_pattern(representative.suggested_name)
            hint = _PatternHint(
                pattern=group.pattern,
                example=f"{group.representative.name} -> {representative.suggested_name}",
            )
        await asyncio.gather(
            *(self._run_member(sibling, run, hint) for sibling in group.siblings)
        )

    async def _run_member(
        self,
        descriptor: FileDescriptor,
        run: _BatchRun,
        hint: Optional[_PatternHint] = None,
    ) -> PipelineResult:
        async with run.semaphore:
            if run.stopped:
                result = _cancelled_result(descriptor)
            else:
                try:
                    result = await self._tracked(descriptor, run.tasks, hint)
                except Exception as exc:
                    LOGGER.exception("Unexpected failure while naming %s", descriptor.path)
                    result = PipelineResult(
                        original=str(descriptor.path),
                        error=NamingFailure(code="internal_error", message=str(exc)),
                    )
        run.record(descriptor, result)
        return result

    def _pattern_trusted(self, result: PipelineResult) -> bool:
        return (
            result.error is None
            and bool(result.suggested_name)
            and result.confidence >= self.config.pipeline.pattern_trust_threshold
        )

    def _pattern_result(
        self,
        group: FileGroup,
        representative: PipelineResult,
        sibling: FileDescriptor,
        index: int,
    ) -> PipelineResult:
        settings = self.config.pipeline
        pattern = group.pattern or ""
        tokens = settings.pattern_tokens
        return PipelineResult(
            original=str(sibling.path),
            suggested_name=self._format(
                self._grouper.apply_pattern(pattern, index, sibling.name)
            ),
            confidence=min(1.0, representative.confidence * settings.sibling_confidence_factor),
            stage=PipelineStage.BATCH_PATTERN,
            tokens_used=tokens,
            cost=calculate_cost(tokens, self.config.llm.cheap_model, self.config.pricing),
            reasoning=f"Pattern '{pattern}' from {group.representative.name}",
        )

    # ------------------------------------------------------------------ #
    # Single-file stages                                                 #
    # ------------------------------------------------------------------ #

    async def _tracked(
        self,
        descriptor: FileDescriptor,
        owner: Optional[Set[asyncio.Task]] = None,
        hint: Optional[_PatternHint] = None,
    ) -> PipelineResult:
        task = asyncio.ensure_future(self._process_descriptor(descriptor, hint))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        if owner is not None:
            owner.add(task)
            task.add_done_callback(owner.discard)

        try:
            await asyncio.wait({task})
        except asyncio.CancelledError:
            task.cancel()
            raise

        if task.cancelled():
            LOGGER.debug("Cancelled %s", descriptor.path)
            return _cancelled_result(descriptor)
        return task.result()

    async def _process_descriptor(
        self, descriptor: FileDescriptor, hint: Optional[_PatternHint] = None
    ) -> PipelineResult:
        key = None
        if self._cache is not None:
            options = self._cache_options
            if hint is not None:
                options = {**options, "pattern_hint": hint.pattern}
            key = derive_cache_key(descriptor, options)
            cached = self._cache.get(key)
            if cached is not None:
                LOGGER.debug("Cache hit for %s", descriptor.path)
                return cached

        result = await self._run_stages(descriptor, hint)
        if key is not None and self._cache is not None and result.error is None:
            self._cache.set(key, result)
        return result

    async def _run_stages(
        self, descriptor: FileDescriptor, hint: Optional[_PatternHint] = None
    ) -> PipelineResult:
        strategy = self.strategy
        llm = self.config.llm

        if strategy.enable_metadata_stage:
            score = self._score(descriptor)
            name = self._format(score.suggested_name or "")
            if name and score.value >= strategy.metadata_threshold:
                LOGGER.debug("Named %s from metadata (%.2f)", descriptor.name, score.value)
                return PipelineResult(
                    original=str(descriptor.path),
                    suggested_name=name,
                    confidence=score.value,
                    stage=PipelineStage.METADATA,
                    reasoning=score.reasoning,
                )
            LOGGER.debug(
                "Metadata confidence %.2f below %.2f for %s",
                score.value,
                strategy.metadata_threshold,
                descriptor.name,
            )

        if strategy.enable_cheap_model_stage:
            try:
                cheap = await self._generate(
                    descriptor,
                    model=llm.cheap_model,
                    mode=strategy.cheap_prompt_mode,
                    stage=PipelineStage.CHEAP_MODEL,
                    hint=hint,
                )
            except ProviderError as exc:
                LOGGER.info(
                    "Cheap model failed for %s (%s); escalating", descriptor.name, exc.code
                )
            else:
                if cheap.suggested_name and cheap.confidence >= strategy.cheap_model_threshold:
                    return cheap
                LOGGER.debug(
                    "Cheap model confidence %.2f below %.2f for %s; escalating",
                    cheap.confidence,
                    strategy.cheap_model_threshold,
                    descriptor.name,
                )

        try:
            premium = await self._generate(
                descriptor,
                model=llm.premium_model,
                mode=PromptMode.STANDARD,
                stage=PipelineStage.PREMIUM_MODEL,
            )
        except ProviderError as exc:
            LOGGER.warning("Premium model failed for %s: %s", descriptor.name, exc.message)
            return PipelineResult(
                original=str(descriptor.path),
                stage=PipelineStage.PREMIUM_MODEL,
                model=llm.premium_model,
                error=NamingFailure.from_error(exc),
            )

        if not premium.suggested_name:
            return premium.model_copy(
                update={
                    "error": NamingFailure(
                        code="empty_response",
                        message="Model returned no usable name",
                    )
                }
            )
        return premium

    async def _generate(
        self,
        descriptor: FileDescriptor,
        *,
        model: str,
        mode: PromptMode,
        stage: PipelineStage,
        hint: Optional[_PatternHint] = None,
    ) -> PipelineResult:
        sample = self._sampler.sample(
            descriptor, allow_images=self._capabilities.supports_vision
        )
        reference = descriptor.exif.captured_at if descriptor.exif else None
        context = PromptContext(
            file_type=file_type_for(descriptor.extension),
            content=sample.text or None,
            metadata=PromptMetadata(
                filename=descriptor.name,
                size=descriptor.size_bytes,
                date=(reference or descriptor.modified_at).date().isoformat(),
            ),
        )
        images: List[bytes] = []
        if hint is not None:
            prompt = self._prompts.build_batch_prompt(
                hint.pattern, f"{descriptor.name}; example {hint.example}"
            )
            label = "batch-pattern"
        else:
            if sample.image is not None:
                images.append(sample.image)
            prompt = self._prompts.build(context, mode, images=images)
            label = mode.value

        llm = self.config.llm
        request = GenerationRequest(
            model=model,
            system_prompt=prompt.system,
            user_prompt=prompt.user,
            images=prompt.images,
            temperature=llm.temperature,
            max_output_tokens=min(llm.max_output_tokens, self._capabilities.max_output_tokens),
        )
        response = await self._invoker.invoke(self._service, request)

        name = self._format(clean_model_output(response.text))
        confidence = confidence_for_finish_reason(response.finish_reason) if name else 0.0
        tokens = response.usage.total
        if tokens <= 0:
            tokens = prompt.token_estimate + (sample.token_estimate if images else 0)

        return PipelineResult(
            original=str(descriptor.path),
            suggested_name=name or None,
            confidence=confidence,
            stage=stage,
            tokens_used=tokens,
            cost=calculate_cost(tokens, model, self.config.pricing),
            reasoning=f"{label} prompt with {sample.method} sample",
            model=response.model or model,
        )

    # ------------------------------------------------------------------ #
    # Helpers                                                            #
    # ------------------------------------------------------------------ #

    def _score(self, descriptor: FileDescriptor) -> ConfidenceScore:
        try:
            return self._scorer.score(descriptor)
        except Exception:
            LOGGER.warning(
                "Metadata scoring failed for %s; treating as insufficient",
                descriptor.path,
                exc_info=True,
            )
            return ConfidenceScore(value=0.0, reasoning="Metadata scoring failed")

    def _format(self, name: str) -> str:
        naming = self.config.naming
        return format_name(
            name,
            case=naming.format,
            max_length=naming.max_length,
            sanitize=naming.sanitize,
            replacement=naming.replace_spaces,
        )

    @staticmethod
    def _describe(file: FileInput) -> FileDescriptor:
        if isinstance(file, FileDescriptor):
            return file
        return describe_file(Path(file))

    def _effective_options(self) -> Dict[str, object]:
        strategy = self.strategy
        llm = self.config.llm
        return {
            "strategy": strategy.name,
            "enable_metadata_stage": strategy.enable_metadata_stage,
            "enable_cheap_model_stage": strategy.enable_cheap_model_stage,
            "metadata_threshold": strategy.metadata_threshold,
            "cheap_model_threshold": strategy.cheap_model_threshold,
            "text_chars": strategy.text_chars,
            "image_size": strategy.image_size,
            "cheap_model": llm.cheap_model,
            "premium_model": llm.premium_model,
            "temperature": llm.temperature,
            "vision": self._capabilities.supports_vision,
            "naming": self.config.naming.model_dump(),
        }


def _cancelled_failure() -> NamingFailure:
    return NamingFailure(code="cancelled", message="Processing was cancelled")


def _cancelled_result(descriptor: FileDescriptor) -> PipelineResult:
    return PipelineResult(original=str(descriptor.path), error=_cancelled_failure())


__all__ = ["NamingPipeline", "confidence_for_finish_reason", "FINISH_REASON_CONFIDENCE"]
