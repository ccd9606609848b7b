"""Tests for the staged naming pipeline."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest
from fakes import FakeTextService, RecordingSleep, make_descriptor, reply
from PIL import Image

from namewise.config.models import NamewiseConfig, NamingSettings, PipelineSettings
from namewise.invocation import ResilientInvoker
from namewise.pipeline import NamingPipeline, PipelineStage, PipelineStats
from namewise.pipeline.engine import confidence_for_finish_reason
from namewise.prompts import PromptBuilder
from namewise.prompts.builder import BATCH_SYSTEM, STANDARD_SYSTEM
from namewise.providers.base import GenerationRequest
from namewise.providers.errors import ProviderAuthFailure, ProviderRateLimited
from namewise.sampling import ContentSampler
from namewise.scoring import MetadataScorer


def _config(**pipeline) -> NamewiseConfig:
    return NamewiseConfig(pipeline=PipelineSettings(**pipeline))


def _pipeline(service: FakeTextService, config: NamewiseConfig | None = None) -> NamingPipeline:
    config = config or NamewiseConfig()
    invoker = ResilientInvoker(config.retry, sleep=RecordingSleep())
    return NamingPipeline(service, config, invoker=invoker)


def _blocked(release: asyncio.Event):
    async def handler(request: GenerationRequest):
        await release.wait()
        return reply("never_returned")

    return handler


@pytest.mark.parametrize(
    ("finish_reason", "expected"),
    [("stop", 0.95), ("length", 0.7), ("content_filter", 0.5), ("tool_calls", 0.8), (None, 0.8)],
)
def test_finish_reason_confidence(finish_reason, expected) -> None:
    assert confidence_for_finish_reason(finish_reason) == expected


def test_confident_metadata_skips_model_calls() -> None:
    service = FakeTextService()
    pipeline = _pipeline(service)

    result = asyncio.run(
        pipeline.process_file(make_descriptor("Screenshot 2024-01-15 at 14.30.45.png"))
    )

    assert result.stage is PipelineStage.METADATA
    assert result.suggested_name == "screenshot_2024_01_15_143045"
    assert result.tokens_used == 0
    assert result.cost == 0
    assert service.calls == 0


def test_confident_cheap_model_result_is_accepted() -> None:
    service = FakeTextService(outcomes=[reply("Golden Retriever Park.jpg", total=42)])
    pipeline = _pipeline(service)

    result = asyncio.run(pipeline.process_file(make_descriptor("DSC_1234.jpg")))

    assert result.stage is PipelineStage.CHEAP_MODEL
    assert result.suggested_name == "golden_retriever_park"
    assert result.confidence == pytest.approx(0.95)
    assert result.tokens_used == 42
    assert result.cost == pytest.approx(42 * 0.25 / 1_000_000)
    assert result.model == "gpt-5-mini"
    assert service.models_called() == ["gpt-5-mini"]


def test_low_confidence_cheap_result_escalates_to_premium() -> None:
    service = FakeTextService(
        outcomes=[
            reply("something", finish_reason="content_filter"),
            reply("family_dinner", total=60),
        ]
    )
    pipeline = _pipeline(service)

    result = asyncio.run(pipeline.process_file(make_descriptor("DSC_1234.jpg")))

    assert result.stage is PipelineStage.PREMIUM_MODEL
    assert result.suggested_name == "family_dinner"
    assert result.cost == pytest.approx(60 * 1.25 / 1_000_000)
    assert service.models_called() == ["gpt-5-mini", "gpt-5"]
    assert service.requests[1].system_prompt == STANDARD_SYSTEM


def test_cheap_model_failure_escalates_to_premium() -> None:
    def handler(request: GenerationRequest):
        if request.model == "gpt-5-mini":
            return ProviderAuthFailure("cheap model not enabled for this key")
        return reply("tax_return_2023")

    service = FakeTextService(handler=handler)
    pipeline = _pipeline(service)

    result = asyncio.run(pipeline.process_file(make_descriptor("scan0001.pdf")))

    assert result.ok
    assert result.stage is PipelineStage.PREMIUM_MODEL
    assert result.suggested_name == "tax_return_2023"
    assert service.models_called() == ["gpt-5-mini", "gpt-5"]


def test_quality_strategy_goes_straight_to_premium() -> None:
    service = FakeTextService(outcomes=[reply("desktop_capture")])
    pipeline = _pipeline(service, _config(strategy="quality"))

    result = asyncio.run(
        pipeline.process_file(make_descriptor("Screenshot 2024-01-15 at 14.30.45.png"))
    )

    assert result.stage is PipelineStage.PREMIUM_MODEL
    assert service.models_called() == ["gpt-5"]


def test_empty_premium_reply_is_reported() -> None:
    service = FakeTextService(outcomes=[reply('""')])
    pipeline = _pipeline(service, _config(strategy="quality"))

    result = asyncio.run(pipeline.process_file(make_descriptor("DSC_1234.jpg")))

    assert result.error is not None
    assert result.error.code == "empty_response"
    assert result.confidence == 0


def test_terminal_rate_limit_becomes_error_result() -> None:
    service = FakeTextService(handler=lambda request: ProviderRateLimited("slow down"))
    pipeline = _pipeline(service, _config(strategy="quality"))

    result = asyncio.run(pipeline.process_file(make_descriptor("DSC_1234.jpg")))

    assert result.error is not None
    assert result.error.code == "rate_limited"
    assert result.error.retries == 3
    assert result.error.retryable is True
    assert result.stage is PipelineStage.PREMIUM_MODEL
    assert service.calls == 4
    assert pipeline.metrics.failed_requests == 1


def test_repeated_file_is_served_from_cache() -> None:
    service = FakeTextService(outcomes=[reply("harbor_at_dawn", total=30)])
    pipeline = _pipeline(service)
    descriptor = make_descriptor("DSC_1234.jpg")

    async def scenario():
        first = await pipeline.process_file(descriptor)
        second = await pipeline.process_file(descriptor)
        return first, second

    first, second = asyncio.run(scenario())

    assert second is first
    assert service.calls == 1


def test_failed_results_are_not_cached() -> None:
    service = FakeTextService(
        outcomes=[ProviderAuthFailure("bad key"), reply("harbor_at_dawn")]
    )
    pipeline = _pipeline(service, _config(strategy="quality"))
    descriptor = make_descriptor("DSC_1234.jpg")

    async def scenario():
        return [await pipeline.process_file(descriptor) for _ in range(2)]

    first, second = asyncio.run(scenario())

    assert first.error is not None and first.error.code == "authentication_failed"
    assert second.ok
    assert service.calls == 2


def test_images_are_attached_for_vision_services(tmp_path: Path) -> None:
    photo = tmp_path / "DSC_0042.jpg"
    Image.new("RGB", (640, 480), color=(200, 120, 40)).save(photo, format="JPEG")
    service = FakeTextService(outcomes=[reply("orange_wall")], supports_vision=True)
    pipeline = _pipeline(service)

    result = asyncio.run(pipeline.process_file(photo))

    assert service.requests[0].images
    assert service.requests[0].images[0].startswith(b"\xff\xd8")
    assert result.tokens_used > 170


def test_missing_path_raises_for_single_file(tmp_path: Path) -> None:
    pipeline = _pipeline(FakeTextService())

    with pytest.raises(OSError):
        asyncio.run(pipeline.process_file(tmp_path / "missing.jpg"))


def test_batch_preserves_order_and_accounts_tokens() -> None:
    files = []
    for index in range(10):
        directory = f"/library/folder_{index}"
        if index % 3 == 0 and index < 9:
            name = f"Screenshot 2024-01-1{index} at 10.00.00.png"
        else:
            name = f"DSC_{1000 + index}.jpg"
        files.append(make_descriptor(name, directory=directory))

    service = FakeTextService(handler=lambda request: reply("named_by_model", total=100))
    pipeline = _pipeline(service, _config(enable_cheap_model_stage=False))

    results = asyncio.run(pipeline.process_batch(files))
    stats = pipeline.get_stats(results)

    assert [result.original for result in results] == [str(item.path) for item in files]
    assert stats.total == 10
    assert stats.by_stage.metadata == 3
    assert stats.by_stage.premium_model == 7
    assert stats.total_tokens == 700
    assert stats.failed == 0
    assert service.calls == 7


def test_siblings_reuse_representative_pattern() -> None:
    files = [make_descriptor(f"IMG_{2000 + index}.jpg") for index in range(1, 5)]
    service = FakeTextService(outcomes=[reply("beach_sunset_001", total=80)])
    pipeline = _pipeline(service)

    results = asyncio.run(pipeline.process_batch(files))

    assert [result.suggested_name for result in results] == [
        "beach_sunset_001",
        "beach_sunset_002",
        "beach_sunset_003",
        "beach_sunset_004",
    ]
    assert results[0].stage is PipelineStage.CHEAP_MODEL
    assert {result.stage for result in results[1:]} == {PipelineStage.BATCH_PATTERN}
    assert all(result.tokens_used == 20 for result in results[1:])
    assert results[1].confidence == pytest.approx(0.95 * 0.95)
    assert service.calls == 1


def test_untrusted_representative_names_siblings_individually() -> None:
    files = [make_descriptor(f"IMG_{2000 + index}.jpg") for index in range(1, 4)]
    service = FakeTextService(
        handler=lambda request: reply("blurry_photo", finish_reason="content_filter")
    )
    pipeline = _pipeline(service, _config(enable_cheap_model_stage=False))

    results = asyncio.run(pipeline.process_batch(files))

    assert service.calls == 3
    assert {result.stage for result in results} == {PipelineStage.PREMIUM_MODEL}


def test_unreadable_batch_entries_become_error_results(tmp_path: Path) -> None:
    note = tmp_path / "notes.txt"
    note.write_text("Agenda for the planning offsite", encoding="utf-8")
    missing = tmp_path / "missing.txt"
    service = FakeTextService(outcomes=[reply("offsite_agenda")])
    pipeline = _pipeline(service)

    results = asyncio.run(pipeline.process_batch([missing, note]))

    assert results[0].error is not None
    assert results[0].error.code == "file_unreadable"
    assert results[0].stage is None
    assert results[0].original == str(missing)
    assert results[1].suggested_name == "offsite_agenda"


def test_fail_fast_cancels_outstanding_files() -> None:
    release = asyncio.Event()
    blocked = _blocked(release)

    async def handler(request: GenerationRequest):
        if "fail.txt" in request.user_prompt:
            raise ProviderAuthFailure("key revoked")
        return await blocked(request)

    files = [
        make_descriptor("fail.txt", directory="/work/a"),
        make_descriptor("slow_one.txt", directory="/work/b"),
        make_descriptor("slow_two.txt", directory="/work/c"),
    ]
    service = FakeTextService(handler=handler)
    pipeline = _pipeline(service, _config(strategy="quality"))

    results = asyncio.run(pipeline.process_batch(files, fail_fast=True))

    assert results[0].error is not None
    assert results[0].error.code == "authentication_failed"
    assert [result.error.code for result in results[1:] if result.error] == [
        "cancelled",
        "cancelled",
    ]
    assert all(result.stage is None for result in results[1:])


def test_cancel_all_returns_cancelled_result() -> None:
    release = asyncio.Event()
    service = FakeTextService(handler=_blocked(release))
    pipeline = _pipeline(service, _config(strategy="quality"))

    async def scenario():
        task = asyncio.ensure_future(pipeline.process_file(make_descriptor("DSC_1234.jpg")))
        await service.started.wait()
        cancelled = pipeline.cancel_all()
        return cancelled, await task

    cancelled, result = asyncio.run(scenario())

    assert cancelled == 1
    assert result.error is not None
    assert result.error.code == "cancelled"
    assert service.calls == 1
    assert pipeline.cancel_all() == 0


def test_stats_for_no_results() -> None:
    pipeline = _pipeline(FakeTextService())

    assert pipeline.get_stats([]) == PipelineStats()


class _CrashingExtractor:
    def extract(self, path: Path, format_hint: str, *, text_chars: int, image_size: int):
        raise RuntimeError("parser exploded")


class _BrokenScorer(MetadataScorer):
    def score(self, descriptor):
        raise ValueError("bad exif")


class _BrokenPrompts(PromptBuilder):
    def build(self, context, mode=None, *, images=None):
        raise RuntimeError("template missing")


def test_batch_survives_images_over_the_pixel_limit(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    note = tmp_path / "notes.txt"
    note.write_text("Agenda for the planning offsite", encoding="utf-8")
    panorama = tmp_path / "panorama.png"
    Image.new("RGB", (60, 60)).save(panorama, format="PNG")
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1000)
    service = FakeTextService(handler=lambda request: reply("named_by_model"))
    pipeline = _pipeline(service)

    results = asyncio.run(pipeline.process_batch([note, panorama]))

    assert len(results) == 2
    assert all(result.error is None for result in results)
    assert all(result.suggested_name for result in results)


def test_extractor_crash_falls_back_to_metadata_prompt() -> None:
    files = [
        make_descriptor("a.pdf", directory="/work/a"),
        make_descriptor("b.txt", directory="/work/b"),
    ]
    service = FakeTextService(handler=lambda request: reply("named_by_premium"))
    config = _config(strategy="quality")
    pipeline = NamingPipeline(
        service,
        config,
        sampler=ContentSampler(_CrashingExtractor()),
        invoker=ResilientInvoker(config.retry, sleep=RecordingSleep()),
    )

    results = asyncio.run(pipeline.process_batch(files))

    assert [result.suggested_name for result in results] == [
        "named_by_premium",
        "named_by_premium",
    ]
    assert {result.stage for result in results} == {PipelineStage.PREMIUM_MODEL}
    assert all("metadata-only" in (result.reasoning or "") for result in results)


def test_scorer_failure_defers_to_model_stages() -> None:
    files = [
        make_descriptor("a.txt", directory="/work/a"),
        make_descriptor("b.txt", directory="/work/b"),
    ]
    service = FakeTextService(handler=lambda request: reply("meeting_notes"))
    config = NamewiseConfig()
    pipeline = NamingPipeline(
        service,
        config,
        scorer=_BrokenScorer(),
        invoker=ResilientInvoker(config.retry, sleep=RecordingSleep()),
    )

    results = asyncio.run(pipeline.process_batch(files))

    assert [result.suggested_name for result in results] == ["meeting_notes", "meeting_notes"]
    assert {result.stage for result in results} == {PipelineStage.CHEAP_MODEL}


def test_unexpected_failure_becomes_internal_error_per_file() -> None:
    files = [
        make_descriptor("a.txt", directory="/work/a"),
        make_descriptor("b.txt", directory="/work/b"),
    ]
    service = FakeTextService()
    config = NamewiseConfig()
    pipeline = NamingPipeline(
        service,
        config,
        prompt_builder=_BrokenPrompts(),
        invoker=ResilientInvoker(config.retry, sleep=RecordingSleep()),
    )

    results = asyncio.run(pipeline.process_batch(files))

    assert [result.original for result in results] == [str(item.path) for item in files]
    assert [result.error.code for result in results if result.error] == [
        "internal_error",
        "internal_error",
    ]
    assert results[0].error.message == "template missing"
    assert all(result.stage is None for result in results)
    assert service.calls == 0


def test_naming_settings_format_model_names() -> None:
    service = FakeTextService(outcomes=[reply("Golden Retriever Park At Dusk")])
    config = NamewiseConfig(naming=NamingSettings(format="kebab-case", max_length=21))
    pipeline = _pipeline(service, config)

    result = asyncio.run(pipeline.process_file(make_descriptor("DSC_1234.jpg")))

    assert result.suggested_name == "golden-retriever-park"


def test_naming_settings_format_metadata_names() -> None:
    config = NamewiseConfig(naming=NamingSettings(format="PascalCase"))
    pipeline = _pipeline(FakeTextService(), config)

    result = asyncio.run(
        pipeline.process_file(make_descriptor("Screenshot 2024-01-15 at 14.30.45.png"))
    )

    assert result.stage is PipelineStage.METADATA
    assert result.suggested_name == "Screenshot20240115143045"


def test_sibling_patterns_keep_the_configured_format() -> None:
    files = [make_descriptor(f"IMG_{2000 + index}.jpg") for index in range(1, 4)]
    service = FakeTextService(outcomes=[reply("Beach Sunset 001")])
    config = NamewiseConfig(naming=NamingSettings(format="kebab-case"))
    pipeline = _pipeline(service, config)

    results = asyncio.run(pipeline.process_batch(files))

    assert [result.suggested_name for result in results] == [
        "beach-sunset-001",
        "beach-sunset-002",
        "beach-sunset-003",
    ]
    assert service.calls == 1


def test_cancel_during_retry_backoff_stops_further_attempts() -> None:
    service = FakeTextService(handler=lambda request: ConnectionError("connection reset"))
    config = _config(strategy="quality")

    async def scenario():
        backing_off = asyncio.Event()

        async def stalled_sleep(delay: float) -> None:
            backing_off.set()
            await asyncio.Event().wait()

        pipeline = NamingPipeline(
            service, config, invoker=ResilientInvoker(config.retry, sleep=stalled_sleep)
        )
        task = asyncio.ensure_future(pipeline.process_file(make_descriptor("DSC_1234.jpg")))
        await backing_off.wait()
        cancelled = pipeline.cancel_all()
        result = await task
        return cancelled, result, pipeline

    cancelled, result, pipeline = asyncio.run(scenario())

    assert cancelled == 1
    assert result.error is not None
    assert result.error.code == "cancelled"
    assert service.calls == 1
    assert pipeline.metrics.retries == 1


def test_untrusted_pattern_is_offered_to_siblings_when_enabled() -> None:
    def handler(request: GenerationRequest):
        if request.system_prompt == BATCH_SYSTEM:
            return reply("blurry_photo_002")
        return reply("blurry_photo", finish_reason="content_filter")

    files = [make_descriptor(f"IMG_{2000 + index}.jpg") for index in range(1, 4)]
    service = FakeTextService(handler=handler)
    pipeline = _pipeline(service, _config(pattern_prompt=True))

    results = asyncio.run(pipeline.process_batch(files))

    batch_requests = [
        request for request in service.requests if request.system_prompt == BATCH_SYSTEM
    ]
    assert len(batch_requests) == 2
    assert all("Pattern: blurry_photo_[n]" in request.user_prompt for request in batch_requests)
    assert all(not request.images for request in batch_requests)
    assert service.calls == 4
    stages = sorted(result.stage.value for result in results)
    assert stages == ["cheap-model", "cheap-model", "premium-model"]
    assert sum(result.suggested_name == "blurry_photo_002" for result in results) == 2


def test_untrusted_pattern_is_not_offered_by_default() -> None:
    files = [make_descriptor(f"IMG_{2000 + index}.jpg") for index in range(1, 4)]
    service = FakeTextService(
        handler=lambda request: reply("blurry_photo", finish_reason="content_filter")
    )
    pipeline = _pipeline(service)

    asyncio.run(pipeline.process_batch(files))

    assert all(request.system_prompt != BATCH_SYSTEM for request in service.requests)
