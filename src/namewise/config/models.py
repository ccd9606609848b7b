"""Configuration models describing namewise settings."""

from __future__ import annotations

from typing import Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

StrategyName = Literal["aggressive", "balanced", "quality"]
CaseFormat = Literal["snake_case", "kebab-case", "camelCase", "PascalCase", "preserve"]


class NamewiseBaseModel(BaseModel):
    """Shared configuration for namewise Pydantic models."""

    model_config = ConfigDict(extra="forbid")


class LLMSettings(NamewiseBaseModel):
    """Text-generation service configuration.

    Attributes:
        provider: Identifier for the language-model provider.
        cheap_model: Low-cost model used by the cheap-model stage.
        premium_model: High-quality model used by the terminal stage.
        temperature: Sampling temperature for generative calls.
        max_output_tokens: Maximum number of tokens in responses.
        api_key: Optional credential for hosted providers.
        api_base_url: Optional endpoint override for self-hosted gateways.
    """

    provider: str = "openai"
    cheap_model: str = "gpt-5-mini"
    premium_model: str = "gpt-5"
    temperature: float = 0.3
    max_output_tokens: int = 100
    api_key: Optional[str] = None
    api_base_url: Optional[str] = None


class PipelineSettings(NamewiseBaseModel):
    """Stage selection and batch behaviour.

    Stage toggles and thresholds left as ``None`` inherit the values of the
    selected strategy preset.

    Attributes:
        strategy: Preset controlling stages, thresholds, and sampling sizes.
        enable_metadata_stage: Override for the metadata stage toggle.
        enable_cheap_model_stage: Override for the cheap-model stage toggle.
        metadata_threshold: Override for the metadata acceptance threshold.
        cheap_model_threshold: Override for the cheap-model acceptance threshold.
        pattern_trust_threshold: Minimum representative confidence before
            siblings reuse its naming pattern.
        sibling_confidence_factor: Multiplier applied to the representative's
            confidence for pattern-named siblings.
        pattern_tokens: Token estimate charged per pattern-named sibling.
        concurrency: Maximum number of files processed concurrently.
        fail_fast: Cancel outstanding batch work after the first terminal error.
        pattern_prompt: When a representative is not trusted, give its pattern
            to the siblings' cheap-model calls as a batch-pattern prompt.
    """

    strategy: StrategyName = "balanced"
    enable_metadata_stage: Optional[bool] = None
    enable_cheap_model_stage: Optional[bool] = None
    metadata_threshold: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    cheap_model_threshold: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    pattern_trust_threshold: float = Field(default=0.7, ge=0.0, le=1.0)
    sibling_confidence_factor: float = Field(default=0.95, ge=0.0, le=1.0)
    pattern_tokens: int = Field(default=20, ge=0)
    concurrency: int = Field(default=5, ge=1, le=100)
    fail_fast: bool = False
    pattern_prompt: bool = False


class RetrySettings(NamewiseBaseModel):
    """Retry policy for external service calls.

    Attributes:
        max_retries: Retries allowed after the first failed attempt.
        base_delay_ms: Delay before the first retry.
        max_delay_ms: Upper bound for the exponential delay before jitter.
        jitter_ratio: Maximum jitter added as a fraction of the delay.
        timeout_seconds: Per-attempt timeout; ``0`` disables the timeout.
    """

    max_retries: int = Field(default=3, ge=0, le=10)
    base_delay_ms: int = Field(default=1_000, ge=0)
    max_delay_ms: int = Field(default=10_000, ge=0)
    jitter_ratio: float = Field(default=0.3, ge=0.0, le=1.0)
    timeout_seconds: float = Field(default=30.0, ge=0.0)


class CacheSettings(NamewiseBaseModel):
    """In-memory result cache settings.

    Attributes:
        enabled: Whether naming results are memoised.
        max_size: Maximum number of cached entries.
        ttl_seconds: Sliding time-to-live for each entry.
    """

    enabled: bool = True
    max_size: int = Field(default=100, ge=1)
    ttl_seconds: float = Field(default=3_600.0, gt=0.0)


class NamingSettings(NamewiseBaseModel):
    """Post-processing applied to every suggested name.

    Attributes:
        format: Case format for suggested names; ``preserve`` keeps the
            model's own casing.
        max_length: Maximum length of a suggested name, excluding extension.
        sanitize: Whether reserved characters and whitespace are replaced.
        replace_spaces: Replacement used for whitespace and reserved characters.
    """

    format: CaseFormat = "snake_case"
    max_length: int = Field(default=100, ge=1, le=255)
    sanitize: bool = True
    replace_spaces: str = "_"


class LoggingSettings(NamewiseBaseModel):
    """Runtime logging configuration.

    Attributes:
        level: Logging verbosity level.
    """

    level: str = "WARNING"


class CLIOptions(NamewiseBaseModel):
    """CLI behavior defaults and presentation preferences.

    Attributes:
        quiet_default: Whether commands suppress non-error output by default.
        json_default: Whether commands emit JSON by default.
    """

    quiet_default: bool = False
    json_default: bool = False


def _default_pricing() -> Dict[str, float]:
    return {
        "gpt-5": 1.25,
        "gpt-5-mini": 0.25,
        "gpt-5-nano": 0.05,
        "gpt-4o": 2.50,
        "default": 0.25,
    }


class NamewiseConfig(NamewiseBaseModel):
    """Top-level configuration struct for namewise.

    Attributes:
        llm: Text-generation service settings.
        pipeline: Stage and batch settings.
        naming: Case format and length limits for suggested names.
        retry: Retry policy for service calls.
        cache: Result cache settings.
        pricing: USD price per one million tokens keyed by model name.
        logging: Logging configuration.
        cli: CLI presentation defaults.
    """

    llm: LLMSettings = Field(default_factory=LLMSettings)
    pipeline: PipelineSettings = Field(default_factory=PipelineSettings)
    naming: NamingSettings = Field(default_factory=NamingSettings)
    retry: RetrySettings = Field(default_factory=RetrySettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    pricing: Dict[str, float] = Field(default_factory=_default_pricing)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    cli: CLIOptions = Field(default_factory=CLIOptions)


__all__ = [
    "NamewiseBaseModel",
    "StrategyName",
    "LLMSettings",
    "PipelineSettings",
    "NamingSettings",
    "CaseFormat",
    "RetrySettings",
    "CacheSettings",
    "LoggingSettings",
    "CLIOptions",
    "NamewiseConfig",
]
