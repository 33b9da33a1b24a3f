"""Application configuration defaults."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from speechfeels.exceptions import SpeechfeelsConfigError
from speechfeels.pipeline.pool import default_pool_size
from speechfeels.sentiment.encoder import DEFAULT_MODEL

OUTPUT_FORMATS = ("json", "html")


class FailurePolicy(str, Enum):
    """What the runner does when a document fails."""

    FAIL_FAST = "fail-fast"
    ISOLATE = "isolate"


@dataclass(slots=True)
class AppConfig:
    model_name: str = DEFAULT_MODEL
    workers: int | None = None
    policy: FailurePolicy = FailurePolicy.FAIL_FAST
    output_format: str = "json"
    device: str | None = None
    batch_size: int = 16

    def __post_init__(self) -> None:
        if self.output_format not in OUTPUT_FORMATS:
            raise SpeechfeelsConfigError(
                f"Unknown output format {self.output_format!r}; "
                f"expected one of {', '.join(OUTPUT_FORMATS)}",
                config_key="output_format",
            )
        self.policy = FailurePolicy(self.policy)

    def resolve_workers(self) -> int:
        if self.workers is None:
            return default_pool_size()
        if self.workers < 1:
            raise SpeechfeelsConfigError(
                f"workers must be at least 1, got {self.workers}", config_key="workers"
            )
        return self.workers
