"""Retry topic configuration: how many attempts, which topics, and the backoff between them."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from ..exceptions import ConfigurationError
from ..utils.units import to_millis
from .properties import BackoffProperties

if TYPE_CHECKING:
    from .template import KafkaTemplate

RETRY_TOPIC_SUFFIX = "-retry"
DLT_SUFFIX = "-dlt"


class BackOffKind(str, Enum):
    FIXED = "fixed"
    EXPONENTIAL = "exponential"
    EXPONENTIAL_RANDOM = "exponential_random"
    UNIFORM_RANDOM = "uniform_random"


@dataclass(frozen=True, slots=True)
class NoBackOffPolicy:
    """Redeliver immediately."""

    def intervals(self, attempts: int) -> list[int]:
        return [0] * max(attempts - 1, 0)


@dataclass(frozen=True, slots=True)
class SleepingBackOffPolicy:
    """Backoff that waits between attempts. Values are in milliseconds."""

    delay_ms: int
    max_delay_ms: int | None = None
    multiplier: float | None = None
    random: bool = False

    @property
    def kind(self) -> BackOffKind:
        if self.multiplier is not None and self.multiplier > 0:
            return BackOffKind.EXPONENTIAL_RANDOM if self.random else BackOffKind.EXPONENTIAL
        if self.max_delay_ms is not None and self.max_delay_ms > self.delay_ms:
            return BackOffKind.UNIFORM_RANDOM
        return BackOffKind.FIXED

    def intervals(self, attempts: int) -> list[int]:
        """Nominal wait before each retry; random variants report their lower bound."""

        count = max(attempts - 1, 0)
        if self.kind in (BackOffKind.EXPONENTIAL, BackOffKind.EXPONENTIAL_RANDOM):
            result = []
            current = float(self.delay_ms)
            for _ in range(count):
                value = int(current)
                if self.max_delay_ms is not None:
                    value = min(value, self.max_delay_ms)
                result.append(value)
                current *= self.multiplier or 1
            return result
        return [self.delay_ms] * count


BackOffPolicy = NoBackOffPolicy | SleepingBackOffPolicy


class BackOffPolicyBuilder:
    """Collects backoff settings; unset values keep the retry library defaults."""

    def __init__(self) -> None:
        self._delay: int | None = None
        self._max_delay: int | None = None
        self._multiplier: float | None = None
        self._random: bool | None = None

    def delay(self, delay_ms: int) -> BackOffPolicyBuilder:
        self._delay = delay_ms
        return self

    def max_delay(self, max_delay_ms: int) -> BackOffPolicyBuilder:
        self._max_delay = max_delay_ms
        return self

    def multiplier(self, multiplier: float) -> BackOffPolicyBuilder:
        self._multiplier = multiplier
        return self

    def random(self, random: bool) -> BackOffPolicyBuilder:
        self._random = random
        return self

    def build(self) -> SleepingBackOffPolicy:
        return SleepingBackOffPolicy(
            delay_ms=self._delay if self._delay is not None else 1000,
            max_delay_ms=self._max_delay,
            multiplier=self._multiplier,
            random=bool(self._random),
        )


def build_backoff_policy(backoff: BackoffProperties) -> BackOffPolicy:
    """A positive delay gives a sleeping policy built from the present values, else no backoff."""

    delay = to_millis(backoff.delay) or 0
    if delay <= 0:
        return NoBackOffPolicy()
    builder = BackOffPolicyBuilder().delay(delay)
    if backoff.max_delay is not None:
        builder.max_delay(to_millis(backoff.max_delay))
    if backoff.multiplier is not None:
        builder.multiplier(backoff.multiplier)
    if backoff.random is not None:
        builder.random(backoff.random)
    return builder.build()


@dataclass(frozen=True, slots=True)
class RetryTopicConfiguration:
    template: KafkaTemplate
    max_attempts: int
    backoff: BackOffPolicy
    single_topic_for_same_intervals: bool
    suffix_with_index_values: bool
    auto_create_topics: bool

    def _same_intervals(self) -> bool:
        return len(set(self.backoff.intervals(self.max_attempts))) <= 1

    def retry_topic_names(self, main_topic: str) -> list[str]:
        """Names of the retry topics between ``main_topic`` and its dead letter topic."""

        retries = self.max_attempts - 1
        if retries <= 0:
            return []
        if self.single_topic_for_same_intervals and self._same_intervals():
            return [f"{main_topic}{RETRY_TOPIC_SUFFIX}"]
        if self.suffix_with_index_values:
            return [f"{main_topic}{RETRY_TOPIC_SUFFIX}-{index}" for index in range(retries)]
        return [
            f"{main_topic}{RETRY_TOPIC_SUFFIX}-{interval}"
            for interval in self.backoff.intervals(self.max_attempts)
        ]

    def dlt_topic_name(self, main_topic: str) -> str:
        return f"{main_topic}{DLT_SUFFIX}"


class RetryTopicConfigurationBuilder:
    def __init__(self) -> None:
        self._max_attempts = 3
        self._backoff: BackOffPolicy = SleepingBackOffPolicy(delay_ms=1000)
        self._single_topic = False
        self._suffix_with_index = False
        self._auto_create = True

    def max_attempts(self, attempts: int) -> RetryTopicConfigurationBuilder:
        if attempts < 1:
            raise ConfigurationError("Retry topic attempts must be at least 1")
        self._max_attempts = attempts
        return self

    def use_single_topic_for_same_intervals(self) -> RetryTopicConfigurationBuilder:
        self._single_topic = True
        return self

    def suffix_topics_with_index_values(self) -> RetryTopicConfigurationBuilder:
        self._suffix_with_index = True
        return self

    def do_not_auto_create_retry_topics(self) -> RetryTopicConfigurationBuilder:
        self._auto_create = False
        return self

    def custom_backoff(self, policy: SleepingBackOffPolicy) -> RetryTopicConfigurationBuilder:
        self._backoff = policy
        return self

    def no_backoff(self) -> RetryTopicConfigurationBuilder:
        self._backoff = NoBackOffPolicy()
        return self

    def create(self, template: KafkaTemplate) -> RetryTopicConfiguration:
        return RetryTopicConfiguration(
            template=template,
            max_attempts=self._max_attempts,
            backoff=self._backoff,
            single_topic_for_same_intervals=self._single_topic,
            suffix_with_index_values=self._suffix_with_index,
            auto_create_topics=self._auto_create,
        )
