"""Kafka client properties, factories and their autoconfiguration."""

from .admin import KafkaAdmin, TopicSpec
from .configuration import KafkaAutoConfiguration
from .connection_details import (
    KafkaConnectionConfiguration,
    KafkaConnectionDetails,
    PropertiesKafkaConnectionDetails,
)
from .factories import (
    ConsumerFactory,
    ConsumerFactoryCustomizer,
    ProducerFactory,
    ProducerFactoryCustomizer,
)
from .jaas import KafkaJaasLoginModuleInitializer
from .properties import KafkaProperties
from .retry_topic import (
    BackOffPolicyBuilder,
    NoBackOffPolicy,
    RetryTopicConfiguration,
    RetryTopicConfigurationBuilder,
    SleepingBackOffPolicy,
    build_backoff_policy,
)
from .template import (
    JsonMessageConverter,
    KafkaTemplate,
    LoggingProducerListener,
    MessageConverter,
    ProducerListener,
)
from .tls import KafkaTlsSource
from .transaction import KafkaTransactionManager

__all__ = [
    "BackOffPolicyBuilder",
    "ConsumerFactory",
    "ConsumerFactoryCustomizer",
    "JsonMessageConverter",
    "KafkaAdmin",
    "KafkaAutoConfiguration",
    "KafkaConnectionConfiguration",
    "KafkaConnectionDetails",
    "KafkaJaasLoginModuleInitializer",
    "KafkaProperties",
    "KafkaTemplate",
    "KafkaTlsSource",
    "KafkaTransactionManager",
    "LoggingProducerListener",
    "MessageConverter",
    "NoBackOffPolicy",
    "ProducerFactory",
    "ProducerFactoryCustomizer",
    "ProducerListener",
    "PropertiesKafkaConnectionDetails",
    "RetryTopicConfiguration",
    "RetryTopicConfigurationBuilder",
    "SleepingBackOffPolicy",
    "TopicSpec",
    "build_backoff_policy",
]
