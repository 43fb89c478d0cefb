"""Assemble the Kafka clients described by :class:`KafkaProperties`."""

from __future__ import annotations

from typing import Any

from ..context import AssemblyStep, ClientRegistry, all_of, assemble, missing, single_candidate, when
from ..sslbundle.registry import SslBundles
from ..utils.logging import setup_logger
from ..utils.units import to_seconds
from .admin import KafkaAdmin
from .connection_details import (
    KafkaConnectionConfiguration,
    KafkaConnectionDetails,
    PropertiesKafkaConnectionDetails,
    apply_security_protocol,
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
    RetryTopicConfiguration,
    RetryTopicConfigurationBuilder,
    SleepingBackOffPolicy,
    build_backoff_policy,
)
from .template import KafkaTemplate, LoggingProducerListener, MessageConverter, ProducerListener
from .tls import tls_source_for
from .transaction import KafkaTransactionManager

logger = setup_logger(__name__, context={"component": "KafkaAutoConfiguration"})


def _apply_connection(config: dict[str, Any], connection: KafkaConnectionConfiguration) -> None:
    config["bootstrap.servers"] = ",".join(connection.bootstrap_servers)
    apply_security_protocol(config, connection.security_protocol)


class KafkaAutoConfiguration:
    """Builds default Kafka clients unless the application registered its own.

    Every factory method reads collaborators from the registry, so a client
    registered up front replaces the default everywhere it is used.
    """

    def __init__(self, properties: KafkaProperties, ssl_bundles: SslBundles | None = None) -> None:
        self.properties = properties
        self.ssl_bundles = ssl_bundles

    def kafka_connection_details(self, registry: ClientRegistry) -> KafkaConnectionDetails:
        return PropertiesKafkaConnectionDetails(self.properties, self.ssl_bundles)

    def kafka_producer_listener(self, registry: ClientRegistry) -> ProducerListener:
        return LoggingProducerListener()

    def kafka_producer_factory(self, registry: ClientRegistry) -> ProducerFactory:
        connection = registry.get_by_type(KafkaConnectionDetails).producer
        config = self.properties.build_producer_properties()
        _apply_connection(config, connection)
        factory = ProducerFactory(
            config,
            tls=tls_source_for(connection.ssl_bundle),
            transaction_id_prefix=self.properties.producer.transaction_id_prefix,
        )
        for customizer in registry.ordered(ProducerFactoryCustomizer):
            customizer.customize(factory)
        return factory

    def kafka_consumer_factory(self, registry: ClientRegistry) -> ConsumerFactory:
        connection = registry.get_by_type(KafkaConnectionDetails).consumer
        config = self.properties.build_consumer_properties()
        _apply_connection(config, connection)
        factory = ConsumerFactory(
            config,
            tls=tls_source_for(connection.ssl_bundle),
            max_poll_records=self.properties.consumer.max_poll_records,
        )
        for customizer in registry.ordered(ConsumerFactoryCustomizer):
            customizer.customize(factory)
        return factory

    def kafka_template(self, registry: ClientRegistry) -> KafkaTemplate:
        template_properties = self.properties.template
        template = KafkaTemplate(registry.get_by_type(ProducerFactory))
        converter = registry.get_if_unique(MessageConverter)
        if converter is not None:
            template.message_converter = converter
        listener = registry.get_if_unique(ProducerListener)
        if listener is not None:
            template.producer_listener = listener
        if template_properties.default_topic is not None:
            template.default_topic = template_properties.default_topic
        if template_properties.transaction_id_prefix is not None:
            template.transaction_id_prefix = template_properties.transaction_id_prefix
        template.observation_enabled = template_properties.observation_enabled
        return template

    def kafka_transaction_manager(self, registry: ClientRegistry) -> KafkaTransactionManager:
        return KafkaTransactionManager(registry.get_by_type(ProducerFactory))

    def kafka_jaas_initializer(self, registry: ClientRegistry) -> KafkaJaasLoginModuleInitializer:
        jaas_properties = self.properties.jaas
        jaas = KafkaJaasLoginModuleInitializer()
        if jaas_properties.control_flag is not None:
            jaas.control_flag = jaas_properties.control_flag
        if jaas_properties.login_module is not None:
            jaas.login_module = jaas_properties.login_module
        jaas.set_options(jaas_properties.options)
        return jaas

    def kafka_admin(self, registry: ClientRegistry) -> KafkaAdmin:
        connection = registry.get_by_type(KafkaConnectionDetails).admin
        config = self.properties.build_admin_properties()
        _apply_connection(config, connection)
        admin_properties = self.properties.admin
        admin = KafkaAdmin(config, tls=tls_source_for(connection.ssl_bundle))
        if admin_properties.close_timeout is not None:
            admin.close_timeout = to_seconds(admin_properties.close_timeout)
        if admin_properties.operation_timeout is not None:
            admin.operation_timeout = to_seconds(admin_properties.operation_timeout)
        admin.fatal_if_broker_not_available = admin_properties.fail_fast
        admin.modify_topic_configs = admin_properties.modify_topic_configs
        admin.auto_create = admin_properties.auto_create
        return admin

    def kafka_retry_topic_configuration(self, registry: ClientRegistry) -> RetryTopicConfiguration:
        retry_topic = self.properties.retry.topic
        builder = (
            RetryTopicConfigurationBuilder()
            .max_attempts(retry_topic.attempts)
            .use_single_topic_for_same_intervals()
            .suffix_topics_with_index_values()
            .do_not_auto_create_retry_topics()
        )
        policy = build_backoff_policy(retry_topic.backoff)
        if isinstance(policy, SleepingBackOffPolicy):
            builder.custom_backoff(policy)
        else:
            builder.no_backoff()
        return builder.create(registry.get_by_type(KafkaTemplate))

    def assembly_steps(self) -> list[AssemblyStep]:
        properties = self.properties
        return [
            AssemblyStep("kafka_connection_details", KafkaConnectionDetails, self.kafka_connection_details),
            AssemblyStep("kafka_producer_listener", ProducerListener, self.kafka_producer_listener),
            AssemblyStep("kafka_producer_factory", ProducerFactory, self.kafka_producer_factory),
            AssemblyStep("kafka_consumer_factory", ConsumerFactory, self.kafka_consumer_factory),
            AssemblyStep("kafka_template", KafkaTemplate, self.kafka_template),
            AssemblyStep(
                "kafka_transaction_manager",
                KafkaTransactionManager,
                self.kafka_transaction_manager,
                all_of(
                    when(bool(properties.producer.transaction_id_prefix)),
                    missing(KafkaTransactionManager),
                ),
            ),
            AssemblyStep(
                "kafka_jaas_initializer",
                KafkaJaasLoginModuleInitializer,
                self.kafka_jaas_initializer,
                all_of(when(properties.jaas.enabled), missing(KafkaJaasLoginModuleInitializer)),
            ),
            AssemblyStep("kafka_admin", KafkaAdmin, self.kafka_admin),
            AssemblyStep(
                "kafka_retry_topic_configuration",
                RetryTopicConfiguration,
                self.kafka_retry_topic_configuration,
                all_of(when(properties.retry.topic.enabled), single_candidate(KafkaTemplate)),
            ),
        ]

    def configure(self, registry: ClientRegistry) -> list[str]:
        """Run every Kafka assembly step against ``registry``.

        Once every step has run, registered JAAS initializers that are not
        installed yet write their login file. I/O errors propagate.
        """

        registered = assemble(self.assembly_steps(), registry)
        for jaas in registry.candidates(KafkaJaasLoginModuleInitializer):
            if not jaas.installed:
                jaas.install()
        logger.info(
            "Kafka autoconfiguration registered %d client(s)",
            len(registered),
            extra={"status": "configured"},
        )
        return registered

    @staticmethod
    def shutdown(registry: ClientRegistry) -> None:
        """Flush templates and remove installed JAAS login files."""

        for template in registry.candidates(KafkaTemplate):
            template.close()
        for jaas in registry.candidates(KafkaJaasLoginModuleInitializer):
            jaas.destroy()
        logger.info("Kafka clients shut down", extra={"status": "closed"})
