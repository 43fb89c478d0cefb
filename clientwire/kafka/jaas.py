"""JAAS login configuration for Kafka tooling that runs on the JVM."""

from __future__ import annotations

import os
import tempfile
from collections.abc import Mapping
from pathlib import Path

from ..utils.logging import setup_logger
from .properties import JaasControlFlag

logger = setup_logger(__name__, context={"component": "KafkaJaas"})

DEFAULT_LOGIN_MODULE = "com.sun.security.auth.module.Krb5LoginModule"
LOGIN_CONTEXT_NAME = "KafkaClient"
JAAS_CONFIG_PROPERTY = "java.security.auth.login.config"
KAFKA_OPTS_ENV = "KAFKA_OPTS"


def _quote(value: str) -> str:
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


class KafkaJaasLoginModuleInitializer:
    """Writes a ``KafkaClient`` JAAS section and points ``KAFKA_OPTS`` at it.

    The backing file is reserved on construction, so creating the initializer
    can raise ``OSError``.
    """

    def __init__(self, directory: str | Path | None = None) -> None:
        handle, path = tempfile.mkstemp(prefix="kafka-jaas-", suffix=".conf", dir=directory)
        os.close(handle)
        self.config_file = Path(path)
        self.login_module = DEFAULT_LOGIN_MODULE
        self.control_flag = JaasControlFlag.REQUIRED
        self.options: dict[str, str] = {}
        self.installed = False

    def set_options(self, options: Mapping[str, str] | None) -> None:
        self.options = dict(options or {})

    def _resolve_option(self, value: str) -> str:
        if value.startswith("@"):
            return Path(value[1:]).read_text(encoding="utf-8").strip()
        return value

    def render(self) -> str:
        """Return the JAAS login section for the current settings."""

        flag = self.control_flag.value if isinstance(self.control_flag, JaasControlFlag) else str(self.control_flag)
        lines = [f"{LOGIN_CONTEXT_NAME} {{", f"    {self.login_module} {flag}"]
        for key, value in sorted(self.options.items()):
            lines.append(f"    {key}={_quote(self._resolve_option(value))}")
        lines[-1] += ";"
        lines.append("};")
        return "\n".join(lines) + "\n"

    def install(self) -> Path:
        """Write the login file and add it to ``KAFKA_OPTS``.

        Options written as ``@<path>`` are replaced by the content of that
        file; read errors propagate.
        """

        self.config_file.write_text(self.render(), encoding="utf-8")
        flag = f"-D{JAAS_CONFIG_PROPERTY}={self.config_file}"
        existing = os.environ.get(KAFKA_OPTS_ENV, "")
        parts = [part for part in existing.split() if not part.startswith(f"-D{JAAS_CONFIG_PROPERTY}=")]
        parts.append(flag)
        os.environ[KAFKA_OPTS_ENV] = " ".join(parts)
        self.installed = True
        logger.info(
            "Installed JAAS login configuration at %s",
            self.config_file,
            extra={"status": "installed"},
        )
        return self.config_file

    def destroy(self) -> None:
        """Remove the login file and its ``KAFKA_OPTS`` entry."""

        self.config_file.unlink(missing_ok=True)
        self.installed = False
        existing = os.environ.get(KAFKA_OPTS_ENV)
        if existing is None:
            return
        flag = f"-D{JAAS_CONFIG_PROPERTY}={self.config_file}"
        parts = [part for part in existing.split() if part != flag]
        if parts:
            os.environ[KAFKA_OPTS_ENV] = " ".join(parts)
        else:
            del os.environ[KAFKA_OPTS_ENV]
