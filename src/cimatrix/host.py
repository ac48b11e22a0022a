"""Host facts: read-only information about the machine a job executes on."""

import os
import platform as py_platform
from collections.abc import Iterable, Mapping
from types import MappingProxyType

from cimatrix.errors import ConfigurationError
from cimatrix.models import normalize_value
from cimatrix_logging import get_cli_logger

logger = get_cli_logger(__name__)

HostFacts = Mapping[str, str]

# Same spelling as the runner.os / runner.arch workflow contexts
OS_MAP = {"linux": "Linux", "darwin": "macOS", "windows": "Windows"}
ARCH_MAP = {
    "x86_64": "X64",
    "amd64": "X64",
    "i386": "X86",
    "i686": "X86",
    "arm64": "ARM64",
    "aarch64": "ARM64",
    "armv7l": "ARM",
}


def freeze(facts: Mapping[str, object]) -> HostFacts:
    """Return an immutable string-valued copy of ``facts``."""
    try:
        return MappingProxyType(
            {str(key): normalize_value(value) for key, value in facts.items()},
        )
    except ValueError as e:
        msg = f"invalid host fact: {e}"
        raise ConfigurationError(msg) from e


def detect_host_facts() -> HostFacts:
    """Detect facts about the current host.

    ``RUNNER_OS`` and ``RUNNER_ARCH`` take precedence over platform
    detection so that plans computed on a runner match its own view.

    Returns
    -------
    HostFacts
        ``os`` and ``arch`` facts
    """
    system = py_platform.system().lower()
    machine = py_platform.machine().lower()

    host_os = os.getenv("RUNNER_OS") or OS_MAP.get(system, system.capitalize())
    host_arch = os.getenv("RUNNER_ARCH") or ARCH_MAP.get(machine, machine.upper())

    logger.debug("Detected host facts: os=%s arch=%s", host_os, host_arch)
    return freeze({"os": host_os, "arch": host_arch})


def parse_fact_overrides(pairs: Iterable[str]) -> dict[str, str]:
    """Parse ``key=value`` strings into a fact mapping.

    Raises
    ------
    ConfigurationError
        If an entry has no ``=`` or an empty key
    """
    facts: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        key = key.strip()
        if not sep or not key:
            msg = f"host fact must be written as key=value, got {pair!r}"
            raise ConfigurationError(msg)
        facts[key] = value.strip()
    return facts


def merge_facts(*layers: Mapping[str, object] | None) -> HostFacts:
    """Merge fact layers; later layers win."""
    merged: dict[str, object] = {}
    for layer in layers:
        if layer:
            merged.update(layer)
    return freeze(merged)
