from __future__ import annotations

from dataclasses import dataclass

from .render import BufferSink
from .repositories import Repository, get_repository
from .settings import Settings, configure_logging, get_settings


@dataclass(frozen=True)
class SingletonServices:
    """Services shared by every connection for the lifetime of the process."""

    settings: Settings
    repository: Repository


@dataclass(frozen=True)
class WireServices:
    """Services created per WebSocket connection."""

    out: BufferSink


# PUBLIC_INTERFACE
def create_config() -> Settings:
    """Load settings from the environment and apply the configured log level."""
    settings = get_settings()
    configure_logging(settings.log_level)
    return settings


# PUBLIC_INTERFACE
def create_singleton_services(settings: Settings) -> SingletonServices:
    return SingletonServices(settings=settings, repository=get_repository(settings))


# PUBLIC_INTERFACE
def create_wire_services(singletons: SingletonServices) -> WireServices:  # noqa: ARG001
    return WireServices(out=BufferSink())
