"""IBus block configuration models."""

from typing import Optional

from pydantic import BaseModel, Field

from .defaults import (
    DEFAULT_INITIAL_TEXT,
    DEFAULT_LOCK_TIMEOUT,
    DEFAULT_QUERY_TIMEOUT,
    DEFAULT_RECEIVE_TIMEOUT,
    DEFAULT_RETRY_INITIAL_DELAY,
    DEFAULT_RETRY_MAX_DELAY,
    DEFAULT_SHUTDOWN_TIMEOUT,
    MACHINE_ID_PATH,
)


class DiscoveryConfig(BaseModel):
    """How the IBus bus address is located."""

    machine_id_paths: list[str] = Field(
        default_factory=lambda: [MACHINE_ID_PATH],
        description="Machine id files, tried in order",
    )
    address_env: Optional[str] = Field(
        default=None,
        description="Environment variable holding an explicit bus address (e.g. IBUS_ADDRESS)",
    )


class RetryConfig(BaseModel):
    """Reconnect policy for the background signal listener."""

    enabled: bool = Field(default=True, description="Reconnect after listener failures")
    initial_delay: float = Field(
        default=DEFAULT_RETRY_INITIAL_DELAY,
        gt=0,
        description="Delay before the first reconnect attempt, in seconds",
    )
    max_delay: float = Field(
        default=DEFAULT_RETRY_MAX_DELAY,
        gt=0,
        description="Upper bound for the exponential backoff, in seconds",
    )
    max_attempts: Optional[int] = Field(
        default=None,
        ge=1,
        description="Give up after this many consecutive failures (None retries forever)",
    )


class IBusBlockConfig(BaseModel):
    """Configuration for the IBus status block."""

    discovery: DiscoveryConfig = Field(
        default_factory=DiscoveryConfig,
        description="Bus address discovery",
    )
    retry: RetryConfig = Field(
        default_factory=RetryConfig,
        description="Listener reconnect policy",
    )
    query_timeout: float = Field(
        default=DEFAULT_QUERY_TIMEOUT,
        gt=0,
        description="Timeout for the GlobalEngine property query, in seconds",
    )
    receive_timeout: float = Field(
        default=DEFAULT_RECEIVE_TIMEOUT,
        gt=0,
        description="Upper bound of a single wait for bus traffic, in seconds",
    )
    lock_timeout: float = Field(
        default=DEFAULT_LOCK_TIMEOUT,
        gt=0,
        description="How long update() waits for the engine state lock",
    )
    shutdown_timeout: float = Field(
        default=DEFAULT_SHUTDOWN_TIMEOUT,
        ge=0,
        description="How long close() waits for the listener thread",
    )
    initial_text: str = Field(
        default=DEFAULT_INITIAL_TEXT,
        description="Text shown before the first update",
    )
    as_icon: bool = Field(
        default=False,
        description="Show the short layout code (e.g. 'jp') instead of the engine name",
    )
