"""Dispatch queue configuration."""

from pydantic import BaseModel, Field


class DispatchConfig(BaseModel):
    """Worker pool and queue sizing."""

    workers: int = Field(default=4, gt=0, description="Worker coroutines")
    queue_size: int = Field(
        default=1000,
        gt=0,
        description="Queue capacity; tasks beyond it are dropped",
    )
    drain_timeout: float | None = Field(
        default=30.0,
        gt=0,
        description="Seconds to drain the queue on shutdown (None waits forever)",
    )
