"""
Website channel context consumed by the repositories.

Supplies the preview flag and the channel name used for query scoping and
cache key prefixes.
"""

from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Iterator, Optional, Protocol

import structlog


website_channel_var: ContextVar[Optional[str]] = ContextVar('website_channel', default=None)
preview_mode_var: ContextVar[bool] = ContextVar('preview_mode', default=False)


class ChannelContext(Protocol):
    """Current website channel and preview state."""

    @property
    def is_preview(self) -> bool:
        ...

    @property
    def website_channel_name(self) -> str:
        ...


@dataclass(frozen=True)
class StaticChannelContext:
    """Fixed channel context, e.g. for background jobs."""
    website_channel_name: str
    is_preview: bool = False


class ContextVarChannelContext:
    """Channel context read from context variables of the current task."""

    def __init__(self, default_channel_name: str = ""):
        self.default_channel_name = default_channel_name

    @property
    def is_preview(self) -> bool:
        return preview_mode_var.get()

    @property
    def website_channel_name(self) -> str:
        return website_channel_var.get() or self.default_channel_name


@contextmanager
def channel_scope(website_channel_name: str, is_preview: bool = False) -> Iterator[None]:
    """Set the channel context, and bind it to log events, for the duration of a block."""
    channel_token = website_channel_var.set(website_channel_name)
    preview_token = preview_mode_var.set(is_preview)
    try:
        with structlog.contextvars.bound_contextvars(website_channel=website_channel_name, preview=is_preview):
            yield
    finally:
        preview_mode_var.reset(preview_token)
        website_channel_var.reset(channel_token)
