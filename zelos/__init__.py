"""Typed trace sources, segment metadata and an in-process asyncio trace router."""

__version__ = "0.0.1"

__all__ = [
    "clock",
    "data_type",
    "filter",
    "ipc",
    "latest",
    "metadata",
    "router",
    "segment",
    "signals",
    "sink",
    "source",
    "store",
    "value",
]