"""
Host adapters

The protocol core depends only on the Host interface; LocalHost is the
in-process reference implementation used by the command line and the tests.
"""

from .base import (
    CapturingSink,
    CommandSink,
    ConsoleSink,
    Host,
    ModuleInfo,
    SinkRejectedError,
)
from .local import LocalHost

__all__ = [
    "Host",
    "CommandSink",
    "ConsoleSink",
    "CapturingSink",
    "ModuleInfo",
    "SinkRejectedError",
    "LocalHost",
]
