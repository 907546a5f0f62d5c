"""
Traces Module
=============

Reading and loading of real-codec video traces.

Components:
    - TraceReader: Parses one line-oriented trace file
    - load_trace_set / get_trace_set: Build (and share) a TraceSet from a directory
    - parse_trace_filename / scan_trace_directory: File naming contract
"""

from syncodecs.traces.reader import TraceError, TraceFormatError, TraceReader
from syncodecs.traces.loader import (
    TraceSetError,
    clear_trace_cache,
    get_trace_set,
    load_trace_set,
    parse_trace_filename,
    scan_trace_directory,
)

__all__ = [
    "TraceReader",
    "TraceError",
    "TraceFormatError",
    "TraceSetError",
    "parse_trace_filename",
    "scan_trace_directory",
    "load_trace_set",
    "get_trace_set",
    "clear_trace_cache",
]
