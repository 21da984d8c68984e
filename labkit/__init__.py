"""Bit-pattern helpers and reference puzzle answers, plus a simulated-heap allocator lab with a trace driver and timing helpers."""

__version__ = "0.1.0"