"""Prompt Golf - prompt-engineering challenges scored by an LLM judge."""

__version__ = "0.1.0"
