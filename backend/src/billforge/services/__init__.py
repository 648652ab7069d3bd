"""
Services package - Orchestration and external integrations.

Includes the billing orchestrator, export sinks and text suggestions.
"""

from .billing import BillingService
from .export import ExportResult, ExportSink, MemorySink, PdfFileSink, PreviewSink
from .suggestions import ChatCompletionSuggester, NullSuggester, TextSuggester, build_suggester

__all__ = [
    "BillingService",
    "ExportResult",
    "ExportSink",
    "MemorySink",
    "PdfFileSink",
    "PreviewSink",
    "TextSuggester",
    "NullSuggester",
    "ChatCompletionSuggester",
    "build_suggester",
]
