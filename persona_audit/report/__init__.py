"""
Report package: render an assessment to a document and a chat-sized summary, and write both to disk.
"""

from persona_audit.report.synthesizer import DEFAULT_MAX_CHARS, DEFAULT_TOP_N, rating_description, render
from persona_audit.report.writer import write_report

__all__ = ["DEFAULT_MAX_CHARS", "DEFAULT_TOP_N", "rating_description", "render", "write_report"]
