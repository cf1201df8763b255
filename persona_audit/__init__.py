"""
persona-audit: multi-persona heuristic assessment pipeline.

Runs several independent expert-persona analyzers over a set of source
artifacts, aggregates their scores, cross-correlates personas, prioritizes
remediation into phases, and emits a structured report plus a notification.
"""

__version__ = "0.1.0"
