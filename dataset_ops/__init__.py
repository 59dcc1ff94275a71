"""
Dataset operations for the chat tools.

Provides the in-memory Dataset model, JSON/CSV loaders, numeric coercion,
and the deterministic executors (statistics, time-series charts, record
resolution, the per-turn dataset summary and its key-column CSV).
"""
