"""Schedulers for a replicated disk-storage simulation: a baseline session player,
demand forecasting and block layout, labelled placement, and compaction."""

__version__ = "0.1.0"

__all__ = ["baseline", "layout", "placement", "compaction"]