"""
Retention API Routers.
"""
from . import board, customers, scoring_config, tags, workflow

__all__ = ["board", "customers", "scoring_config", "tags", "workflow"]
