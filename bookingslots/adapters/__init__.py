"""
Adapters layer - Data gateway implementations.
"""

from .memory_gateway import DataSet, InMemoryDataGateway

__all__ = ["DataSet", "InMemoryDataGateway"]
