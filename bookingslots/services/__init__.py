"""
Service layer helpers that orchestrate the data gateway and domain logic.
"""

from .availability import AvailabilityCalculator, DataGatewayProtocol

__all__ = ["AvailabilityCalculator", "DataGatewayProtocol"]
