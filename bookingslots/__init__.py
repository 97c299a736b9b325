"""
bookingslots - Compute bookable time slots for service businesses.
"""

__version__ = "0.1.0"
