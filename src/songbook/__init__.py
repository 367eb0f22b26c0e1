"""
Songbook - identity-tracked music library management
"""

__version__ = "0.3.0"
