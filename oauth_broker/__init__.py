"""
OAuth Handshake Broker
Issues Google authorization URLs per user and records the resulting credentials.
"""

__version__ = "1.0.0"
