"""
Livescore API — HTTP façade over the API-Football provider.
"""

__version__ = "1.0.0"
