"""SharaSpot community contribution reliability and rewards engine."""

__version__ = "0.1.0"
