"""Village Crop Advisor — climate-adapted crop recommendations from historical data."""

__version__ = "0.1.0"
