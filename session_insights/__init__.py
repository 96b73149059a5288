"""Session Insights - insight ranking and diversity engine for a
trading-session dashboard feed."""

__version__ = "0.1.0"
