"""Time-to-pay calculation engine for restaurant back offices."""

__version__ = "1.0.0"
