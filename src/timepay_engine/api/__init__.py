"""HTTP adapter for the time-to-pay engine."""
