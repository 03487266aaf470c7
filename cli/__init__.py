"""Command-line entry point for the Tellstick to InfluxDB forwarder."""

__all__ = []
