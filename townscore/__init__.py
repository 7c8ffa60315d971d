"""Area indicator scoring and confidence engine."""

__version__ = "0.4.0"
