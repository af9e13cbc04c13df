"""Flow-level traffic features: counters, domain matching, an expiring cache and configuration."""

__version__ = "0.1.0"