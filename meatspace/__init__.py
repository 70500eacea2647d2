"""Self-hosted micro-publishing store with feed subscriptions."""

__version__ = "0.3.0"
