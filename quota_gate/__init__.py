"""AI Quota Gateway: tier-based request admission in front of an AI API."""

__version__ = "1.0.0"
