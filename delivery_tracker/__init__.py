"""Delivery tracker package.

Reconciles scheduled photography jobs pulled from the remote order API with
listing webhooks, and keeps a persisted snapshot of the result.
"""

__version__ = "1.0.0"

__all__: list[str] = ["__version__"]
