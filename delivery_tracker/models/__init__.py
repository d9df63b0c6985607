"""Domain models: enums plus the pydantic schemas in ``models.schemas``."""
from .enums import JobStatus

__all__ = ["JobStatus"]
