"""Contracts the throttle expects from its collaborators."""

from .queue import JobScheduler

__all__ = ["JobScheduler"]
