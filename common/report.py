"""Reporting abstractions for stdio-relay.

Contains:
- Report ABC: Base class for all reports
"""

from abc import ABC, abstractmethod


class Report(ABC):
    """Abstract base class for end-of-run reports."""

    @abstractmethod
    def print(self) -> None:
        """Print the report."""
        pass

    @abstractmethod
    def success(self) -> bool:
        """Return True if the report indicates success."""
        pass
