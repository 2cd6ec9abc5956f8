"""Mail port: abstract interface for transactional email dispatch."""

from abc import ABC, abstractmethod
from typing import Optional


class Mailer(ABC):
    """Abstract interface for email dispatch adapters."""

    @abstractmethod
    def send(self, to: str, subject: str, text: Optional[str] = None, html: Optional[str] = None) -> bool:
        """Send a message. Returns True on success, False on failure; never raises."""
        ...
