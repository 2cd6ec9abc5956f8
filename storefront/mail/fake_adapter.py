"""Fake mail adapter: records sent messages in memory."""

from typing import Dict, List, Optional

from .port import Mailer


class FakeMailer(Mailer):
    """Mailer that records messages for development and test assertions."""

    def __init__(self) -> None:
        self.sent: List[Dict[str, Optional[str]]] = []
        self.should_succeed = True

    def configure(self, should_succeed: bool = True) -> None:
        self.should_succeed = should_succeed

    def send(self, to: str, subject: str, text: Optional[str] = None, html: Optional[str] = None) -> bool:
        if not self.should_succeed:
            return False
        self.sent.append({"to": to, "subject": subject, "text": text, "html": html})
        return True

    def reset(self) -> None:
        self.sent.clear()
        self.should_succeed = True
