"""
Notificações exibidas ao usuário (toasts)
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List

logger = logging.getLogger(__name__)

_LOG_LEVELS = {
    "info": logging.INFO,
    "success": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


@dataclass
class Notification:
    level: str
    title: str
    message: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class Notifier:
    """Registra e loga notificações; a interface lê a lista em `history`"""

    def __init__(self):
        self.history: List[Notification] = []

    def notify(self, level: str, title: str, message: str) -> Notification:
        notification = Notification(level=level, title=title, message=message)
        self.history.append(notification)
        logger.log(_LOG_LEVELS.get(level, logging.INFO), f"{title}: {message}", extra={'notification': {'level': level}})
        return notification

    def error(self, title: str, message: str) -> Notification:
        return self.notify("error", title, message)

    def warning(self, title: str, message: str) -> Notification:
        return self.notify("warning", title, message)

    def success(self, title: str, message: str) -> Notification:
        return self.notify("success", title, message)

    @property
    def errors(self) -> List[Notification]:
        return [n for n in self.history if n.level == "error"]

    def clear(self) -> None:
        self.history.clear()
