"""
Logging utilities for the backend.

Colored, icon-tagged console output plus a small structured logger with
section banners and key/value payloads for request tracing.
"""

import logging
import sys
from datetime import datetime
from typing import Any, Dict, Optional


RESET = '\033[0m'
BOLD = '\033[1m'
DIM = '\033[90m'

# Level name -> ANSI color
LEVEL_COLORS = {
    'DEBUG': '\033[36m',
    'INFO': '\033[32m',
    'WARNING': '\033[33m',
    'ERROR': '\033[31m',
    'CRITICAL': '\033[35m',
}


class ColoredFormatter(logging.Formatter):
    """One line per record: time, icon, level, logger name, message."""

    LEVEL_ICONS = {
        'DEBUG': '🔍',
        'INFO': 'ℹ️',
        'WARNING': '⚠️',
        'ERROR': '❌',
        'CRITICAL': '🚨',
    }

    # Keyed by the last component of the logger name
    MODULE_ICONS = {
        'main': '🌐',
        'sat_tutor': '🧠',
        'intent_router': '👉',
        'mode_handlers': '🤖',
        'session_manager': '💾',
        'llm_client': '🔄',
        'app_settings': '⚙️',
    }

    def __init__(self, use_colors: bool = True):
        super().__init__()
        self.use_colors = use_colors and sys.stdout.isatty()

    def _paint(self, color: str, text: str) -> str:
        return f"{color}{text}{RESET}" if self.use_colors else text

    def format(self, record: logging.LogRecord) -> str:
        icon = self.MODULE_ICONS.get(record.name.split('.')[-1], self.LEVEL_ICONS.get(record.levelname, '•'))
        timestamp = datetime.fromtimestamp(record.created).strftime('%H:%M:%S.%f')[:-3]

        formatted = (
            f"{self._paint(DIM, f'[{timestamp}]')} "
            f"{icon} {self._paint(LEVEL_COLORS.get(record.levelname, RESET), f'{record.levelname:8s}')} "
            f"{self._paint(BOLD, record.name)} | {record.getMessage()}"
        )

        if record.exc_info:
            formatted += f"\n{self.formatException(record.exc_info)}"

        return formatted


class StructuredLogger:
    """Logger wrapper that renders dict payloads under the message."""

    def __init__(self, name: str, logger: Optional[logging.Logger] = None):
        self.name = name
        self.logger = logger or logging.getLogger(name)

    @staticmethod
    def _format_data(data: Dict[str, Any]) -> str:
        lines = []
        for key, value in data.items():
            if isinstance(value, list) and len(value) > 5:
                value = f"{value[:3]} ... ({len(value)} items total)"
            lines.append(f"  {key}: {value}")
        return "\n".join(lines)

    def _with_data(self, message: str, data: Optional[Dict[str, Any]]) -> str:
        return f"{message}\n{self._format_data(data)}" if data else message

    def section(self, title: str, data: Optional[Dict[str, Any]] = None):
        """Log a banner line that opens a logical block (one chat turn, startup...)."""
        separator = "=" * 60
        self.logger.info(self._with_data(f"\n{separator}\n📋 {title.upper()}\n{separator}", data))

    def info(self, message: str, data: Optional[Dict[str, Any]] = None):
        self.logger.info(self._with_data(message, data))

    def warning(self, message: str, data: Optional[Dict[str, Any]] = None):
        self.logger.warning(self._with_data(message, data))

    def error(self, message: str, error: Optional[Exception] = None, data: Optional[Dict[str, Any]] = None):
        if error:
            message = f"{message} Error: {type(error).__name__}: {error}"
        self.logger.error(self._with_data(message, data), exc_info=error)

    def success(self, message: str, data: Optional[Dict[str, Any]] = None):
        self.logger.info(self._with_data(f"✅ {message}", data))

    def request(self, method: str, path: str, user_id: Optional[str] = None, data: Optional[Dict[str, Any]] = None):
        payload = {"user_id": user_id[:20] + "..." if user_id and len(user_id) > 20 else user_id}
        payload.update(data or {})
        self.logger.info(self._with_data(f"📥 REQUEST: {method} {path}", payload))

    def turn(self, user_id: str, mode: str, reply: str, duration: float):
        """One tutoring turn: mode chosen, reply size and latency."""
        self.logger.info(self._with_data(f"💬 TURN: {mode}", {
            "user_id": user_id[:20],
            "reply_chars": len(reply),
            "duration_ms": f"{duration * 1000:.0f}",
        }))


def setup_logging(level: int = logging.INFO, use_colors: bool = True):
    """Install the colored formatter on the root logger."""
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(ColoredFormatter(use_colors=use_colors))

    root_logger.setLevel(level)
    root_logger.addHandler(console_handler)

    # Suppress noisy loggers
    for noisy in ('asyncio', 'httpx', 'httpcore', 'openai', 'hpack'):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    return root_logger


def get_logger(name: str) -> StructuredLogger:
    return StructuredLogger(name, logging.getLogger(name))
