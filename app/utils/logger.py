import json
import os
import sys
from datetime import datetime
from enum import Enum
from typing import Optional

class LogLevel(Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    SUCCESS = "SUCCESS"

class Colors:
    """ANSI color codes for console output"""
    RESET = '\033[0m'
    BOLD = '\033[1m'
    DIM = '\033[2m'

    BRIGHT_BLACK = '\033[90m'
    BRIGHT_RED = '\033[91m'
    BRIGHT_GREEN = '\033[92m'
    BRIGHT_YELLOW = '\033[93m'
    BRIGHT_BLUE = '\033[94m'
    BRIGHT_CYAN = '\033[96m'
    WHITE = '\033[37m'

class ContentLogger:
    """Colorized service logger with a consistent `[time] [SERVICE/CONTEXT] [LEVEL] message | k=v` layout"""

    MAX_VALUE_LENGTH = 100

    def __init__(self, service_name: str = "CONTENT", enable_colors: Optional[bool] = None):
        self.service_name = service_name.upper()
        if enable_colors is None:
            enable_colors = "NO_COLOR" not in os.environ and sys.stdout.isatty()
        self.enable_colors = enable_colors

        self.level_colors = {
            LogLevel.DEBUG: Colors.BRIGHT_CYAN,
            LogLevel.INFO: Colors.BRIGHT_BLUE,
            LogLevel.WARNING: Colors.BRIGHT_YELLOW,
            LogLevel.ERROR: Colors.BRIGHT_RED,
            LogLevel.SUCCESS: Colors.BRIGHT_GREEN,
        }

    def _get_timestamp(self) -> str:
        return datetime.now().strftime("%H:%M:%S.%f")[:-3]

    def _colorize(self, text: str, color: str) -> str:
        if not self.enable_colors:
            return text
        return f"{color}{text}{Colors.RESET}"

    def _format_value(self, value) -> str:
        if isinstance(value, (dict, list)):
            value_str = json.dumps(value, default=str, separators=(',', ':'))
        else:
            value_str = str(value)
        if len(value_str) > self.MAX_VALUE_LENGTH:
            value_str = value_str[:self.MAX_VALUE_LENGTH] + "..."
        return value_str

    def format_message(self, level: LogLevel, message: str, context: Optional[str] = None, **kwargs) -> str:
        """Build the log line without printing it"""
        level_color = self.level_colors.get(level, Colors.WHITE)
        service_context = self.service_name
        if context:
            service_context += f"/{context.upper()}"

        line = " ".join([
            self._colorize(f"[{self._get_timestamp()}]", Colors.DIM),
            self._colorize(f"[{service_context}]", Colors.BRIGHT_BLACK),
            self._colorize(f"[{level.value}]", level_color + Colors.BOLD),
            message,
        ])

        if kwargs:
            extras = ", ".join(f"{key}={self._format_value(value)}" for key, value in kwargs.items())
            line += self._colorize(f" | {extras}", Colors.DIM)
        return line

    def _log(self, level: LogLevel, message: str, context: Optional[str] = None, **kwargs):
        stream = sys.stderr if level == LogLevel.ERROR else sys.stdout
        print(self.format_message(level, message, context, **kwargs), file=stream)
        stream.flush()

    def debug(self, message: str, context: Optional[str] = None, **kwargs):
        self._log(LogLevel.DEBUG, message, context, **kwargs)

    def info(self, message: str, context: Optional[str] = None, **kwargs):
        self._log(LogLevel.INFO, message, context, **kwargs)

    def warning(self, message: str, context: Optional[str] = None, **kwargs):
        self._log(LogLevel.WARNING, message, context, **kwargs)

    def error(self, message: str, context: Optional[str] = None, **kwargs):
        self._log(LogLevel.ERROR, message, context, **kwargs)

    def success(self, message: str, context: Optional[str] = None, **kwargs):
        self._log(LogLevel.SUCCESS, message, context, **kwargs)


# Global logger instances for different services
post_logger = ContentLogger("POST")
auth_logger = ContentLogger("AUTH")
db_logger = ContentLogger("DATABASE")
api_logger = ContentLogger("API")