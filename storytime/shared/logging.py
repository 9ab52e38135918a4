"""
Shared logging for Story Time.
The API and the agent worker log through ServiceLogger, which adds emoji
prefixes for the events both processes report: requests, rooms, actions,
stories and voices.
"""
import logging
import sys
from typing import Optional
from .config import base_config


def setup_logging(
    service_name: str,
    log_level: Optional[str] = None,
    log_format: Optional[str] = None
) -> logging.Logger:
    """
    Set up a stdout logger for one component.

    Args:
        service_name: Logger name shown in every line
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_format: Custom log format string

    Returns:
        Configured logger instance
    """
    level = getattr(logging, (log_level or base_config.log_level).upper(), logging.INFO)

    logger = logging.getLogger(service_name)
    logger.setLevel(level)

    # Components can be created more than once (per room, per test)
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(log_format or base_config.log_format))
        logger.addHandler(handler)

    for handler in logger.handlers:
        handler.setLevel(level)

    # LiveKit workers configure the root logger too
    logger.propagate = False

    return logger


def get_logger(name: str) -> logging.Logger:
    """Plain logger for helper modules that need no event prefixes"""
    return logging.getLogger(name)


class ServiceLogger:
    """
    Component logger with the common Story Time log patterns.
    """

    def __init__(self, service_name: str):
        self.logger = setup_logging(service_name)
        self.service_name = service_name

    def service_start(self, port: Optional[int] = None):
        where = f" on port {port}" if port else ""
        self.logger.info(f"🚀 {self.service_name} starting{where}")

    def service_ready(self, port: Optional[int] = None):
        where = f" and listening on port {port}" if port else ""
        self.logger.info(f"✅ {self.service_name} ready{where}")

    def service_stop(self):
        self.logger.info(f"🛑 {self.service_name} shutting down")

    def request_start(self, endpoint: str, request_id: str = None):
        request_info = f" [{request_id}]" if request_id else ""
        self.logger.info(f"📥 Request{request_info}: {endpoint}")

    def request_end(self, endpoint: str, duration_ms: int, status_code: int = None, request_id: str = None):
        request_info = f" [{request_id}]" if request_id else ""
        status_info = f" {status_code}" if status_code is not None else ""
        self.logger.info(f"📤 Response{request_info}: {endpoint}{status_info} - {duration_ms}ms")

    def room(self, room_name: str, message: str):
        """Agent room lifecycle event"""
        self.logger.info(f"🏠 [{room_name}] {message}")

    def action(self, action: str, room_name: str, success: bool, detail: str = None):
        """Result of a client action dispatched in a room"""
        marker = "🎬" if success else "🚫"
        suffix = f" - {detail}" if detail else ""
        self.logger.info(f"{marker} [{room_name}] {action}{suffix}")

    def story(self, message: str):
        self.logger.info(f"📖 {message}")

    def voice(self, message: str):
        self.logger.info(f"🎤 {message}")

    def error(self, message: str, exception: Exception = None):
        """Log error with optional exception"""
        if exception:
            self.logger.error(f"❌ {message}: {str(exception)}")
        else:
            self.logger.error(f"❌ {message}")

    def warning(self, message: str):
        self.logger.warning(f"⚠️ {message}")

    def info(self, message: str):
        self.logger.info(f"ℹ️ {message}")

    def debug(self, message: str):
        self.logger.debug(f"🔍 {message}")

    def success(self, message: str):
        self.logger.info(f"✅ {message}")
