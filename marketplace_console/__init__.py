from .app.console import ConsoleApp, build_console
from .config import ConfigError, ConsoleConfig, load_config
from .errors import (
    AuthenticationError,
    ConsoleError,
    NetworkError,
    SessionExpiredError,
    ThrottledError,
    TwoFactorError,
)
from .models import Role

__version__ = "0.1.0"

__all__ = [
    "AuthenticationError",
    "ConfigError",
    "ConsoleApp",
    "ConsoleConfig",
    "ConsoleError",
    "NetworkError",
    "Role",
    "SessionExpiredError",
    "ThrottledError",
    "TwoFactorError",
    "build_console",
    "load_config",
]
