from .circuit_breaker import CircuitBreaker, CircuitOpenError  # noqa: F401
from .env import env_flag, env_float, env_int, env_str, load_dotenv_safe  # noqa: F401
from .http_client import HTTPClient  # noqa: F401
from .logging_setup import get_logger, setup_logging  # noqa: F401

__all__ = [
    'load_dotenv_safe',
    'env_flag',
    'env_float',
    'env_int',
    'env_str',
    'setup_logging',
    'get_logger',
    'HTTPClient',
    'CircuitBreaker',
    'CircuitOpenError',
]
