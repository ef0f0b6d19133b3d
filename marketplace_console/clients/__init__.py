from .auth_client import AuthApi, AuthClient
from .directory_client import DirectoryApi, DirectoryClient
from .exceptions import ApiError
from .http_client import HttpClient, TraceContext
from .mock_backend import MockBackend

__all__ = [
    "ApiError",
    "AuthApi",
    "AuthClient",
    "DirectoryApi",
    "DirectoryClient",
    "HttpClient",
    "MockBackend",
    "TraceContext",
]
