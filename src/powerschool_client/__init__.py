"""High-level PowerSchool client entrypoints."""
from .client import PowerSchoolClient
from .config import ClientConfig, RequestConfig, RequestDescriptor
from .exceptions import AuthenticationError, PowerSchoolError, TransportError
from .response import PowerSchoolResponse

__all__ = [
    "PowerSchoolClient",
    "PowerSchoolResponse",
    "ClientConfig",
    "RequestConfig",
    "RequestDescriptor",
    "PowerSchoolError",
    "AuthenticationError",
    "TransportError",
]
