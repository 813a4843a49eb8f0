"""Authentication strategies for PowerSchool."""
from .base import AuthStrategy
from .basic import BasicAuth
from .bearer import BearerAuth
from .oauth import fetch_access_token

__all__ = ["AuthStrategy", "BasicAuth", "BearerAuth", "fetch_access_token"]
