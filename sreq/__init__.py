"""sreq: credential resolution for service requests.

Resolves a service's base URL, username, password and API key from Consul
KV, AWS Secrets Manager, environment variables and dotenv files, with an
encrypted local cache.
"""

from sreq.config.settings import SreqConfig
from sreq.credentials import get_credentials
from sreq.models.domain import ResolvedCredentials
from sreq.resolver import CredentialResolver, ResolveOptions

__version__ = "0.1.0"

__all__ = [
    "CredentialResolver",
    "ResolveOptions",
    "ResolvedCredentials",
    "SreqConfig",
    "get_credentials",
]
