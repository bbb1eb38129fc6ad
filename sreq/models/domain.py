"""
Domain models for credential resolution.

``PathSpec`` is the parsed form of one path-specification string and
``ResolvedCredentials`` is the record handed back to callers after a
resolution (or a cache hit).

Example:
    Building credentials by hand::

        creds = ResolvedCredentials(
            base_url="https://billing.internal",
            username="svc-billing",
            password="s3cret",
        )
"""

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field


@dataclass(frozen=True)
class PathSpec:
    """Parsed ``[backend:]path[#json-key]`` specification.

    Attributes:
        path: Raw path, possibly still containing ``{placeholders}``
        backend: Backend name, or None for the default backend
        json_key: Field to extract from a JSON value, or None to use the raw value
    """

    path: str
    backend: str | None = None
    json_key: str | None = None


class ResolvedCredentials(BaseModel):
    """Credentials resolved for one service in one environment.

    Instances are immutable; the resolver assembles the field values first
    and constructs the record once.
    """

    model_config = ConfigDict(frozen=True)

    base_url: str | None = Field(default=None, description="Base URL of the service")
    username: str | None = Field(default=None, description="Basic auth username")
    password: str | None = Field(default=None, description="Basic auth password")
    api_key: str | None = Field(default=None, description="API key used instead of basic auth")
    headers: dict[str, str] = Field(default_factory=dict, description="Extra request headers")
    custom: dict[str, str] = Field(default_factory=dict, description="Values for non-standard fields")

    def masked(self) -> dict[str, str | None]:
        """Return a display-safe view with secret fields masked."""
        return {
            "base_url": self.base_url,
            "username": self.username,
            "password": mask_secret(self.password),
            "api_key": mask_secret(self.api_key),
        }


def mask_secret(value: str | None) -> str | None:
    """Mask a secret, keeping the first and last four characters when long enough."""
    if value is None:
        return None
    if len(value) > 8:
        return value[:4] + "*" * (len(value) - 8) + value[-4:]
    return "*" * len(value)
