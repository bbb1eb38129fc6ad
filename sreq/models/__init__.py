"""Domain models shared by the resolver and the credential cache."""

from sreq.models.domain import PathSpec, ResolvedCredentials, mask_secret

__all__ = ["PathSpec", "ResolvedCredentials", "mask_secret"]
