"""Identity provider client."""

from src.tablehost.core.identity.base import (
    IdentityProvider,
    IdentityProviderError,
    Principal,
    PrincipalAlreadyExistsError,
    PrincipalNotFoundError,
)
from src.tablehost.core.identity.gotrue import GoTrueIdentityProvider

__all__ = [
    "GoTrueIdentityProvider",
    "IdentityProvider",
    "IdentityProviderError",
    "Principal",
    "PrincipalAlreadyExistsError",
    "PrincipalNotFoundError",
]
