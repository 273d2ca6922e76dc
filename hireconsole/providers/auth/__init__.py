from hireconsole.providers.auth.base import AuthProvider, IdentityChangeNotifier, IdentityListener
from hireconsole.providers.auth.factory import get_auth_provider, set_auth_provider
from hireconsole.providers.auth.fake import FakeAuthProvider
from hireconsole.providers.auth.gotrue import GoTrueAuthProvider

__all__ = [
    "AuthProvider",
    "IdentityChangeNotifier",
    "IdentityListener",
    "get_auth_provider",
    "set_auth_provider",
    "FakeAuthProvider",
    "GoTrueAuthProvider",
]
