"""Console client for interactive OAuth 2.0 / OpenID Connect logins.

Prompts for an identity provider, runs the authorization code flow in the
system browser and greets the authenticated user by name.
"""

from .config import PROVIDER_GITHUB, PROVIDER_LOCAL, Settings, get_settings
from .interactive import InteractiveService, LoginOutcome, OutcomeKind
from .lifetime import ApplicationLifetime, ConsoleHost
from .logging_config import setup_logging

__all__ = [
    "PROVIDER_GITHUB",
    "PROVIDER_LOCAL",
    "ApplicationLifetime",
    "ConsoleHost",
    "InteractiveService",
    "LoginOutcome",
    "OutcomeKind",
    "Settings",
    "get_settings",
    "setup_logging",
]
__version__ = "0.1.0"
