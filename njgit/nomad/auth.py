"""Resolution of Nomad connection settings.

Precedence for each setting is: configuration file, then environment (already
merged by the config loader), then ``~/.nomad-token`` for the token only.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from njgit.config.exceptions import ConfigurationError
from njgit.config.models import NomadConfig

TOKEN_FILE_NAME = ".nomad-token"


@dataclass(frozen=True)
class NomadAuth:
    """Resolved connection settings for NomadClient."""

    address: str
    token: Optional[str] = None
    ca_cert: Optional[str] = None
    tls_skip_verify: bool = False

    def __repr__(self) -> str:
        token = "********" if self.token else "none"
        return (
            f"NomadAuth(address={self.address!r}, token={token}, "
            f"tls_skip_verify={self.tls_skip_verify})"
        )


def resolve_nomad_auth(config: NomadConfig, home: Optional[Path] = None) -> NomadAuth:
    """Resolve the address and token used to talk to Nomad.

    Args:
        config: Nomad section of the configuration (environment already applied)
        home: Home directory to look for the token file (default: user home)

    Returns:
        NomadAuth

    Raises:
        ConfigurationError: If no address is configured
    """
    if not config.address:
        raise ConfigurationError(
            "Nomad address not configured",
            suggestions=[
                "Set nomad.address in the configuration file",
                "Or export NOMAD_ADDR (e.g., http://127.0.0.1:4646)",
            ],
        )

    token = config.token or read_token_file(home)

    return NomadAuth(
        address=config.address,
        token=token,
        ca_cert=config.ca_cert,
        tls_skip_verify=config.tls_skip_verify,
    )


def read_token_file(home: Optional[Path] = None) -> Optional[str]:
    """Read ``~/.nomad-token`` if present; unreadable files count as absent."""
    try:
        base = home or Path.home()
        content = (base / TOKEN_FILE_NAME).read_text()
    except (OSError, RuntimeError):
        return None
    return content.strip() or None
