"""njgit: track Nomad job configuration changes in git."""

__version__ = "0.4.0"
