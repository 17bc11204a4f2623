"""Secrets management infrastructure."""

from .environment import EnvironmentSecretsConfig, EnvironmentSecretsManager

__all__ = ["EnvironmentSecretsConfig", "EnvironmentSecretsManager"]
