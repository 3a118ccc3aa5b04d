"""Base exceptions for gke-ip-update."""


class GkeIpUpdateError(Exception):
    """Base exception for all gke-ip-update errors."""

    pass


class ConfigError(GkeIpUpdateError):
    """Required configuration value missing or invalid."""

    pass


class StorageError(GkeIpUpdateError):
    """Local state operation error."""

    pass


class IpLookupError(GkeIpUpdateError):
    """Failed to discover the public IP address."""

    pass


class ClusterApiError(GkeIpUpdateError):
    """Cluster management API call failed."""

    pass


class CredentialsError(GkeIpUpdateError):
    """Credentials could not be resolved."""

    pass
