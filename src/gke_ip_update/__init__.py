"""gke-ip-update - keep a GKE cluster's authorized networks in sync with this host's public IP."""

__version__ = "0.1.0"
