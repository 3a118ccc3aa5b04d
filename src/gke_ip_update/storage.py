"""Local IP state for gke-ip-update.

The last observed public IP lives in a single plain text file inside the
state directory. It is overwritten in place; there is no history.
"""

import logging
import os
from pathlib import Path

from gke_ip_update.errors import StorageError

__all__ = [
    "IP_FILE_NAME",
    "IpStateStore",
    "StorageError",
]

logger = logging.getLogger(__name__)

IP_FILE_NAME = "ip.txt"


class IpStateStore:
    """File-based storage for the last observed public IP.

    Attributes:
        directory: State directory path.
    """

    def __init__(self, directory: Path) -> None:
        """Initialize storage.

        Args:
            directory: Path to the state directory (not created here).
        """
        self.directory = Path(directory).expanduser()

    @property
    def path(self) -> Path:
        """Path to the IP file."""
        return self.directory / IP_FILE_NAME

    def ensure_directory(self) -> None:
        """Create the state directory if it doesn't exist.

        Raises:
            StorageError: If the directory cannot be created.
        """
        try:
            self.directory.mkdir(mode=0o755, parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Unable to create state directory {self.directory}: {e}")

    def load(self) -> str | None:
        """Read the persisted IP.

        Returns:
            The IP with its trailing newline stripped, or None if nothing
            has been saved yet.

        Raises:
            StorageError: If the file exists but cannot be read.
        """
        try:
            content = self.path.read_text()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"Unable to read {self.path}: {e}")

        ip = content.rstrip("\n")
        return ip or None

    def save(self, ip: str) -> None:
        """Overwrite the persisted IP.

        Args:
            ip: IP address, written without a trailing newline.

        Raises:
            StorageError: If the file cannot be written.
        """
        try:
            fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o644)
            try:
                os.write(fd, ip.encode())
            finally:
                os.close(fd)
        except OSError as e:
            raise StorageError(f"Unable to write {self.path}: {e}")

        logger.debug(f"Saved IP {ip} to {self.path}")
