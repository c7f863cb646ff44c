"""
Package lifecycle management.

Reclaims disk space by evicting packages older than the retention period
from the download directory, either on demand or from a background thread.
"""

import logging
import threading
from datetime import datetime, timedelta, timezone
from enum import Enum
from pathlib import Path
from typing import Callable

from ngrinder_packager.packages.models import SweepResult

logger = logging.getLogger(__name__)


class SweeperStatus(Enum):
    """Status of the background sweeper."""

    STOPPED = "stopped"
    RUNNING = "running"
    STOPPING = "stopping"


class EvictionSweeper:
    """
    Evicts stale packages from the download directory.

    Only plain files directly inside the directory are considered;
    subdirectories are never entered or removed. Deletion failures are
    logged and collected without stopping the sweep.
    """

    def __init__(
        self,
        download_dir: Path,
        retention: timedelta = timedelta(days=2),
        clock: Callable[[], datetime] | None = None,
    ):
        """
        Initialize sweeper.

        Args:
            download_dir: Directory holding the packages
            retention: Age after which a package is evicted
            clock: Source of the current time (defaults to UTC now)
        """
        self._download_dir = download_dir
        self._retention = retention
        self._clock = clock or (lambda: datetime.now(timezone.utc))

        self._status = SweeperStatus.STOPPED
        self._thread: threading.Thread | None = None
        self._shutdown_event = threading.Event()

    @property
    def status(self) -> SweeperStatus:
        return self._status

    @property
    def retention(self) -> timedelta:
        return self._retention

    def is_expired(self, path: Path, now: datetime | None = None) -> bool:
        """Check whether a package has outlived the retention period."""
        now = now or self._clock()
        modified = datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)
        return modified + self._retention < now

    def sweep(self, force: bool = False) -> SweepResult:
        """
        Delete expired packages.

        Args:
            force: Delete every package regardless of age

        Returns:
            SweepResult with operation details
        """
        result = SweepResult()
        if not self._download_dir.is_dir():
            return result

        now = self._clock()
        try:
            entries = sorted(self._download_dir.iterdir())
        except OSError as e:
            logger.error(f"Cannot list {self._download_dir}: {e}")
            result.success = False
            result.errors.append(f"Cannot list {self._download_dir}: {e}")
            return result

        for path in entries:
            try:
                if path.is_symlink() or not path.is_file():
                    continue
                if not force and not self.is_expired(path, now):
                    continue
                size = path.stat().st_size
                path.unlink()
            except FileNotFoundError:
                # Removed by someone else in the meantime
                continue
            except OSError as e:
                logger.error(f"Failed to delete {path.name}: {e}")
                result.success = False
                result.errors.append(f"Failed to delete {path.name}: {e}")
                continue

            logger.info(f"{path.name} is deleted")
            result.deleted_count += 1
            result.freed_bytes += size
            result.deleted.append(path.name)

        return result

    def start(self, interval: timedelta | None = None) -> SweepResult:
        """
        Wipe the download directory and start periodic eviction.

        Args:
            interval: Delay between sweeps (defaults to the retention period)

        Returns:
            Result of the initial full wipe, empty if already running
        """
        if self._status != SweeperStatus.STOPPED:
            logger.debug("Eviction sweeper already running")
            return SweepResult()

        result = self.sweep(force=True)

        delay = (interval or self._retention).total_seconds()
        self._shutdown_event.clear()
        self._thread = threading.Thread(
            target=self._sweep_loop,
            args=(delay,),
            name="PackageEvictionSweeper",
            daemon=True,
        )
        self._thread.start()
        self._status = SweeperStatus.RUNNING
        return result

    def stop(self, timeout: float = 30.0) -> None:
        """Stop periodic eviction."""
        if self._status == SweeperStatus.STOPPED:
            return

        self._status = SweeperStatus.STOPPING
        self._shutdown_event.set()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=timeout)
        self._thread = None
        self._status = SweeperStatus.STOPPED

    def _sweep_loop(self, delay: float) -> None:
        while not self._shutdown_event.wait(delay):
            try:
                result = self.sweep(force=False)
            except Exception:
                logger.exception("Package eviction sweep failed")
                continue
            if result.deleted_count:
                logger.info(
                    f"Evicted {result.deleted_count} packages, freed {result.freed_bytes} bytes"
                )
