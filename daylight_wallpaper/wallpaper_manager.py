"""Wallpaper management via an external image-setting command."""

import logging
import shutil
import subprocess
from pathlib import Path
from typing import Sequence

from PIL import Image, UnidentifiedImageError

from daylight_wallpaper.exceptions import MissingCommandError, WallpaperError
from daylight_wallpaper.time_period import Period


logger = logging.getLogger(__name__)

DEFAULT_COMMAND = ("feh", "--bg-fill")
WALLPAPER_SUFFIX = ".jpg"


class WallpaperManager:
    """Sets one wallpaper per period from a folder of images."""

    def __init__(self, folder: Path, command: Sequence[str] = DEFAULT_COMMAND, timeout: int = 30):
        """
        Initialize wallpaper manager.

        Args:
            folder: Folder holding <period>.jpg for every period
            command: Command that sets the wallpaper; the image path is appended
            timeout: Seconds to wait for the command
        """
        if not command:
            raise ValueError("Wallpaper command must not be empty")

        self.folder = Path(folder)
        self.command = tuple(command)
        self.timeout = timeout

    def get_wallpaper(self, period: Period) -> Path:
        """Get wallpaper path for a period."""
        return self.folder / f"{period.value}{WALLPAPER_SUFFIX}"

    def check_command(self):
        """
        Make sure the wallpaper command can be found.

        Raises:
            MissingCommandError: If the executable is not on PATH
        """
        executable = self.command[0]
        if shutil.which(executable) is None:
            raise MissingCommandError(f"{executable} is not installed")

    def _run_command(self, cmd: list[str]):
        """
        Execute the wallpaper command.

        Args:
            cmd: Command as list of strings

        Raises:
            WallpaperError: If the command fails or cannot be run
        """
        try:
            subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                check=True,
                timeout=self.timeout
            )
        except subprocess.CalledProcessError as e:
            output = (e.stderr or e.stdout or "").strip()
            raise WallpaperError(
                f"Command failed with exit status {e.returncode}: {' '.join(cmd)}"
                + (f"\n{output}" if output else "")
            ) from e
        except subprocess.TimeoutExpired as e:
            raise WallpaperError(f"Command timed out: {' '.join(cmd)}") from e
        except FileNotFoundError as e:
            raise WallpaperError(f"Command not found: {cmd[0]}") from e

    def set_wallpaper(self, period: Period) -> Path:
        """
        Set the wallpaper for a period.

        Args:
            period: Period to show

        Returns:
            Path of the applied image

        Raises:
            WallpaperError: If the image is missing or the command fails
        """
        path = self.get_wallpaper(period)
        if not path.is_file():
            raise WallpaperError(f"Wallpaper file not found: {path}")

        logger.debug(f"Setting the wallpaper: {path}")
        self._run_command([*self.command, str(path)])
        logger.info(f"Wallpaper changed to: {path.name}")
        return path

    def verify_wallpapers(self) -> dict[Period, str]:
        """
        Check that every period has a readable image.

        Returns:
            Problem description per period; empty if all images are fine
        """
        problems = {}
        for period in Period:
            path = self.get_wallpaper(period)
            if not path.is_file():
                problems[period] = f"missing: {path}"
                continue
            try:
                with Image.open(path) as img:
                    img.verify()
            except (UnidentifiedImageError, OSError, SyntaxError) as e:
                problems[period] = f"unreadable: {path} ({e})"
            else:
                logger.debug(f"Verified {path.name}")
        return problems
