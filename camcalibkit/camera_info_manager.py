"""Keeps a camera's calibration, loading and saving it through URLs."""

from __future__ import annotations

import copy
import enum
import logging
import os
import re
import threading
from typing import Callable, Optional

from camcalibkit.models import CalibrationError, CameraInfo
from camcalibkit.parse import read_calibration, write_calibration

logger = logging.getLogger(__name__)

DEFAULT_CAMERA_INFO_URL = "file://${ROS_HOME}/camera_info/${NAME}.yaml"

_VALID_NAME = re.compile(r"[A-Za-z0-9_]+")

PackageResolver = Callable[[str], Optional[str]]


def split(text: str, pattern: str) -> list[str]:
    """Split ``text`` on the regular expression ``pattern``.

    The pieces between matches are returned; a leading empty piece is kept,
    a trailing empty piece is dropped, and text without any match comes back
    whole.
    """
    tokens: list[str] = []
    position = 0
    matched = False
    for match in re.finditer(pattern, text):
        tokens.append(text[position:match.start()])
        position = match.end()
        matched = True
    if not matched:
        return [text]
    if position < len(text):
        tokens.append(text[position:])
    return tokens


class UrlType(enum.IntEnum):
    """Kinds of calibration URL; values from INVALID on are not supported."""

    EMPTY = 0
    FILE = 1
    PACKAGE = 2
    INVALID = 3
    FLASH = 4


class CameraInfoManager:
    """Provides a camera's calibration and stores new calibrations.

    ``package_resolver`` maps a package name to its share directory; an empty
    result, ``None`` or a ``LookupError`` means the package is unknown.
    """

    def __init__(
        self,
        camera_name: str = "camera",
        url: str = "",
        package_resolver: PackageResolver | None = None,
    ) -> None:
        self._lock = threading.Lock()
        self._camera_name = camera_name
        self._url = url
        self._package_resolver = package_resolver
        self._cam_info = CameraInfo()
        self._loaded_cam_info = False

    @property
    def camera_name(self) -> str:
        with self._lock:
            return self._camera_name

    @property
    def url(self) -> str:
        with self._lock:
            return self._url

    def _claim_load(self) -> tuple[bool, str, str]:
        """Mark a load as attempted; return (already loaded, url, name)."""
        with self._lock:
            if self._loaded_cam_info:
                return True, self._url, self._camera_name
            self._loaded_cam_info = True
            return False, self._url, self._camera_name

    def get_camera_info(self) -> CameraInfo:
        """Return the current calibration, loading it first if needed.

        An uncalibrated camera yields a CameraInfo with all-zero matrices.
        """
        while True:
            loaded, url, cname = self._claim_load()
            if loaded:
                with self._lock:
                    return copy.deepcopy(self._cam_info)
            self.load_calibration(url, cname)

    def is_calibrated(self) -> bool:
        """Return True if the current calibration holds a camera matrix."""
        while True:
            loaded, url, cname = self._claim_load()
            if loaded:
                with self._lock:
                    return self._cam_info.is_calibrated()
            self.load_calibration(url, cname)

    def get_package_file_name(self, url: str) -> str:
        """Return the file named by a ``package://`` URL, or "" if unknown."""
        logger.debug("camera calibration url: %s", url)
        prefix_len = len("package://")
        rest = url.find("/", prefix_len)
        package = url[prefix_len:] if rest == -1 else url[prefix_len:rest]

        pkg_path = ""
        if self._package_resolver is not None:
            try:
                pkg_path = self._package_resolver(package) or ""
            except LookupError:
                pkg_path = ""
        if not pkg_path:
            logger.warning("unknown package: %s (ignored)", package)
            return ""
        return pkg_path + ("" if rest == -1 else url[rest:])

    def load_calibration(self, url: str, cname: str) -> bool:
        """Load calibration from ``url``; return True if data was found."""
        res_url = self.resolve_url(url, cname)
        url_type = self.parse_url(res_url)

        if url_type != UrlType.EMPTY:
            logger.info("camera calibration URL: %s", res_url)

        if url_type == UrlType.EMPTY:
            logger.info("using default calibration URL")
            return self.load_calibration(DEFAULT_CAMERA_INFO_URL, cname)
        if url_type == UrlType.FILE:
            return self.load_calibration_file(res_url[7:], cname)
        if url_type == UrlType.FLASH:
            logger.warning("reading from flash not implemented yet")
            return False
        if url_type == UrlType.PACKAGE:
            filename = self.get_package_file_name(res_url)
            return bool(filename) and self.load_calibration_file(filename, cname)
        logger.error("Invalid camera calibration URL: %s", res_url)
        return False

    def load_calibration_file(self, filename: str, cname: str) -> bool:
        """Load calibration from a file; return True on success."""
        logger.debug("reading camera calibration from %s", filename)
        try:
            cam_name, cam_info = read_calibration(filename)
        except CalibrationError as exc:
            logger.warning("Camera calibration file %s not found: %s", filename, exc)
            return False
        if cname != cam_name:
            logger.warning("[%s] does not match %s in file %s", cname, cam_name, filename)
        with self._lock:
            self._cam_info = cam_info
        return True

    def load_camera_info(self, url: str) -> bool:
        """Set a new URL and load its calibration; return True if found."""
        with self._lock:
            self._url = url
            cname = self._camera_name
            self._loaded_cam_info = True
        return self.load_calibration(url, cname)

    def resolve_url(self, url: str, cname: str) -> str:
        """Return ``url`` with ``${NAME}`` and ``${ROS_HOME}`` substituted."""
        resolved: list[str] = []
        rest = 0
        while True:
            dollar = url.find("$", rest)
            if dollar == -1:
                resolved.append(url[rest:])
                break
            resolved.append(url[rest:dollar])
            tail = url[dollar + 1:]
            if not tail.startswith("{"):
                resolved.append("$")
            elif tail.startswith("{NAME}"):
                resolved.append(cname)
                dollar += 6
            elif tail.startswith("{ROS_HOME}"):
                resolved.append(self._ros_home())
                dollar += 10
            else:
                logger.error("invalid URL substitution (not resolved): %s", url)
                resolved.append("$")
            rest = dollar + 1
        return "".join(resolved)

    @staticmethod
    def _ros_home() -> str:
        ros_home = os.environ.get("ROS_HOME", "")
        if ros_home:
            return ros_home
        home = os.environ.get("HOME", "")
        if home:
            return home + "/.ros"
        return ""

    def parse_url(self, url: str) -> UrlType:
        """Classify a resolved calibration URL."""
        if url == "":
            return UrlType.EMPTY
        if url[:8].lower() == "file:///":
            return UrlType.FILE
        if url[:9].lower() == "flash:///":
            return UrlType.FLASH
        if url[:10].lower() == "package://":
            # The package name must be non-empty and something must follow it.
            rest = url.find("/", 10)
            if 10 < rest < len(url) - 1:
                return UrlType.PACKAGE
        return UrlType.INVALID

    def save_calibration(self, new_info: CameraInfo, url: str, cname: str) -> bool:
        """Save ``new_info`` at ``url``; invalid URLs fall back to the default."""
        res_url = self.resolve_url(url, cname)
        url_type = self.parse_url(res_url)

        if url_type == UrlType.EMPTY:
            return self.save_calibration(new_info, DEFAULT_CAMERA_INFO_URL, cname)
        if url_type == UrlType.FILE:
            return self.save_calibration_file(new_info, res_url[7:], cname)
        if url_type == UrlType.PACKAGE:
            filename = self.get_package_file_name(res_url)
            return bool(filename) and self.save_calibration_file(new_info, filename, cname)
        logger.error("invalid url: %s (ignored)", res_url)
        return self.save_calibration(new_info, DEFAULT_CAMERA_INFO_URL, cname)

    def save_calibration_file(self, new_info: CameraInfo, filename: str, cname: str) -> bool:
        """Write ``new_info`` to a file, creating its directory; True on success."""
        logger.info("writing calibration data to %s", filename)
        parent = os.path.dirname(filename)
        if parent and not os.path.exists(parent):
            try:
                os.makedirs(parent)
            except OSError:
                logger.error("unable to create path directory [%s]", parent)
                return False
        try:
            write_calibration(filename, cname, new_info)
        except CalibrationError as exc:
            logger.error("%s", exc)
            return False
        return True

    def handle_set_camera_info(self, camera_info: CameraInfo) -> tuple[bool, str]:
        """Take a new calibration and store it; return (success, status message).

        The calibration in use is updated even when storing it fails.
        """
        with self._lock:
            self._cam_info = copy.deepcopy(camera_info)
            url = self._url
            cname = self._camera_name
            self._loaded_cam_info = True

        if self.save_calibration(camera_info, url, cname):
            return True, ""
        return False, "Error storing camera calibration."

    def set_camera_name(self, cname: str) -> bool:
        """Set a new camera name made of letters, digits and '_'.

        Returns False for an invalid name. A valid name forces the
        calibration to be reloaded before it is next used.
        """
        if not _VALID_NAME.fullmatch(cname):
            return False
        with self._lock:
            self._camera_name = cname
            self._loaded_cam_info = False
        return True

    def set_camera_info(self, camera_info: CameraInfo) -> bool:
        """Replace the calibration in use without saving it."""
        with self._lock:
            self._cam_info = copy.deepcopy(camera_info)
            self._loaded_cam_info = True
        return True

    def validate_url(self, url: str) -> bool:
        """Return True if the URL syntax is supported; the resource need not exist."""
        with self._lock:
            cname = self._camera_name
        return self.parse_url(self.resolve_url(url, cname)) < UrlType.INVALID