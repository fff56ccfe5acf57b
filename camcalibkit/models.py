"""Camera calibration data model shared by the readers and writers."""

from __future__ import annotations

from dataclasses import dataclass, field

PLUMB_BOB = "plumb_bob"
RATIONAL_POLYNOMIAL = "rational_polynomial"


class CalibrationError(Exception):
    """Raised when calibration data cannot be read, parsed or written."""


@dataclass
class RegionOfInterest:
    """Sub-window of the full image that the calibration applies to."""

    x_offset: int = 0
    y_offset: int = 0
    height: int = 0
    width: int = 0
    do_rectify: bool = False


def _zeros(count: int) -> list[float]:
    return [0.0] * count


@dataclass
class CameraInfo:
    """Intrinsic calibration of a camera.

    ``k`` and ``r`` are row-major 3x3 matrices, ``p`` is a row-major 3x4
    matrix and ``d`` holds the distortion coefficients of ``distortion_model``.
    """

    width: int = 0
    height: int = 0
    distortion_model: str = ""
    d: list[float] = field(default_factory=list)
    k: list[float] = field(default_factory=lambda: _zeros(9))
    r: list[float] = field(default_factory=lambda: _zeros(9))
    p: list[float] = field(default_factory=lambda: _zeros(12))
    binning_x: int = 0
    binning_y: int = 0
    roi: RegionOfInterest = field(default_factory=RegionOfInterest)

    def is_calibrated(self) -> bool:
        """Return True when the camera matrix holds a focal length."""
        return self.k[0] != 0.0