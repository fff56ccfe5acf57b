"""Format-independent reading and writing of calibration files."""

from __future__ import annotations

import os

from camcalibkit.ini_format import load_calibration_ini, parse_calibration_ini, save_calibration_ini
from camcalibkit.models import CalibrationError, CameraInfo
from camcalibkit.yaml_format import load_calibration_yml, save_calibration_yml


def _extension(file_name: str | os.PathLike[str]) -> str:
    return os.path.splitext(os.path.basename(os.fspath(file_name)))[1]


def _unrecognized(extension: str) -> CalibrationError:
    return CalibrationError(
        f"Unrecognized format '{extension}', calibration must be '.ini', '.yml', or '.yaml'"
    )


def write_calibration(
    file_name: str | os.PathLike[str], camera_name: str, cam_info: CameraInfo
) -> None:
    """Save a calibration in the format given by the file extension."""
    extension = _extension(file_name)
    if extension == ".ini":
        save_calibration_ini(file_name, camera_name, cam_info)
    elif extension in (".yml", ".yaml"):
        save_calibration_yml(file_name, camera_name, cam_info)
    else:
        raise _unrecognized(extension)


def read_calibration(file_name: str | os.PathLike[str]) -> tuple[str, CameraInfo]:
    """Load a calibration in the format given by the file extension."""
    extension = _extension(file_name)
    if extension == ".ini":
        return load_calibration_ini(file_name)
    if extension in (".yml", ".yaml"):
        return load_calibration_yml(file_name)
    raise _unrecognized(extension)


def parse_calibration(buffer: str, format: str) -> tuple[str, CameraInfo]:
    """Parse a calibration held in a string; only the "ini" format is accepted."""
    if format != "ini":
        raise CalibrationError(f"Unsupported calibration buffer format '{format}'")
    return parse_calibration_ini(buffer)