"""Reader and writer for the legacy INI camera calibration format."""

from __future__ import annotations

import io
import logging
import math
import os
import re
from typing import IO

from camcalibkit.models import PLUMB_BOB, RATIONAL_POLYNOMIAL, CalibrationError, CameraInfo

logger = logging.getLogger(__name__)

_WHITESPACE = " \t\n\v\f\r"
_INT_PREFIX = re.compile(r"[ \t\n\v\f\r]*([+-]?\d+)")


def _is_section(line: str) -> bool:
    return "[" in line and "]" in line


def _split_sections(lines: list[str]) -> list[list[str]]:
    sections: list[list[str]] = []
    section: list[str] = []
    for raw in lines:
        line = raw.strip(_WHITESPACE)
        if not line or line[0] in "#;":
            continue
        if _is_section(line) and section:
            sections.append(section)
            section = []
        section.append(line)
    if section:
        sections.append(section)
    return sections


def _parse_row(line: str, cols: int) -> list[float]:
    row: list[float] = []
    for token in line.split():
        if len(row) == cols:
            break
        try:
            row.append(float(token))
        except ValueError:
            row.append(0.0)
            break
    row.extend([math.nan] * (cols - len(row)))
    return row


def _parse_matrix(section: list[str], start: int, rows: int, cols: int) -> list[float]:
    values: list[float] = []
    for offset in range(rows):
        index = start + offset
        line = section[index] if index < len(section) else ""
        values.extend(_parse_row(line, cols))
    return values


def _find_key(section: list[str], key: str) -> int | None:
    try:
        return section.index(key)
    except ValueError:
        return None


def _parse_int(text: str, key: str) -> int:
    match = _INT_PREFIX.match(text)
    if match is None:
        raise CalibrationError(f"Invalid integer value for key '{key}': {text!r}")
    value = int(match.group(1))
    if not -(2**31) <= value < 2**31:
        raise CalibrationError(f"Integer value for key '{key}' out of range: {text!r}")
    return value & 0xFFFFFFFF


def _value_after(section: list[str], index: int, key: str) -> str:
    if index + 1 >= len(section):
        raise CalibrationError(f"Missing value for key '{key}'")
    return section[index + 1]


def _parse_image_section(section: list[str], cam_info: CameraInfo) -> None:
    width = _find_key(section, "width")
    if width is None:
        raise CalibrationError("Failed to find key 'width' in section '[image]'")
    height = _find_key(section, "height")
    if height is None:
        raise CalibrationError("Failed to find key 'height' in section '[image]'")
    cam_info.width = _parse_int(_value_after(section, width, "width"), "width")
    cam_info.height = _parse_int(_value_after(section, height, "height"), "height")


def _parse_camera_section(section: list[str], cam_info: CameraInfo) -> str:
    camera_name = section[0][1:-1]

    keys = {}
    for key in ("camera matrix", "distortion", "rectification", "projection"):
        index = _find_key(section, key)
        if index is None:
            raise CalibrationError(f"Failed to find key '{key}' in camera section")
        keys[key] = index

    d = _parse_matrix(section, keys["distortion"] + 1, 1, 8)
    if math.isnan(d[5]):
        cam_info.d = d[:5]
        cam_info.distortion_model = PLUMB_BOB
    else:
        cam_info.d = d
        cam_info.distortion_model = RATIONAL_POLYNOMIAL

    for key, attr, rows, cols in (
        ("camera matrix", "k", 3, 3),
        ("rectification", "r", 3, 3),
        ("projection", "p", 3, 4),
    ):
        values = _parse_matrix(section, keys[key] + 1, rows, cols)
        if any(math.isnan(v) for v in values):
            raise CalibrationError(f"Error parsing '{key}', incorrect size")
        setattr(cam_info, attr, values)

    return camera_name


def _check_externals_section(section: list[str]) -> None:
    # Only reported: nothing is done with the external parameters.
    for key in ("translation", "rotation"):
        if _find_key(section, key) is None:
            logger.error("Failed to find key '%s' in section '[externals]'", key)


def read_calibration_ini(stream: IO[str]) -> tuple[str, CameraInfo]:
    """Read an INI calibration from a text stream; return (camera name, info)."""
    lines = stream.read().splitlines()
    if not lines:
        raise CalibrationError("Failed to detect content in .ini file")

    sections = _split_sections(lines)
    if not sections:
        raise CalibrationError("Failed to detect valid sections in .ini file")

    camera_name = ""
    cam_info = CameraInfo()
    for section in sections:
        header = section[0]
        if header == "[image]":
            _parse_image_section(section, cam_info)
        elif header == "[externals]":
            _check_externals_section(section)
        else:
            camera_name = _parse_camera_section(section, cam_info)
    return camera_name, cam_info


def parse_calibration_ini(buffer: str) -> tuple[str, CameraInfo]:
    """Parse an INI calibration held in a string."""
    return read_calibration_ini(io.StringIO(buffer))


def load_calibration_ini(file_name: str | os.PathLike[str]) -> tuple[str, CameraInfo]:
    """Read an INI calibration from a file."""
    try:
        with open(file_name, encoding="utf-8") as stream:
            return read_calibration_ini(stream)
    except OSError as exc:
        raise CalibrationError(f"Unable to open camera calibration file [{file_name}]") from exc


def _format_matrix(rows: int, cols: int, data: list[float]) -> str:
    return "".join(
        "".join(f"{data[cols * i + j]:.5f} " for j in range(cols)) + "\n"
        for i in range(rows)
    )


def write_calibration_ini(out: IO[str], camera_name: str, cam_info: CameraInfo) -> None:
    """Write a calibration in INI form; only the plumb bob model is supported."""
    if cam_info.distortion_model != PLUMB_BOB or len(cam_info.d) != 5:
        raise CalibrationError(
            "Videre INI format can only save calibrations using the plumb bob "
            "distortion model. Use the YAML format instead.\n"
            f"\tdistortion_model = '{cam_info.distortion_model}', expected '{PLUMB_BOB}'\n"
            f"\tD.size() = {len(cam_info.d)}, expected 5"
        )

    out.write("# Camera intrinsics\n\n")
    out.write("[image]\n\n")
    out.write(f"width\n{cam_info.width}\n\n")
    out.write(f"height\n{cam_info.height}\n\n")
    out.write(f"[{camera_name}]\n\n")
    out.write("camera matrix\n" + _format_matrix(3, 3, cam_info.k))
    out.write("\ndistortion\n" + _format_matrix(1, 5, cam_info.d))
    out.write("\n\nrectification\n" + _format_matrix(3, 3, cam_info.r))
    out.write("\nprojection\n" + _format_matrix(3, 4, cam_info.p))


def save_calibration_ini(
    file_name: str | os.PathLike[str], camera_name: str, cam_info: CameraInfo
) -> None:
    """Write an INI calibration to a file, creating its directory if needed."""
    directory = os.path.dirname(os.fspath(file_name))
    if directory and not os.path.exists(directory):
        try:
            os.makedirs(directory)
        except OSError as exc:
            raise CalibrationError(
                f"Unable to create directory for camera calibration file [{directory}]"
            ) from exc
    try:
        out = open(file_name, "w", encoding="utf-8")
    except OSError as exc:
        raise CalibrationError(
            f"Unable to open camera calibration file [{file_name}] for writing"
        ) from exc
    with out:
        write_calibration_ini(out, camera_name, cam_info)