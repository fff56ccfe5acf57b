"""Reader and writer for the YAML camera calibration format."""

from __future__ import annotations

import io
import logging
import os
from typing import IO, Any

import yaml

from camcalibkit.models import PLUMB_BOB, CalibrationError, CameraInfo

logger = logging.getLogger(__name__)

CAM_YML_NAME = "camera_name"
WIDTH_YML_NAME = "image_width"
HEIGHT_YML_NAME = "image_height"
K_YML_NAME = "camera_matrix"
D_YML_NAME = "distortion_coefficients"
R_YML_NAME = "rectification_matrix"
P_YML_NAME = "projection_matrix"
DMODEL_YML_NAME = "distortion_model"
BINNING_X_YML_NAME = "binning_x"
BINNING_Y_YML_NAME = "binning_y"
ROI_YML_NAME = "roi"
ROI_WIDTH_YML_NAME = "width"
ROI_HEIGHT_YML_NAME = "height"
ROI_X_OFFSET_YML_NAME = "x_offset"
ROI_Y_OFFSET_YML_NAME = "y_offset"
ROI_DO_RECTIFY_YML_NAME = "do_rectify"


class _FlowList(list):
    """A sequence that is emitted in flow style: ``[a, b, c]``."""


class _Dumper(yaml.SafeDumper):
    pass


def _represent_flow_list(dumper: yaml.SafeDumper, data: _FlowList) -> yaml.Node:
    return dumper.represent_sequence("tag:yaml.org,2002:seq", data, flow_style=True)


_Dumper.add_representer(_FlowList, _represent_flow_list)


def _lookup(node: Any, key: str) -> Any:
    if not isinstance(node, dict) or key not in node:
        raise CalibrationError(f"Missing key '{key}'")
    return node[key]


def _as_int(value: Any, key: str) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise CalibrationError(f"Key '{key}' does not hold an integer: {value!r}")
    try:
        return int(value)
    except ValueError as exc:
        raise CalibrationError(f"Key '{key}' does not hold an integer: {value!r}") from exc


def _as_uint(value: Any, key: str) -> int:
    number = _as_int(value, key)
    if not 0 <= number < 2**32:
        raise CalibrationError(f"Key '{key}' is out of range: {value!r}")
    return number


def _as_float(value: Any, key: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise CalibrationError(f"Key '{key}' does not hold a number: {value!r}")
    try:
        return float(value)
    except ValueError as exc:
        raise CalibrationError(f"Key '{key}' does not hold a number: {value!r}") from exc


def _as_bool(value: Any, key: str) -> bool:
    if not isinstance(value, bool):
        raise CalibrationError(f"Key '{key}' does not hold a boolean: {value!r}")
    return value


def _as_str(value: Any, key: str) -> str:
    if value is None or isinstance(value, (dict, list)):
        raise CalibrationError(f"Key '{key}' does not hold a scalar: {value!r}")
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _read_data(matrix: Any, key: str, count: int) -> list[float]:
    data = _lookup(matrix, "data")
    if not isinstance(data, list) or len(data) < count:
        raise CalibrationError(f"Matrix '{key}' holds fewer than {count} values")
    return [_as_float(value, key) for value in data[:count]]


def _read_fixed_matrix(doc: Any, key: str, rows: int, cols: int) -> list[float]:
    matrix = _lookup(doc, key)
    found_rows = _as_int(_lookup(matrix, "rows"), key)
    found_cols = _as_int(_lookup(matrix, "cols"), key)
    if (found_rows, found_cols) != (rows, cols):
        raise CalibrationError(
            f"Matrix '{key}' is {found_rows}x{found_cols}, expected {rows}x{cols}"
        )
    return _read_data(matrix, key, rows * cols)


def _read_document(doc: Any) -> tuple[str, CameraInfo]:
    cam_info = CameraInfo()

    if isinstance(doc, dict) and CAM_YML_NAME in doc:
        camera_name = _as_str(doc[CAM_YML_NAME], CAM_YML_NAME)
    else:
        camera_name = "unknown"

    cam_info.width = _as_uint(_lookup(doc, WIDTH_YML_NAME), WIDTH_YML_NAME)
    cam_info.height = _as_uint(_lookup(doc, HEIGHT_YML_NAME), HEIGHT_YML_NAME)

    cam_info.k = _read_fixed_matrix(doc, K_YML_NAME, 3, 3)
    cam_info.r = _read_fixed_matrix(doc, R_YML_NAME, 3, 3)
    cam_info.p = _read_fixed_matrix(doc, P_YML_NAME, 3, 4)

    if DMODEL_YML_NAME in doc:
        cam_info.distortion_model = _as_str(doc[DMODEL_YML_NAME], DMODEL_YML_NAME)
    else:
        # Older files carry no model; they were all plumb bob.
        cam_info.distortion_model = PLUMB_BOB
        logger.warning(
            "Camera calibration file did not specify distortion model, assuming plumb bob"
        )

    d_node = _lookup(doc, D_YML_NAME)
    d_rows = _as_int(_lookup(d_node, "rows"), D_YML_NAME)
    d_cols = _as_int(_lookup(d_node, "cols"), D_YML_NAME)
    if d_rows < 0 or d_cols < 0:
        raise CalibrationError(f"Matrix '{D_YML_NAME}' has a negative size")
    cam_info.d = _read_data(d_node, D_YML_NAME, d_rows * d_cols)

    if BINNING_X_YML_NAME in doc:
        cam_info.binning_x = _as_uint(doc[BINNING_X_YML_NAME], BINNING_X_YML_NAME)
    if BINNING_Y_YML_NAME in doc:
        cam_info.binning_y = _as_uint(doc[BINNING_Y_YML_NAME], BINNING_Y_YML_NAME)

    if ROI_YML_NAME in doc:
        roi_node = doc[ROI_YML_NAME]
        roi = cam_info.roi
        roi.x_offset = _as_uint(_lookup(roi_node, ROI_X_OFFSET_YML_NAME), ROI_X_OFFSET_YML_NAME)
        roi.y_offset = _as_uint(_lookup(roi_node, ROI_Y_OFFSET_YML_NAME), ROI_Y_OFFSET_YML_NAME)
        roi.height = _as_uint(_lookup(roi_node, ROI_HEIGHT_YML_NAME), ROI_HEIGHT_YML_NAME)
        roi.width = _as_uint(_lookup(roi_node, ROI_WIDTH_YML_NAME), ROI_WIDTH_YML_NAME)
        roi.do_rectify = _as_bool(
            _lookup(roi_node, ROI_DO_RECTIFY_YML_NAME), ROI_DO_RECTIFY_YML_NAME
        )

    return camera_name, cam_info


def read_calibration_yml(stream: IO[str]) -> tuple[str, CameraInfo]:
    """Read a YAML calibration from a text stream; return (camera name, info)."""
    try:
        doc = yaml.safe_load(stream)
    except yaml.YAMLError as exc:
        raise CalibrationError(f"Exception parsing YAML camera calibration:\n{exc}") from exc
    return _read_document(doc)


def parse_calibration_yml(buffer: str) -> tuple[str, CameraInfo]:
    """Parse a YAML calibration held in a string."""
    return read_calibration_yml(io.StringIO(buffer))


def load_calibration_yml(file_name: str | os.PathLike[str]) -> tuple[str, CameraInfo]:
    """Read a YAML calibration from a file."""
    try:
        stream = open(file_name, encoding="utf-8")
    except OSError as exc:
        raise CalibrationError(f"Unable to open camera calibration file [{file_name}]") from exc
    with stream:
        try:
            return read_calibration_yml(stream)
        except CalibrationError as exc:
            raise CalibrationError(
                f"Failed to parse camera calibration from file [{file_name}]: {exc}"
            ) from exc


def _matrix(rows: int, cols: int, data: list[float]) -> dict[str, Any]:
    return {"rows": rows, "cols": cols, "data": _FlowList(float(v) for v in data)}


def write_calibration_yml(out: IO[str], camera_name: str, cam_info: CameraInfo) -> None:
    """Write a calibration in YAML form."""
    roi = cam_info.roi
    doc = {
        WIDTH_YML_NAME: int(cam_info.width),
        HEIGHT_YML_NAME: int(cam_info.height),
        CAM_YML_NAME: str(camera_name),
        K_YML_NAME: _matrix(3, 3, cam_info.k),
        DMODEL_YML_NAME: str(cam_info.distortion_model),
        D_YML_NAME: _matrix(1, len(cam_info.d), cam_info.d),
        R_YML_NAME: _matrix(3, 3, cam_info.r),
        P_YML_NAME: _matrix(3, 4, cam_info.p),
        BINNING_X_YML_NAME: int(cam_info.binning_x),
        BINNING_Y_YML_NAME: int(cam_info.binning_y),
        ROI_YML_NAME: {
            ROI_X_OFFSET_YML_NAME: int(roi.x_offset),
            ROI_Y_OFFSET_YML_NAME: int(roi.y_offset),
            ROI_HEIGHT_YML_NAME: int(roi.height),
            ROI_WIDTH_YML_NAME: int(roi.width),
            ROI_DO_RECTIFY_YML_NAME: bool(roi.do_rectify),
        },
    }
    yaml.dump(
        doc,
        out,
        Dumper=_Dumper,
        sort_keys=False,
        default_flow_style=False,
        width=4096,
    )


def save_calibration_yml(
    file_name: str | os.PathLike[str], camera_name: str, cam_info: CameraInfo
) -> None:
    """Write a YAML calibration to a file, creating its directory if needed."""
    directory = os.path.dirname(os.fspath(file_name))
    if directory and not os.path.exists(directory):
        try:
            os.makedirs(directory)
        except OSError:
            logger.error(
                "Unable to create directory for camera calibration file [%s]", directory
            )
    try:
        out = open(file_name, "w", encoding="utf-8")
    except OSError as exc:
        raise CalibrationError(
            f"Unable to open camera calibration file [{file_name}] for writing"
        ) from exc
    with out:
        write_calibration_yml(out, camera_name, cam_info)