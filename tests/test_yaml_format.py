import io

import pytest

from camcalibkit.models import PLUMB_BOB, RATIONAL_POLYNOMIAL, CalibrationError, CameraInfo
from camcalibkit.yaml_format import (
    load_calibration_yml,
    parse_calibration_yml,
    read_calibration_yml,
    save_calibration_yml,
    write_calibration_yml,
)

SAMPLE = """\
image_width: 640
image_height: 480
camera_name: narrow_stereo
camera_matrix:
  rows: 3
  cols: 3
  data: [430.15, 0, 311.71, 0, 430.5, 221.06, 0, 0, 1]
distortion_model: plumb_bob
distortion_coefficients:
  rows: 1
  cols: 5
  data: [-0.363, 0.1603, -0.00094, 0.00061, 0]
rectification_matrix:
  rows: 3
  cols: 3
  data: [1, 0, 0, 0, 1, 0, 0, 0, 1]
projection_matrix:
  rows: 3
  cols: 4
  data: [361.4, 0, 311.2, 0, 0, 395.1, 220.7, 0, 0, 0, 1, 0]
"""


def _sample_info():
    info = CameraInfo(width=752, height=480, distortion_model=RATIONAL_POLYNOMIAL)
    info.d = [0.1, -0.2, 0.001, 0.002, 0.3, 0.01, 0.02, 0.03]
    info.k = [500.5, 0.0, 320.25, 0.0, 501.5, 240.75, 0.0, 0.0, 1.0]
    info.r = [1.0, 0.0, 0.0, 0.0, 1.0, 0.0, 0.0, 0.0, 1.0]
    info.p = [500.5, 0.0, 320.25, 0.0, 0.0, 501.5, 240.75, 0.0, 0.0, 0.0, 1.0, 0.0]
    info.binning_x = 2
    info.binning_y = 3
    info.roi.x_offset = 4
    info.roi.y_offset = 5
    info.roi.width = 100
    info.roi.height = 50
    info.roi.do_rectify = True
    return info


def test_parse_sample_values():
    name, info = parse_calibration_yml(SAMPLE)
    assert name == "narrow_stereo"
    assert (info.width, info.height) == (640, 480)
    assert info.k == [430.15, 0.0, 311.71, 0.0, 430.5, 221.06, 0.0, 0.0, 1.0]
    assert info.d == [-0.363, 0.1603, -0.00094, 0.00061, 0.0]
    assert info.distortion_model == PLUMB_BOB
    assert info.p[2] == 311.2
    assert info.binning_x == 0
    assert info.roi.do_rectify is False


def test_round_trip_keeps_all_fields():
    original = _sample_info()
    out = io.StringIO()
    write_calibration_yml(out, "left_cam", original)
    name, info = read_calibration_yml(io.StringIO(out.getvalue()))
    assert name == "left_cam"
    assert info == original


def test_writer_key_order_and_flow_data():
    out = io.StringIO()
    write_calibration_yml(out, "cam", _sample_info())
    text = out.getvalue()
    keys = [line.split(":")[0] for line in text.splitlines() if not line.startswith(" ")]
    assert keys == [
        "image_width",
        "image_height",
        "camera_name",
        "camera_matrix",
        "distortion_model",
        "distortion_coefficients",
        "rectification_matrix",
        "projection_matrix",
        "binning_x",
        "binning_y",
        "roi",
    ]
    assert "  data: [" in text


def test_missing_camera_name_defaults_to_unknown():
    text = SAMPLE.replace("camera_name: narrow_stereo\n", "")
    name, _ = parse_calibration_yml(text)
    assert name == "unknown"


def test_missing_distortion_model_assumes_plumb_bob():
    text = SAMPLE.replace("distortion_model: plumb_bob\n", "")
    _, info = parse_calibration_yml(text)
    assert info.distortion_model == PLUMB_BOB


def test_missing_width_is_error():
    with pytest.raises(CalibrationError):
        parse_calibration_yml(SAMPLE.replace("image_width: 640\n", ""))


def test_wrong_matrix_shape_is_error():
    text = SAMPLE.replace("rows: 3\n  cols: 4", "rows: 2\n  cols: 4")
    with pytest.raises(CalibrationError):
        parse_calibration_yml(text)


def test_short_matrix_data_is_error():
    text = SAMPLE.replace("data: [1, 0, 0, 0, 1, 0, 0, 0, 1]", "data: [1, 0, 0]")
    with pytest.raises(CalibrationError):
        parse_calibration_yml(text)


def test_invalid_yaml_is_error():
    with pytest.raises(CalibrationError):
        parse_calibration_yml("image_width: [unclosed\n")


def test_empty_document_is_error():
    with pytest.raises(CalibrationError):
        parse_calibration_yml("")


def test_roi_requires_all_keys():
    text = SAMPLE + "roi:\n  x_offset: 1\n"
    with pytest.raises(CalibrationError):
        parse_calibration_yml(text)


def test_save_and_load_creates_directory(tmp_path):
    path = tmp_path / "nested" / "dir" / "cam.yaml"
    original = _sample_info()
    save_calibration_yml(path, "right_cam", original)
    assert path.exists()
    name, info = load_calibration_yml(path)
    assert name == "right_cam"
    assert info == original


def test_load_missing_file_is_error(tmp_path):
    with pytest.raises(CalibrationError):
        load_calibration_yml(tmp_path / "absent.yaml")