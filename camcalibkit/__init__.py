"""Camera calibration file formats, conversion and calibration management."""

__version__ = "0.1.0"

__all__ = [
    "models",
    "ini_format",
    "yaml_format",
    "parse",
    "convert",
    "camera_common",
    "camera_info_manager",
]