"""Command that converts a calibration file between the INI and YAML formats."""

from __future__ import annotations

import logging
import sys

from camcalibkit.models import CalibrationError
from camcalibkit.parse import read_calibration, write_calibration

logger = logging.getLogger("camcalibkit.convert")

_PROG = "camcalibkit-convert"


def main(argv: list[str] | None = None) -> int:
    """Convert ``argv[0]`` into ``argv[1]``; return the exit status."""
    args = sys.argv[1:] if argv is None else list(argv)
    logging.basicConfig(format="%(levelname)s: %(message)s", level=logging.INFO)

    if len(args) < 2:
        print(f"Usage: {_PROG} input.yml output.ini\n       {_PROG} input.ini output.yml")
        return 0

    source, target = args[0], args[1]
    try:
        name, cam_info = read_calibration(source)
    except CalibrationError as exc:
        logger.error("Failed to load camera model from file %s: %s", source, exc)
        return 1
    try:
        write_calibration(target, name, cam_info)
    except CalibrationError as exc:
        logger.error("Failed to save camera model to file %s: %s", target, exc)
        return 1

    logger.info("Saved %s", target)
    return 0


if __name__ == "__main__":
    sys.exit(main())