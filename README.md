# camcalibkit

Tools for working with camera calibration data: the intrinsic camera
matrix, distortion coefficients, rectification and projection matrices,
image size, binning and region of interest.

The package reads and writes two file formats:

* **YAML** (`.yml` / `.yaml`): the full calibration, including any
  distortion model, binning and region of interest.
* **INI** (`.ini`): a legacy format. Reading accepts five (plumb bob) or
  eight (rational polynomial) distortion coefficients; writing supports
  only the plumb-bob model with five coefficients.

It also has a calibration manager that resolves calibration URLs
(`file:///...`, `package://...`, with `${NAME}` and `${ROS_HOME}`
substitution) and loads or saves calibrations through them.

## Installation

```
pip install camcalibkit
```

## Converting between formats

The `camcalibkit-convert` command reads one calibration file and writes
it in the format given by the output file's extension:

```
camcalibkit-convert input.yml output.ini
camcalibkit-convert input.ini output.yml
```

Run with fewer than two arguments, it prints its usage and exits with
status 0. If the input cannot be read or the output cannot be written, it
logs the reason and exits with status 1. Converting to INI fails for
calibrations that do not use the plumb-bob model with five distortion
coefficients; use YAML for those.

## The data model

`camcalibkit.models` holds:

* `CameraInfo`: a dataclass with `width`, `height`, `distortion_model`,
  `d` (distortion coefficients), `k` and `r` (row-major 3x3), `p`
  (row-major 3x4), `binning_x`, `binning_y` and `roi`.
  `is_calibrated()` is true when `k[0]` is non-zero.
* `RegionOfInterest`: `x_offset`, `y_offset`, `height`, `width`,
  `do_rectify`.
* `CalibrationError`: raised when calibration data cannot be read,
  parsed or written.

## Reading and writing in code

The format is chosen by the file extension:

```python
from camcalibkit.parse import read_calibration, write_calibration

name, cam_info = read_calibration("left.yaml")
write_calibration("out/left.ini", name, cam_info)
```

`write_calibration(file_name, camera_name, cam_info)` writes a
`CameraInfo` under a camera name, creating a missing parent directory.
An unknown extension, a missing file or malformed content raises
`CalibrationError`.

INI text already in memory can be parsed with
`parse_calibration(buffer, "ini")`; any other format name raises
`CalibrationError`. Each format module also works on streams and strings
directly, and every reader returns a `(camera_name, CameraInfo)` tuple:

* `camcalibkit.ini_format`: `read_calibration_ini`,
  `parse_calibration_ini`, `load_calibration_ini`,
  `write_calibration_ini`, `save_calibration_ini`
* `camcalibkit.yaml_format`: `read_calibration_yml`,
  `parse_calibration_yml`, `load_calibration_yml`,
  `write_calibration_yml`, `save_calibration_yml`

A YAML file without `camera_name` reads as camera `"unknown"`; one
without `distortion_model` is taken to be plumb bob.

## The calibration manager

`camcalibkit.camera_info_manager.CameraInfoManager(camera_name, url,
package_resolver)` keeps the current calibration for a named camera. It
loads from its URL the first time the calibration is asked for. If the
URL is empty, it uses `file://${ROS_HOME}/camera_info/${NAME}.yaml`,
where `${ROS_HOME}` is the `ROS_HOME` environment variable or, failing
that, `$HOME/.ros`.

* `get_camera_info()` and `is_calibrated()` load the calibration on
  first use; without one, the matrices are all zeros.
* `load_camera_info(url)` switches to a new URL and loads from it.
* `set_camera_info(camera_info)` replaces the calibration in use without
  saving it.
* `set_camera_name(cname)` accepts only letters, digits and `_`, and
  forces a reload before the calibration is next used.
* `validate_url(url)` checks whether a URL's syntax is supported.
* `handle_set_camera_info(camera_info)` takes a new calibration, saves it
  to the current URL and returns `(success, status_message)`. An invalid
  URL makes it save to the default location instead.
* `resolve_url(url, cname)` and `parse_url(url)` expose the substitution
  and classification (`UrlType`) used internally.

`package://name/path` URLs are resolved through the `package_resolver`
given to the manager, a callable that maps a package name to its
directory; returning an empty string, `None` or raising `LookupError`
means the package is unknown.

The module also has `split(text, pattern)`, which splits text on a
regular expression.

## Topic names

`camcalibkit.camera_common.get_camera_info_topic("/camera/image")` gives
`"/camera/camera_info"`, the calibration topic that sits next to an image
topic. The same module has `split(text, delim)` and
`erase_last_copy(text, search)`.

## What it does not do

* `flash:///` URLs are recognized, but loading from them is not
  supported and `validate_url` rejects them.
* The manager is a plain in-process object: it does not publish
  calibrations or offer a network service for setting them.
  `handle_set_camera_info` is the call such a service would make.
* There is no image publishing or subscribing; only the topic-name
  helpers are provided.