from camcalibkit.models import CameraInfo, RegionOfInterest


def test_default_matrices_have_expected_sizes_and_are_zero():
    info = CameraInfo()
    assert len(info.k) == 9
    assert len(info.r) == 9
    assert len(info.p) == 12
    assert all(v == 0.0 for v in info.k + info.r + info.p)
    assert info.d == []


def test_default_is_not_calibrated():
    assert CameraInfo().is_calibrated() is False


def test_focal_length_marks_calibrated():
    info = CameraInfo()
    info.k[0] = 500.0
    assert info.is_calibrated() is True


def test_only_first_element_decides_calibration():
    info = CameraInfo(k=[0.0, 1.0, 2.0, 3.0, 4.0, 5.0, 6.0, 7.0, 8.0])
    assert info.is_calibrated() is False


def test_default_lists_are_independent():
    first = CameraInfo()
    second = CameraInfo()
    first.k[0] = 1.0
    first.d.append(0.5)
    assert second.k[0] == 0.0
    assert second.d == []


def test_roi_defaults_and_equality():
    info = CameraInfo()
    assert info.roi == RegionOfInterest(0, 0, 0, 0, False)
    assert info.roi.do_rectify is False