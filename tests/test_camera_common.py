import pytest

from camcalibkit.camera_common import erase_last_copy, get_camera_info_topic, split


def test_camera_info_topic_is_sibling_of_image():
    assert get_camera_info_topic("camera/image") == "/camera/camera_info"


def test_leading_slash_gives_same_topic():
    assert get_camera_info_topic("/camera/image") == get_camera_info_topic("camera/image")


@pytest.mark.parametrize("base", ["image", "a/b/c", "/ns/cam/image_raw", "x//y"])
def test_camera_info_topic_suffix(base):
    topic = get_camera_info_topic(base)
    assert topic.endswith("/camera_info")
    assert topic.startswith("/")


def test_split_drops_empty_inner_tokens_but_keeps_last():
    assert split("a//b/", "/") == ["a", "b", ""]


def test_split_without_delimiter_returns_whole_text():
    assert split("camera", "/") == ["camera"]


def test_split_rejects_empty_delimiter():
    with pytest.raises(ValueError):
        split("abc", "")


def test_erase_last_copy_removes_last_occurrence():
    assert erase_last_copy("abcabc", "bc") == "abca"


def test_erase_last_copy_without_match_is_identity():
    assert erase_last_copy("camera/image", "xyz") == "camera/image"


def test_erase_last_copy_shortens_by_search_length():
    text = "image/compressed/compressed"
    result = erase_last_copy(text, "/compressed")
    assert len(result) == len(text) - len("/compressed")
    assert result + "/compressed" == text