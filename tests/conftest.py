import pytest

from ts_builders import caption_segment, empty_segment


@pytest.fixture
def hello_segment():
    return caption_segment("HELLO")


@pytest.fixture
def captionless_segment():
    return empty_segment()
