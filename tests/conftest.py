"""Shared fixtures: fake HTTP session, image bytes, output roots."""

import pytest
import requests
from requests.structures import CaseInsensitiveDict

from wpconverter.config import CommentRenderMode, ConversionConfig, FrontmatterDateMode
from wpconverter.image_handler import ImageLocalizer
from wpconverter.sink import FileSink

JPEG_BYTES = b'\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00' + b'\x00' * 64
PNG_BYTES = b'\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR' + b'\x00' * 64
GIF_BYTES = b'GIF89a' + b'\x00' * 64


class FakeResponse:
    def __init__(self, content: bytes = PNG_BYTES, content_type: str = 'image/png', status_code: int = 200):
        self.content = content
        self.status_code = status_code
        self.headers = CaseInsensitiveDict()
        if content_type is not None:
            self.headers['Content-Type'] = content_type

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Client Error")


class FakeSession:
    """Serves canned responses; unknown URLs fail like an unreachable host."""

    def __init__(self, responses=None):
        self.responses = dict(responses or {})
        self.headers = {}
        self.calls = []

    def get(self, url, timeout=None):
        self.calls.append(url)
        response = self.responses.get(url)
        if response is None:
            raise requests.ConnectionError(f"Failed to establish a connection to {url}")
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def sink(tmp_path):
    return FileSink(tmp_path)


@pytest.fixture
def localizer(sink, session):
    return ImageLocalizer(sink, session=session, timeout=5)


@pytest.fixture
def config(tmp_path):
    return ConversionConfig(
        output_dir=tmp_path,
        comment_mode=CommentRenderMode.INLINE,
        date_mode=FrontmatterDateMode.ID_AND_DATE,
        site_hosts=['weaselhat.com'],
    )
