import threading
from io import BytesIO

import pytest
from PIL import Image

from labeler_service.config import get_settings
from labeler_service.errors import FetchError, StoreError


class FakeGateway:
    """In-memory stand-in for the S3 gateway."""

    def __init__(self):
        self.objects = {}
        self.gets = []
        self.puts = {}
        self.fail_get = set()
        self.fail_put = set()
        self.on_get = None
        self._lock = threading.Lock()

    def add(self, bucket, key, body):
        self.objects[(bucket, key)] = body

    def get(self, bucket, key):
        with self._lock:
            self.gets.append((bucket, key))
        if self.on_get is not None:
            self.on_get(bucket, key)
        if key in self.fail_get:
            raise FetchError(f"NoSuchKey: {key}", key=key)
        return self.objects[(bucket, key)]

    def put(self, bucket, key, body, content_type):
        if key in self.fail_put:
            raise StoreError(f"AccessDenied: {key}", key=key)
        with self._lock:
            self.puts[(bucket, key)] = (body, content_type)


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def make_image():
    def _make(size, fmt, color=(0, 0, 255)):
        buf = BytesIO()
        Image.new("RGB", size, color).save(buf, format=fmt)
        return buf.getvalue()

    return _make


@pytest.fixture
def make_mpo():
    """Two-frame multi-picture JPEG, the layout many phone cameras write."""

    def _make(size, color=(200, 30, 30)):
        buf = BytesIO()
        first = Image.new("RGB", size, color)
        second = Image.new("RGB", size, (30, 30, 200))
        first.save(buf, format="MPO", save_all=True, append_images=[second])
        return buf.getvalue()

    return _make


@pytest.fixture(autouse=True)
def clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
