"""Shared fixtures for the thumbnail service tests."""

from __future__ import annotations

from typing import Callable

import pytest

from tests.helpers import FakeTransform, make_image_bytes


@pytest.fixture
def png_factory() -> Callable[..., bytes]:
    return make_image_bytes


@pytest.fixture
def fake_transform() -> FakeTransform:
    return FakeTransform()
