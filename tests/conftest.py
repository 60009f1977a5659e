from __future__ import annotations

import random

import pytest

from fakes import RecordingResponder


@pytest.fixture
def responder() -> RecordingResponder:
    return RecordingResponder()


@pytest.fixture
def seeded_rng() -> random.Random:
    return random.Random(1234)
