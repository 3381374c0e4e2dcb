# tests/conftest.py

import io

import pytest

from bnd.byte_source import ByteSource
from utils.i18n import translator

from builders import Built, SAMPLE_SPECS, SAMPLE_DATA_ORDER, build_bnd


@pytest.fixture(autouse=True)
def english_messages():
    translator.set_language('en')


@pytest.fixture
def sample_built() -> Built:
    return build_bnd(SAMPLE_SPECS, SAMPLE_DATA_ORDER, trailing=b'STALE-TRAILING-BYTES')


@pytest.fixture
def sample_bytes(sample_built) -> bytes:
    return sample_built.data


@pytest.fixture
def sample_source(sample_bytes) -> ByteSource:
    return ByteSource(io.BytesIO(sample_bytes), "sample.bnd")


@pytest.fixture
def sample_file(tmp_path, sample_bytes):
    path = tmp_path / "sample.bnd"
    path.write_bytes(sample_bytes)
    return path
