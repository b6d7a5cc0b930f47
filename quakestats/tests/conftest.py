"""Global pytest fixtures.
 - Sets env vars to disable logging side effects.
 - Provides a builder for USGS-shaped CSV feeds.
"""
from __future__ import annotations
import csv
import io
import os
import pytest

USGS_HEADER = [
    'time', 'latitude', 'longitude', 'depth', 'mag', 'magType', 'nst', 'gap', 'dmin', 'rms', 'net', 'id',
    'updated', 'place', 'type', 'horizontalError', 'depthError', 'magError', 'magNst', 'status',
    'locationSource', 'magSource',
]


@pytest.fixture(autouse=True, scope="session")
def test_env_setup():
    os.environ.setdefault('QUAKESTATS_DISABLE_FILE_LOGS', '1')
    os.environ.setdefault('QUAKESTATS_DISABLE_EVENTS', '1')
    yield


def build_usgs_csv(rows) -> bytes:
    """rows: iterable of (time, mag, place) or full field lists."""
    buf = io.StringIO()
    w = csv.writer(buf, lineterminator='\n')
    w.writerow(USGS_HEADER)
    for i, r in enumerate(rows):
        if isinstance(r, tuple):
            t, mag, place = r
            w.writerow([t, '38.8', '-122.8', '2.1', mag, 'md', '12', '80', '', '0.02', 'nc', f'nc{i}', t, place, 'earthquake', '0.3', '0.5', '0.1', '9', 'automatic', 'nc', 'nc'])
        else:
            w.writerow(r)
    return buf.getvalue().encode('utf-8')


@pytest.fixture
def usgs_csv():
    return build_usgs_csv


import sys, pathlib
# Add project root to sys.path for tests
ROOT = pathlib.Path(__file__).resolve().parents[2]  # points to project root
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
