"""
Tests for canonical store I/O.

Run with: pytest groundmap/test_store.py -v
"""

import json
import os

import pytest

from groundmap.errors import StoreError
from groundmap.store import load_venues, save_venues, write_json_atomic


def test_missing_file_is_empty_set(tmp_path):
    assert load_venues(tmp_path / 'grounds.json') == []


def test_round_trip(tmp_path):
    path = tmp_path / 'grounds.json'
    venues = [{'id': 'a', 'name': "Lord's", 'lat': 51.529, 'lon': -0.173}]
    save_venues(path, venues)
    assert load_venues(path) == venues
    assert path.read_text(encoding='utf-8').endswith('\n')


def test_invalid_json_raises(tmp_path):
    path = tmp_path / 'grounds.json'
    path.write_text('[{')
    with pytest.raises(StoreError, match='Cannot read'):
        load_venues(path)


@pytest.mark.parametrize('document', [{'id': 'a'}, ['not an object'], 3])
def test_wrong_shape_raises(tmp_path, document):
    path = tmp_path / 'grounds.json'
    path.write_text(json.dumps(document))
    with pytest.raises(StoreError, match='not a JSON array'):
        load_venues(path)


def test_atomic_write_creates_parent(tmp_path):
    path = tmp_path / 'nested' / 'out.json'
    write_json_atomic(path, {'ok': True})
    assert json.loads(path.read_text()) == {'ok': True}


def test_failed_write_keeps_old_document(tmp_path):
    path = tmp_path / 'grounds.json'
    save_venues(path, [{'id': 'a'}])

    with pytest.raises(StoreError):
        write_json_atomic(path, [{'id': object()}])

    assert load_venues(path) == [{'id': 'a'}]
    assert sorted(os.listdir(tmp_path)) == ['grounds.json']
