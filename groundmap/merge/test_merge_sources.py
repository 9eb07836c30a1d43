"""
Tests for the merge runner (config loading, batch files, canonical output).

Run with: pytest groundmap/merge/test_merge_sources.py -v
"""

import json

import pytest

from groundmap.errors import StoreError
from groundmap.merge.merge_sources import (
    candidates_from_document,
    load_batches,
    load_config,
    match_config,
    merge_sources,
)


def write_json(path, data):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data))
    return path


def feature(name, lon, lat, **props):
    props = dict(props, name=name)
    return {
        'type': 'Feature',
        'geometry': {'type': 'Point', 'coordinates': [lon, lat]},
        'properties': props,
    }


@pytest.fixture
def data_dir(tmp_path):
    config = {
        'sources': {
            'active_places': {'enabled': True, 'priority': 2,
                              'path': 'sources/active_places/normalized/venues.geojson'},
            'osm': {'enabled': True, 'priority': 1,
                    'path': 'sources/osm/normalized/venues.geojson'},
            'scotland_open': {'enabled': False, 'priority': 3,
                              'path': 'sources/scotland_open/normalized/venues.geojson'},
        },
        'authoritative_sources': ['active_places'],
        'matching': {'max_distance_m': 700, 'min_name_similarity': 0.35},
        'output': {'canonical_file': 'grounds.json'},
    }
    write_json(tmp_path / 'merge_config.json', config)
    write_json(tmp_path / 'sources/osm/normalized/venues.geojson', {
        'type': 'FeatureCollection',
        'features': [
            feature('Trent Bridge', -1.1322, 52.9369, source='osm', source_ref='way/100'),
            feature('Mill Lane', -1.5, 52.5, source='osm', source_ref='node/7'),
        ],
    })
    write_json(tmp_path / 'sources/active_places/normalized/venues.geojson', {
        'type': 'FeatureCollection',
        'features': [
            feature('Trent Bridge Cricket Ground', -1.1320, 52.9370, source='active_places',
                    source_ref='active_places/55', website='http://trentbridge.example'),
            feature('Far Field', -2.5, 53.5, source='active_places', source_ref='active_places/56'),
        ],
    })
    return tmp_path


def test_load_config_requires_sections(tmp_path):
    path = write_json(tmp_path / 'merge_config.json', {'sources': {}, 'matching': {}})
    with pytest.raises(ValueError, match='output'):
        load_config(path)


def test_load_config_requires_path_for_enabled_source(tmp_path):
    path = write_json(tmp_path / 'merge_config.json', {
        'sources': {'osm': {'enabled': True}}, 'matching': {}, 'output': {},
    })
    with pytest.raises(ValueError, match='osm'):
        load_config(path)


def test_match_config_reads_thresholds(data_dir):
    config = load_config(data_dir / 'merge_config.json')
    policy = match_config(config)
    assert policy.max_distance_m == 700
    assert policy.min_name_similarity == 0.35
    assert policy.is_authoritative('active_places')
    assert not policy.is_authoritative('scotland_open')


def test_batches_follow_priority_and_skip_disabled(data_dir):
    config = load_config(data_dir / 'merge_config.json')
    batches = load_batches(config, data_dir)
    assert [b.source for b in batches] == ['osm', 'active_places']
    assert len(batches[0].candidates) == 2


def test_missing_source_file_is_skipped(data_dir):
    (data_dir / 'sources/osm/normalized/venues.geojson').unlink()
    config = load_config(data_dir / 'merge_config.json')
    assert [b.source for b in load_batches(config, data_dir)] == ['active_places']


def test_malformed_source_file_is_skipped(data_dir):
    (data_dir / 'sources/osm/normalized/venues.geojson').write_text('{not json')
    config = load_config(data_dir / 'merge_config.json')
    assert [b.source for b in load_batches(config, data_dir)] == ['active_places']


def test_candidates_from_flat_list():
    assert candidates_from_document([{'name': 'x'}]) == [{'name': 'x'}]


def test_candidates_from_feature_collection_use_point_geometry():
    doc = {'features': [{'geometry': {'type': 'Point', 'coordinates': [-1.0, 52.0]},
                         'properties': {'name': 'Mill Lane'}}]}
    assert candidates_from_document(doc) == [{'name': 'Mill Lane', 'lat': 52.0, 'lon': -1.0}]


def test_candidates_keep_explicit_coordinates():
    doc = {'features': [{'geometry': {'type': 'Point', 'coordinates': [-1.0, 52.0]},
                         'properties': {'name': 'Mill Lane', 'lat': 51.0, 'lon': -2.0}}]}
    assert candidates_from_document(doc)[0]['lat'] == 51.0


def test_candidates_from_unknown_document():
    with pytest.raises(ValueError):
        candidates_from_document({'type': 'Feature'})


def test_merge_sources_writes_canonical_and_report(data_dir):
    assert merge_sources(data_dir / 'merge_config.json') is True

    venues = json.loads((data_dir / 'grounds.json').read_text())
    ids = [v['id'] for v in venues]
    assert ids == ['way/100', 'node/7', 'active_places/56']

    trent = venues[0]
    assert trent['website'] == 'http://trentbridge.example'
    assert trent['verified'] is True
    assert trent['source'] == 'osm'

    report = json.loads((data_dir / 'grounds.report.json').read_text())
    assert report['existing_count'] == 0
    assert report['total_output'] == 3
    assert report['merged'] == 1
    assert report['added'] == 3
    assert [s['source'] for s in report['sources']] == ['osm', 'active_places']


def test_merge_sources_is_idempotent(data_dir):
    merge_sources(data_dir / 'merge_config.json')
    first = (data_dir / 'grounds.json').read_text()
    merge_sources(data_dir / 'merge_config.json')
    second = json.loads((data_dir / 'grounds.json').read_text())
    assert second == json.loads(first)


def test_merge_sources_keeps_existing_ids(data_dir):
    write_json(data_dir / 'grounds.json', [
        {'id': 'legacy-1', 'name': 'Trent Bridge', 'lat': 52.9369, 'lon': -1.1322, 'club_url': ''},
    ])
    merge_sources(data_dir / 'merge_config.json')
    venues = json.loads((data_dir / 'grounds.json').read_text())
    assert venues[0]['id'] == 'legacy-1'
    assert 'way/100' not in [v['id'] for v in venues]


def test_merge_sources_output_override(data_dir, tmp_path):
    out = tmp_path / 'out' / 'custom.json'
    merge_sources(data_dir / 'merge_config.json', out)
    assert out.exists()
    assert (tmp_path / 'out' / 'custom.report.json').exists()


def test_unreadable_canonical_store_raises(data_dir):
    (data_dir / 'grounds.json').write_text('{"not": "a list"}')
    with pytest.raises(StoreError):
        merge_sources(data_dir / 'merge_config.json')
