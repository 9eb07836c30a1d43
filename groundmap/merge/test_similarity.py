"""
Tests for distance and name similarity.

Run with: pytest groundmap/merge/test_similarity.py -v
"""

import math

import pytest

from groundmap.merge.similarity import (
    coerce_coordinate,
    coordinates_of,
    distance_meters,
    name_similarity,
    tokenize,
)

LORDS = (51.5294, -0.1727)
OVAL = (51.4837, -0.1150)


def test_distance_zero_for_same_point():
    assert distance_meters(LORDS, LORDS) == 0
    assert distance_meters({'lat': 55.9, 'lon': -3.2}, {'lat': 55.9, 'lon': -3.2}) == 0


def test_distance_is_symmetric():
    assert distance_meters(LORDS, OVAL) == distance_meters(OVAL, LORDS)


def test_distance_lords_to_oval():
    # About 6.5 km across central London
    assert 6000 < distance_meters(LORDS, OVAL) < 7000


def test_distance_one_degree_latitude():
    expected = 6371000 * math.pi / 180
    assert distance_meters((50.0, 0.0), (51.0, 0.0)) == pytest.approx(expected)


def test_distance_accepts_mappings_with_string_coordinates():
    assert distance_meters({'lat': '51.5294', 'lon': '-0.1727'}, LORDS) == 0


def test_tokenize_lowercases_and_strips_punctuation():
    assert tokenize("Lord's Cricket-Ground!") == {'lords', 'cricket', 'ground'}
    assert tokenize('  Old   Trafford  ') == {'old', 'trafford'}
    assert tokenize(None) == set()
    assert tokenize('---') == set()


def test_name_similarity_identical():
    assert name_similarity('Headingley Stadium', 'Headingley Stadium') == 1
    assert name_similarity('Headingley Stadium', 'stadium, HEADINGLEY') == 1


def test_name_similarity_empty():
    assert name_similarity('Headingley', '') == 0
    assert name_similarity('', '') == 0
    assert name_similarity(None, 'Headingley') == 0


def test_name_similarity_jaccard():
    # {alpha, beta, gamma} vs {alpha, delta, epsilon}: 1 shared of 5
    assert name_similarity('alpha beta gamma', 'alpha delta epsilon') == pytest.approx(0.2)
    assert name_similarity('Trent Bridge', 'Trent Bridge Cricket Ground') == pytest.approx(0.5)


def test_name_similarity_in_range():
    score = name_similarity('Sophia Gardens Cardiff', 'Cardiff Arms Park')
    assert 0 <= score <= 1


def test_name_similarity_ignore_tokens():
    assert name_similarity("Lord's", 'Lords Cricket Ground') == pytest.approx(1 / 3)
    assert name_similarity("Lord's", 'Lords Cricket Ground', ignore=['cricket', 'ground']) == 1
    # Nothing left after ignoring
    assert name_similarity('Cricket Ground', 'Cricket Ground', ignore=['cricket', 'ground']) == 0


@pytest.mark.parametrize('value, expected', [
    (51.5, 51.5),
    ('51.5', 51.5),
    (' -0.17 ', -0.17),
    (0, 0.0),
    (None, None),
    ('', None),
    ('abc', None),
    (float('nan'), None),
    (float('inf'), None),
    (True, None),
])
def test_coerce_coordinate(value, expected):
    assert coerce_coordinate(value) == expected


def test_coordinates_of():
    assert coordinates_of({'lat': '51.5', 'lon': -0.1}) == (51.5, -0.1)
    assert coordinates_of({'lat': None, 'lon': -0.1}) is None
    assert coordinates_of({}) is None
