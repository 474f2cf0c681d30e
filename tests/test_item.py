"""
Tests des éléments métriques et de la distance euclidienne.
"""

import math
import pickle

import numpy as np
import pytest

from vpsearch.core.errors import InvalidArgumentError
from vpsearch.core.item import MetricItem, Song


def test_song_features():
    """Teste l'accès nommé aux caractéristiques d'une chanson."""
    song = Song(1, 120, 55, 215, "Song A - Artist 1")

    assert song.item_id == 1
    assert song.title == "Song A - Artist 1"
    assert song.features == (120.0, 55.0, 215.0)
    assert (song.tempo, song.pitch, song.duration) == (120.0, 55.0, 215.0)
    assert song.dims == 3


def test_distance_concrete_values():
    """Teste les distances du scénario A / B / C."""
    a = Song(1, 120, 55, 215, "A")
    b = Song(2, 128, 60, 180, "B")
    c = Song(3, 115, 50, 200, "C")
    query = Song(0, 121, 56, 214, "Q")

    assert query.distance_to(a) == pytest.approx(math.sqrt(3))
    assert query.distance_to(b) == pytest.approx(math.sqrt(49 + 16 + 1156))
    assert query.distance_to(c) == pytest.approx(math.sqrt(36 + 36 + 196))


def test_distance_symmetric_and_zero():
    """Teste la symétrie et la nullité exacte de la distance."""
    rng = np.random.default_rng(0)
    items = [MetricItem(i, rng.uniform(-50, 50, size=3)) for i in range(30)]

    for a in items:
        assert a.distance_to(a) == 0.0
        for b in items:
            assert a.distance_to(b) == b.distance_to(a)
            if a is not b:
                assert a.distance_to(b) > 0

    twin = MetricItem("twin", items[0].features)
    assert items[0].distance_to(twin) == 0.0


def test_distances_to_matches_distance_to():
    """Teste que le calcul vectorisé donne exactement les mêmes valeurs."""
    rng = np.random.default_rng(1)
    items = [MetricItem(i, rng.uniform(0, 300, size=3)) for i in range(50)]
    vantage = items[7]

    distances = vantage.distances_to(items)

    assert distances.shape == (50,)
    for item, distance in zip(items, distances):
        assert float(distance) == vantage.distance_to(item)
    assert vantage.distances_to([]).shape == (0,)


def test_dimension_mismatch():
    """Teste le refus de comparer des éléments de dimensions différentes."""
    with pytest.raises(InvalidArgumentError):
        MetricItem(1, (1.0, 2.0)).distance_to(MetricItem(2, (1.0, 2.0, 3.0)))
    with pytest.raises(InvalidArgumentError):
        MetricItem(1, (1.0, 2.0)).distances_to([MetricItem(2, (1.0, 2.0, 3.0))])


def test_item_is_immutable():
    """Teste l'immuabilité des éléments."""
    song = Song(1, 120, 55, 215, "A")

    with pytest.raises(AttributeError):
        song.tempo = 10
    with pytest.raises(AttributeError):
        song._features = (1.0, 2.0, 3.0)
    with pytest.raises(ValueError):
        song.vector[0] = 0.0
    assert song.features == (120.0, 55.0, 215.0)


def test_item_pickle_round_trip():
    """Teste la sérialisation utilisée par les workers joblib."""
    song = Song(4, 130, 65, 220, "Song D - Artist 4")
    copy = pickle.loads(pickle.dumps(song))

    assert isinstance(copy, Song)
    assert copy == song
    assert hash(copy) == hash(song)
    assert copy.duration == 220.0


class LabelledItem(MetricItem):
    __slots__ = ()


def test_subclass_pickle_keeps_class():
    """Teste que la sérialisation conserve la classe et le vecteur en lecture seule."""
    item = LabelledItem("x", (1.0, 2.5), "étiquette")
    copy = pickle.loads(pickle.dumps(item))

    assert type(copy) is LabelledItem
    assert copy == item
    assert copy.distance_to(item) == 0.0
    with pytest.raises(ValueError):
        copy.vector[0] = 0.0
    with pytest.raises(AttributeError):
        copy.title = "autre"
