"""
Tests de la lecture des catalogues et de la validation des saisies.
"""

import pytest

from vpsearch.core.errors import InvalidArgumentError
from vpsearch.core.item import MetricItem, Song
from vpsearch.io.reader import parse_feature, parse_features, make_query, read_items, load_catalog


def test_parse_features_sequence_and_mapping():
    """Teste la conversion des saisies valides."""
    assert parse_features(["121", " 56 ", 214]) == (121.0, 56.0, 214.0)
    assert parse_features({"tempo": 1, "pitch": 2.5, "duration": "3e2"}) == (1.0, 2.5, 300.0)


@pytest.mark.parametrize("value", ["nan", "inf", "-inf", float("nan"), "abc", "", "  ", None, True])
def test_parse_feature_rejects_invalid(value):
    """Teste le refus des valeurs non numériques ou non finies."""
    with pytest.raises(InvalidArgumentError):
        parse_feature("tempo", value)


def test_parse_features_wrong_shape():
    """Teste le refus d'un nombre incorrect de caractéristiques."""
    with pytest.raises(InvalidArgumentError):
        parse_features([120, 55])
    with pytest.raises(InvalidArgumentError):
        parse_features({"tempo": 120, "pitch": 55})
    with pytest.raises(InvalidArgumentError):
        parse_features("120 55 215")


def test_make_query():
    """Teste la construction de la chanson requête."""
    query = make_query(["121", "56", "214"])

    assert isinstance(query, Song)
    assert query.item_id == 0
    assert query.features == (121.0, 56.0, 214.0)

    with pytest.raises(InvalidArgumentError):
        make_query(["121", "nan", "214"])


def test_read_songs(tmp_path):
    """Teste la lecture d'un catalogue de chansons."""
    catalog = tmp_path / "catalog.yaml"
    catalog.write_text(
        "- {id: 1, title: Song A, tempo: 120, pitch: 55, duration: 215}\n"
        "- {id: 2, title: Song B, tempo: 128, pitch: 60, duration: 180}\n",
        encoding="utf-8"
    )

    items = read_items(str(catalog))

    assert items == [Song(1, 120, 55, 215, "Song A"), Song(2, 128, 60, 180, "Song B")]


def test_read_generic_items_under_key(tmp_path, capsys):
    """Teste la lecture d'éléments génériques sous la clé 'items'."""
    catalog = tmp_path / "catalog.yaml"
    catalog.write_text(
        "items:\n"
        "  - {id: a, features: [1, 2]}\n"
        "  - {id: b, title: B, features: [3.5, 4]}\n",
        encoding="utf-8"
    )

    items = read_items(str(catalog), verbose=True)

    assert [type(item) for item in items] == [MetricItem, MetricItem]
    assert items[1].features == (3.5, 4.0)
    assert items[0].title == ""
    assert "2 éléments chargés" in capsys.readouterr().out


def test_read_empty_catalog(tmp_path):
    """Teste la lecture d'un fichier vide."""
    catalog = tmp_path / "catalog.yaml"
    catalog.write_text("", encoding="utf-8")

    assert read_items(str(catalog)) == []


@pytest.mark.parametrize("content", [
    "- {title: sans id, tempo: 1, pitch: 2, duration: 3}\n",
    "- {id: 1, tempo: 1, pitch: 2}\n",
    "- {id: 1, tempo: fast, pitch: 2, duration: 3}\n",
    "- {id: 1, features: []}\n",
    "- [1, 2, 3]\n",
    "items: 3\n",
])
def test_read_malformed_entries(tmp_path, content):
    """Teste le refus des entrées mal formées."""
    catalog = tmp_path / "catalog.yaml"
    catalog.write_text(content, encoding="utf-8")

    with pytest.raises(InvalidArgumentError):
        read_items(str(catalog))


def test_error_names_entry(tmp_path):
    """Teste que le message d'erreur identifie l'entrée fautive."""
    catalog = tmp_path / "catalog.yaml"
    catalog.write_text(
        "- {id: 1, tempo: 1, pitch: 2, duration: 3}\n"
        "- {id: 42, tempo: 1, pitch: .nan, duration: 3}\n",
        encoding="utf-8"
    )

    with pytest.raises(InvalidArgumentError, match="Entrée 1 \\(id=42\\)"):
        read_items(str(catalog))


def test_read_heterogeneous_dimensions(tmp_path):
    """Teste le refus d'un catalogue mélangeant des dimensions."""
    catalog = tmp_path / "catalog.yaml"
    catalog.write_text(
        "- {id: 1, features: [1, 2]}\n"
        "- {id: 2, features: [1, 2, 3]}\n",
        encoding="utf-8"
    )

    with pytest.raises(InvalidArgumentError):
        read_items(str(catalog))


def test_load_catalog_sample():
    """Teste le catalogue d'exemple utilisé sans fichier."""
    songs = load_catalog(None)

    assert len(songs) == 10
    assert songs[0] == Song(1, 120, 55, 215, "Song A - Artist 1")
    assert songs[-1].title == "Song J - Artist 10"
    assert len({song.item_id for song in songs}) == 10


def test_mapping_without_items_key(tmp_path):
    """Teste le refus d'un catalogue dont la clé 'items' est absente (faute de frappe)."""
    catalog = tmp_path / "catalog.yaml"
    catalog.write_text("itemz:\n  - {id: 1, tempo: 1, pitch: 2, duration: 3}\n", encoding="utf-8")

    with pytest.raises(InvalidArgumentError, match="items"):
        read_items(str(catalog))
