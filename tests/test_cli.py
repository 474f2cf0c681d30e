"""
Tests de l'interface en ligne de commande.
"""

import pytest

from vpsearch import __version__
from vpsearch.cli import main
from vpsearch.core.item import MetricItem, Song
from vpsearch.search.searcher import Neighbor
from vpsearch.utils.cli_search import format_neighbor, parse_input_line


@pytest.fixture
def config_path(tmp_path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text(
        "build_tree:\n"
        "  strategy: standard\n"
        "  seed: 0\n"
        "  max_workers: 1\n"
        "search:\n"
        "  k: 3\n"
        "  use_faiss: false\n"
        "files:\n"
        "  catalog_dir: .\n"
        "  catalog: null\n",
        encoding="utf-8"
    )
    return str(config_file)


def test_format_neighbor():
    """Teste le format d'affichage d'un résultat."""
    song = Song(1, 120, 55, 215, "Song A - Artist 1")

    line = format_neighbor(Neighbor(song, 3 ** 0.5))

    assert line == "Song A - Artist 1 (ID: 1, Tempo: 120, Pitch: 55, Durée: 215s, Distance: 1.73)"
    assert format_neighbor(Neighbor(song, 2.0), decimals=3).endswith("Distance: 2.000)")


def test_format_generic_neighbor():
    """Teste l'affichage d'un élément générique."""
    item = MetricItem("x", (1.5, 2.0), "Point")

    assert format_neighbor(Neighbor(item, 0.0)) == "Point (ID: x, Caractéristiques: [1.5, 2], Distance: 0.00)"


def test_parse_input_line():
    """Teste le découpage des saisies interactives."""
    assert parse_input_line(" 121 56  214 ") == ["121", "56", "214"]
    assert parse_input_line("121,56;214") == ["121", "56", "214"]
    assert parse_input_line("") == []


def test_search_one_shot(config_path, capsys):
    """Teste la recherche ponctuelle sur le catalogue d'exemple."""
    code = main(["--config", config_path, "search",
                 "--tempo", "121", "--pitch", "56", "--duration", "214", "--k", "2"])

    out = capsys.readouterr().out
    assert code == 0
    assert "1. Song A - Artist 1 (ID: 1, Tempo: 120, Pitch: 55, Durée: 215s, Distance: 1.73)" in out
    assert "2. Song I - Artist 9" in out
    assert "3. " not in out


@pytest.mark.parametrize("arguments", [
    ["--tempo", "abc", "--pitch", "56", "--duration", "214"],
    ["--tempo", "121"],
    ["--tempo", "121", "--pitch", "nan", "--duration", "214"],
])
def test_search_invalid_input(config_path, capsys, arguments):
    """Teste le refus d'une saisie invalide ou incomplète."""
    code = main(["--config", config_path, "search"] + arguments)

    assert code == 1
    assert "Saisie invalide" in capsys.readouterr().out


def test_search_invalid_k(config_path, capsys):
    """Teste qu'un k invalide est signalé comme une erreur."""
    code = main(["--config", config_path, "search",
                 "--tempo", "121", "--pitch", "56", "--duration", "214", "--k", "0"])

    assert code == 1
    assert "Saisie invalide" in capsys.readouterr().out


def test_search_interactive(config_path, capsys, monkeypatch):
    """Teste la boucle interactive : saisie invalide, recherche puis sortie."""
    answers = iter(["abc", "121 56 214", "q"])
    monkeypatch.setattr("builtins.input", lambda prompt="": next(answers))

    code = main(["--config", config_path, "search", "--k", "1"])

    out = capsys.readouterr().out
    assert code == 0
    assert "Saisie invalide" in out
    assert "1. Song A - Artist 1" in out
    assert "Au revoir" in out


def test_search_interactive_end_of_input(config_path, capsys, monkeypatch):
    """Teste la sortie propre en fin d'entrée."""
    def raise_eof(prompt=""):
        raise EOFError

    monkeypatch.setattr("builtins.input", raise_eof)

    assert main(["--config", config_path, "search"]) == 0
    assert "Au revoir" in capsys.readouterr().out


def test_search_catalog_file(config_path, tmp_path, capsys):
    """Teste la recherche sur un catalogue YAML."""
    catalog = tmp_path / "catalog.yaml"
    catalog.write_text(
        "- {id: 7, title: Lente, tempo: 60, pitch: 40, duration: 300}\n"
        "- {id: 8, title: Rapide, tempo: 180, pitch: 80, duration: 150}\n",
        encoding="utf-8"
    )

    code = main(["--config", config_path, "search", "--catalog", str(catalog),
                 "--tempo", "170", "--pitch", "75", "--duration", "160", "--k", "1"])

    assert code == 0
    assert "1. Rapide (ID: 8" in capsys.readouterr().out


def test_search_missing_catalog(config_path, tmp_path, capsys):
    """Teste l'erreur sur un catalogue introuvable."""
    code = main(["--config", config_path, "search", "--catalog", str(tmp_path / "absent.yaml"),
                 "--tempo", "1", "--pitch", "2", "--duration", "3"])

    assert code == 1
    assert "❌ Erreur" in capsys.readouterr().out


def test_build_command(config_path, tmp_path, capsys):
    """Teste la construction avec sauvegarde des statistiques."""
    stats_file = tmp_path / "stats.txt"

    code = main(["--config", config_path, "build", "--stats_file", str(stats_file), "--strategy", "legacy"])

    out = capsys.readouterr().out
    assert code == 0
    assert "📊 Statistiques" in out
    assert stats_file.exists()
    assert "legacy" in stats_file.read_text(encoding="utf-8")


def test_test_command(config_path, capsys):
    """Teste l'évaluation des performances sur un petit catalogue aléatoire."""
    code = main(["--config", config_path, "test", "--items", "200", "--queries", "5", "--k", "5", "--no-faiss"])

    out = capsys.readouterr().out
    assert code == 0
    assert "Recall: 100.00%" in out


def test_no_command(config_path, capsys):
    """Teste l'affichage de l'aide sans commande."""
    assert main(["--config", config_path]) == 0
    assert "search" in capsys.readouterr().out


def test_version(capsys):
    """Teste l'option --version."""
    with pytest.raises(SystemExit):
        main(["--version"])
    assert __version__ in capsys.readouterr().out
