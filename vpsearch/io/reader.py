"""
Module de lecture des catalogues et des requêtes pour VPSearch.
Toute valeur entre dans le cœur par ici : les caractéristiques sont validées une seule fois, à la frontière.
"""

import math
import os
import time
from typing import Any, List, Mapping, Optional, Sequence, Tuple, Union

import yaml

from vpsearch.core.errors import InvalidArgumentError
from vpsearch.core.item import MetricItem, Song, SONG_FEATURES
from vpsearch.io.samples import load_sample_songs

def parse_feature(name: str, value: Any) -> float:
    """
    Convertit une valeur de caractéristique en flottant fini.

    Args:
        name: Nom de la caractéristique (pour le message d'erreur)
        value: Valeur brute (nombre ou chaîne)

    Returns:
        float: Valeur convertie
    """
    if value is None or isinstance(value, bool):
        raise InvalidArgumentError(f"Valeur manquante ou invalide pour '{name}': {value!r}")
    if isinstance(value, str):
        value = value.strip()
        if not value:
            raise InvalidArgumentError(f"Valeur manquante pour '{name}'")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidArgumentError(f"Valeur non numérique pour '{name}': {value!r}") from None
    if not math.isfinite(number):
        raise InvalidArgumentError(f"Valeur non finie pour '{name}': {value!r}")
    return number

def parse_features(values: Union[Mapping[str, Any], Sequence[Any]],
                   names: Sequence[str] = SONG_FEATURES) -> Tuple[float, ...]:
    """
    Valide un ensemble de caractéristiques.

    Args:
        values: Dictionnaire {nom: valeur} ou séquence ordonnée de valeurs
        names: Noms attendus, dans l'ordre du vecteur

    Returns:
        Tuple[float, ...]: Caractéristiques validées
    """
    if isinstance(values, Mapping):
        missing = [name for name in names if name not in values]
        if missing:
            raise InvalidArgumentError(f"Caractéristiques manquantes: {', '.join(missing)}")
        return tuple(parse_feature(name, values[name]) for name in names)

    if isinstance(values, (str, bytes)) or not isinstance(values, Sequence):
        raise InvalidArgumentError(f"Caractéristiques attendues sous forme de liste ou de dictionnaire, pas {type(values).__name__}")
    if len(values) != len(names):
        raise InvalidArgumentError(f"{len(names)} caractéristiques attendues ({', '.join(names)}), {len(values)} reçues")
    return tuple(parse_feature(name, value) for name, value in zip(names, values))

def make_query(values: Union[Mapping[str, Any], Sequence[Any]]) -> Song:
    """
    Construit la chanson requête transitoire à partir de valeurs saisies.

    Args:
        values: tempo, pitch et duration (dictionnaire ou séquence)

    Returns:
        Song: Chanson requête (ID 0), jamais insérée dans l'arbre
    """
    tempo, pitch, duration = parse_features(values, SONG_FEATURES)
    return Song(0, tempo, pitch, duration, "Requête")

def _parse_entry(position: int, entry: Any) -> MetricItem:
    if not isinstance(entry, Mapping):
        raise InvalidArgumentError(f"Entrée {position}: dictionnaire attendu, pas {type(entry).__name__}")
    if "id" not in entry:
        raise InvalidArgumentError(f"Entrée {position}: champ 'id' manquant")

    item_id = entry["id"]
    title = str(entry.get("title", ""))

    try:
        if "features" in entry:
            raw = entry["features"]
            if isinstance(raw, (str, bytes)) or not isinstance(raw, Sequence) or len(raw) == 0:
                raise InvalidArgumentError("'features' doit être une liste non vide")
            names = [f"features[{i}]" for i in range(len(raw))]
            return MetricItem(item_id, parse_features(raw, names), title)

        tempo, pitch, duration = parse_features(entry, SONG_FEATURES)
    except InvalidArgumentError as e:
        raise InvalidArgumentError(f"Entrée {position} (id={item_id!r}): {e}") from None

    return Song(item_id, tempo, pitch, duration, title)

def read_items(file_path: str, verbose: bool = False) -> List[MetricItem]:
    """
    Lit un catalogue YAML d'éléments.

    Format: une liste de dictionnaires avec 'id', 'title' et soit les champs
    'tempo', 'pitch', 'duration', soit une liste 'features'. La liste peut aussi
    être placée sous une clé 'items'.

    Args:
        file_path: Chemin du fichier YAML
        verbose: Afficher les messages de progression

    Returns:
        List[MetricItem]: Éléments du catalogue, dans l'ordre du fichier
    """
    if verbose:
        print(f"⏳ Chargement du catalogue depuis {file_path}...")
    start_time = time.time()

    with open(file_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if isinstance(data, Mapping):
        if "items" not in data:
            raise InvalidArgumentError(f"Catalogue {file_path}: clé 'items' manquante (clés trouvées: {', '.join(map(str, data))})")
        data = data["items"]
    if data is None:
        data = []
    if not isinstance(data, list):
        raise InvalidArgumentError(f"Catalogue {file_path}: liste d'éléments attendue")

    items = [_parse_entry(position, entry) for position, entry in enumerate(data)]

    dims = {item.dims for item in items}
    if len(dims) > 1:
        raise InvalidArgumentError(f"Catalogue {file_path}: dimensions hétérogènes {sorted(dims)}")

    if verbose:
        elapsed = time.time() - start_time
        print(f"✓ {len(items):,} éléments chargés depuis {os.path.basename(file_path)} [terminé en {elapsed:.2f}s]")

    return items

def load_catalog(file_path: Optional[str] = None, verbose: bool = False) -> List[MetricItem]:
    """
    Charge le catalogue à indexer : fichier YAML s'il est fourni, sinon le catalogue d'exemple.

    Args:
        file_path: Chemin du catalogue YAML (facultatif)
        verbose: Afficher les messages de progression

    Returns:
        List[MetricItem]: Éléments à indexer
    """
    if file_path:
        return read_items(file_path, verbose=verbose)

    songs = load_sample_songs()
    if verbose:
        print(f"✓ Catalogue d'exemple: {len(songs)} chansons")
    return songs
