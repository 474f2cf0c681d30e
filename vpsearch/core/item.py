"""
Module des éléments métriques pour VPSearch.
Définit les vecteurs de caractéristiques immuables indexés par l'arbre VP.
"""

import numpy as np
from typing import Any, Iterable, Sequence, Tuple

from vpsearch.core.errors import InvalidArgumentError

# Caractéristiques d'une chanson, dans l'ordre du vecteur
SONG_FEATURES = ("tempo", "pitch", "duration")


def _euclidean(diff: np.ndarray) -> np.ndarray:
    # Somme colonne par colonne : même ordre d'addition pour un couple et pour un lot,
    # donc des distances identiques au bit près
    squared = diff * diff
    total = squared[..., 0]
    for j in range(1, squared.shape[-1]):
        total = total + squared[..., j]
    return np.sqrt(total)


class MetricItem:
    """
    Élément d'un espace métrique : identifiant, titre et vecteur de caractéristiques.
    Immuable après création.
    """

    __slots__ = ("_item_id", "_title", "_features", "_vector")

    def __init__(self, item_id: Any, features: Iterable[float], title: str = ""):
        """
        Initialise un élément métrique.

        Args:
            item_id: Identifiant opaque de l'élément
            features: Valeurs numériques des caractéristiques (supposées finies)
            title: Libellé lisible de l'élément
        """
        features = tuple(float(value) for value in features)
        if not features:
            raise InvalidArgumentError("Au moins une caractéristique est nécessaire")
        self._set_fields(item_id, title, features)

    def _set_fields(self, item_id: Any, title: str, features: Tuple[float, ...]) -> None:
        vector = np.array(features, dtype=np.float64)
        vector.setflags(write=False)

        object.__setattr__(self, "_item_id", item_id)
        object.__setattr__(self, "_title", title)
        object.__setattr__(self, "_features", features)
        object.__setattr__(self, "_vector", vector)

    def __setattr__(self, name, value):
        raise AttributeError(f"{type(self).__name__} est immuable")

    def __delattr__(self, name):
        raise AttributeError(f"{type(self).__name__} est immuable")

    # Sérialisation pour les workers joblib : la classe de l'élément est conservée
    def __getstate__(self):
        return (self._item_id, self._title, self._features, getattr(self, "__dict__", None))

    def __setstate__(self, state):
        item_id, title, features, extra = state
        self._set_fields(item_id, title, features)
        if extra:
            self.__dict__.update(extra)

    @property
    def item_id(self) -> Any:
        return self._item_id

    @property
    def title(self) -> str:
        return self._title

    @property
    def features(self) -> Tuple[float, ...]:
        return self._features

    @property
    def vector(self) -> np.ndarray:
        """Vecteur numpy en lecture seule des caractéristiques."""
        return self._vector

    @property
    def dims(self) -> int:
        return len(self._features)

    def _check_dims(self, other: "MetricItem") -> None:
        if other.dims != self.dims:
            raise InvalidArgumentError(
                f"Dimensions incompatibles: {self.dims} != {other.dims}"
            )

    def distance_to(self, other: "MetricItem") -> float:
        """
        Calcule la distance euclidienne à un autre élément.

        Args:
            other: Élément de même dimension

        Returns:
            float: Distance euclidienne (symétrique, positive ou nulle)
        """
        self._check_dims(other)
        return float(_euclidean(self._vector - other._vector))

    def distances_to(self, items: Sequence["MetricItem"]) -> np.ndarray:
        """
        Calcule les distances euclidiennes vers une liste d'éléments en une passe numpy.

        Args:
            items: Éléments de même dimension

        Returns:
            np.ndarray: Distances alignées avec items
        """
        if len(items) == 0:
            return np.empty(0, dtype=np.float64)
        for item in items:
            self._check_dims(item)
        matrix = np.vstack([item._vector for item in items])
        return _euclidean(matrix - self._vector)

    def __eq__(self, other) -> bool:
        if not isinstance(other, MetricItem):
            return NotImplemented
        return (self._item_id == other._item_id
                and self._title == other._title
                and self._features == other._features)

    def __hash__(self) -> int:
        return hash((self._item_id, self._title, self._features))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self._item_id!r}, features={self._features}, title={self._title!r})"


class Song(MetricItem):
    """Chanson décrite par son tempo, sa hauteur (pitch) et sa durée."""

    __slots__ = ()

    def __init__(self, item_id: Any, tempo: float, pitch: float, duration: float, title: str = ""):
        super().__init__(item_id, (tempo, pitch, duration), title)

    @property
    def tempo(self) -> float:
        return self.features[0]

    @property
    def pitch(self) -> float:
        return self.features[1]

    @property
    def duration(self) -> float:
        return self.features[2]

    def __repr__(self) -> str:
        return (f"Song(id={self.item_id!r}, tempo={self.tempo}, pitch={self.pitch}, "
                f"duration={self.duration}, title={self.title!r})")
