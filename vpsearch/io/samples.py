"""
Catalogue d'exemple : dix chansons décrites par tempo, pitch et durée (secondes).
"""

from typing import List

from vpsearch.core.item import Song

SAMPLE_SONGS = (
    (1, 120, 55, 215, "Song A - Artist 1"),
    (2, 128, 60, 180, "Song B - Artist 2"),
    (3, 115, 50, 200, "Song C - Artist 3"),
    (4, 130, 65, 220, "Song D - Artist 4"),
    (5, 110, 45, 240, "Song E - Artist 5"),
    (6, 140, 70, 190, "Song F - Artist 6"),
    (7, 118, 52, 195, "Song G - Artist 7"),
    (8, 125, 58, 175, "Song H - Artist 8"),
    (9, 122, 57, 205, "Song I - Artist 9"),
    (10, 132, 63, 210, "Song J - Artist 10"),
)

def load_sample_songs() -> List[Song]:
    """Retourne les chansons du catalogue d'exemple."""
    return [Song(*row) for row in SAMPLE_SONGS]
