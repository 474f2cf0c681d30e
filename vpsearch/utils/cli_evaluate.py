"""
Module pour les tests de performance.
Compare la recherche dans l'arbre VP à la recherche naïve sur un catalogue aléatoire.
"""

import time
import datetime
import argparse
from typing import Dict, List, Sequence

import numpy as np

from vpsearch.utils.config import ConfigManager
from vpsearch.core.item import Song, SONG_FEATURES
from vpsearch.builder.builder import build_tree
from vpsearch.search.searcher import Searcher

def format_time(seconds: float) -> str:
    """Formate le temps en heures, minutes, secondes."""
    return str(datetime.timedelta(seconds=int(seconds)))

def random_songs(n: int, rng: np.random.Generator, feature_ranges: Dict[str, Sequence[float]],
                 first_id: int = 1, prefix: str = "Song") -> List[Song]:
    """
    Génère des chansons aux caractéristiques uniformément réparties.

    Args:
        n: Nombre de chansons
        rng: Générateur aléatoire
        feature_ranges: Bornes [min, max] par caractéristique
        first_id: Identifiant de la première chanson
        prefix: Préfixe des titres

    Returns:
        List[Song]: Chansons générées
    """
    columns = [rng.uniform(*feature_ranges[name], size=n) for name in SONG_FEATURES]
    return [
        Song(first_id + i, float(tempo), float(pitch), float(duration), f"{prefix} {first_id + i}")
        for i, (tempo, pitch, duration) in enumerate(zip(*columns))
    ]

def evaluate_command(args: argparse.Namespace) -> int:
    """
    Commande pour tester les performances de recherche dans un arbre VP.

    Args:
        args: Arguments de ligne de commande

    Returns:
        int: Code de retour (0 pour succès, autre pour erreur)
    """
    config_manager = ConfigManager(args.config)
    test_config = config_manager.get_section("test")

    total_start_time = time.time()

    try:
        print(f"🔍 Test de l'arbre VP...")
        print(f"  - Éléments: {args.items:,}")
        print(f"  - Requêtes de test: {args.queries}")
        print(f"  - K (nombre de voisins): {args.k}")
        print(f"  - Stratégie: {args.strategy}")
        print(f"  - Recherche naïve: {'FAISS' if args.use_faiss else 'numpy'}")

        # Pour des résultats reproductibles
        rng = np.random.default_rng(args.seed)
        feature_ranges = test_config["feature_ranges"]

        print(f"⏳ Génération de {args.items:,} chansons aléatoires...")
        songs = random_songs(args.items, rng, feature_ranges)
        queries = random_songs(args.queries, rng, feature_ranges, first_id=0, prefix="Requête")
        print(f"✓ {len(songs):,} chansons et {len(queries)} requêtes générées")

        tree = build_tree(
            songs,
            seed=args.seed,
            strategy=args.strategy,
            max_workers=args.max_workers,
            config=config_manager.config,
            verbose=True
        )

        searcher = Searcher(tree, use_faiss=args.use_faiss, config=config_manager.config)
        results = searcher.evaluate_search(queries, k=args.k)

        total_time = time.time() - total_start_time
        print(f"\n✓ Évaluation terminée en {format_time(total_time)}")
        print(f"  → Recall: {results['avg_recall']*100:.2f}%")
        print(f"  → Accélération: {results['speedup']:.2f}x plus rapide que la recherche naïve")
        print(f"  → Nœuds visités: {results['visited_ratio']*100:.1f}% de l'arbre en moyenne")

        if args.strategy == "legacy":
            stats = tree.get_statistics()
            print(f"\n⚠️ Stratégie legacy: {stats['dropped_items']:,} éléments perdus à la construction")

    except Exception as e:
        print(f"\n❌ Erreur: {str(e)}")
        import traceback
        traceback.print_exc()
        return 1

    return 0
