"""
Module pour la construction d'arbres VP en ligne de commande.
Construit l'arbre sur un catalogue et affiche ou sauvegarde ses statistiques.
"""

import time
import datetime
import argparse

from vpsearch.utils.config import ConfigManager
from vpsearch.io.reader import load_catalog
from vpsearch.builder.builder import build_tree

def format_time(seconds: float) -> str:
    """Formate le temps en heures, minutes, secondes."""
    return str(datetime.timedelta(seconds=int(seconds)))

def build_command(args: argparse.Namespace) -> int:
    """
    Commande pour construire un arbre VP et en afficher les statistiques.

    Args:
        args: Arguments de ligne de commande

    Returns:
        int: Code de retour (0 pour succès, autre pour erreur)
    """
    config_manager = ConfigManager(args.config)
    catalog_path = args.catalog or config_manager.get_file_path("catalog")

    total_start_time = time.time()

    try:
        print(f"🚀 Construction d'un arbre VP...")
        print(f"  - Catalogue: {catalog_path or 'exemple intégré'}")
        print(f"  - Stratégie: {args.strategy}")
        print(f"  - Graine: {args.seed}")
        print(f"  - Workers: {args.max_workers}")

        items = load_catalog(catalog_path, verbose=True)
        tree = build_tree(
            items,
            seed=args.seed,
            strategy=args.strategy,
            max_workers=args.max_workers,
            config=config_manager.config,
            verbose=True
        )
        tree.validate()

        stats = tree.get_statistics()
        print("\n📊 Statistiques de l'arbre:")
        if "error" in stats:
            print(f"  → {stats['error']}")
        else:
            print(f"  → Nœuds: {stats['node_count']:,}")
            print(f"  → Feuilles: {stats['leaf_count']:,}")
            print(f"  → Profondeur: {stats['max_depth']}")
            print(f"  → Rayon moyen: {stats['avg_radius']:.4f}")
            print(f"  → Éléments distincts: {stats['distinct_items']:,} / {stats['input_size']:,}")

        if args.stats_file:
            tree.save_statistics(args.stats_file)
            print(f"✓ Statistiques sauvegardées dans {args.stats_file}")

        total_time = time.time() - total_start_time
        print(f"\n✓ Construction terminée en {format_time(total_time)}")

        print("\nPour rechercher dans ce catalogue :")
        print(f"  python -m vpsearch.cli search --tempo 121 --pitch 56 --duration 214 --config {args.config}")

    except Exception as e:
        print(f"\n❌ Erreur: {str(e)}")
        import traceback
        traceback.print_exc()
        return 1

    return 0
