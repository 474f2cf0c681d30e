"""
Module pour la recherche de chansons similaires en ligne de commande.
Fournit une recherche ponctuelle (caractéristiques en arguments) ou interactive dans un terminal.
"""

import re
import time
import argparse
from typing import List, Dict, Optional, Tuple

from vpsearch.utils.config import ConfigManager
from vpsearch.core.errors import InvalidArgumentError
from vpsearch.core.item import Song
from vpsearch.io.reader import load_catalog, make_query
from vpsearch.builder.builder import build_tree
from vpsearch.search.searcher import Searcher, Neighbor

def _format_value(value: float):
    return int(value) if float(value).is_integer() else value

def format_neighbor(neighbor: Neighbor, decimals: int = 2) -> str:
    """
    Formate un voisin sur une ligne lisible.

    Args:
        neighbor: Couple (élément, distance)
        decimals: Nombre de décimales pour la distance

    Returns:
        str: Ligne formatée
    """
    item, distance = neighbor
    if isinstance(item, Song):
        details = (f"ID: {item.item_id}, Tempo: {_format_value(item.tempo)}, "
                   f"Pitch: {_format_value(item.pitch)}, Durée: {_format_value(item.duration)}s")
    else:
        features = ", ".join(str(_format_value(value)) for value in item.features)
        details = f"ID: {item.item_id}, Caractéristiques: [{features}]"
    return f"{item.title} ({details}, Distance: {distance:.{decimals}f})"

def format_results(results: List[Neighbor], timings: Dict[str, float], decimals: int = 2) -> str:
    """
    Formate les résultats de recherche pour l'affichage en terminal.

    Args:
        results: Liste des voisins trouvés
        timings: Dictionnaire des temps d'exécution
        decimals: Nombre de décimales pour les distances

    Returns:
        str: Résultats formatés
    """
    output = []

    output.append("\n🕒 Temps:")
    output.append(f"  → Recherche arbre: {timings['search']*1000:.3f} ms")
    output.append(f"  → Nœuds visités  : {timings['visited_nodes']}")

    output.append("\n📋 Résultats:")
    if not results:
        output.append("  (aucun résultat)")
    for i, neighbor in enumerate(results, 1):
        output.append(f"{i}. {format_neighbor(neighbor, decimals)}")

    return "\n".join(output)

def search_once(searcher: Searcher, values, k: int) -> Tuple[List[Neighbor], Dict[str, float]]:
    """
    Effectue une seule recherche.

    Args:
        searcher: Chercheur VPSearch
        values: tempo, pitch et duration bruts (validés ici)
        k: Nombre de résultats à retourner

    Returns:
        Tuple[List[Neighbor], Dict[str, float]]: Résultats et timings
    """
    query = make_query(values)

    start = time.time()
    results, stats = searcher.search_with_stats(query, k)
    elapsed = time.time() - start

    return results, {"search": elapsed, "visited_nodes": stats["visited_nodes"]}

def parse_input_line(line: str) -> List[str]:
    """Découpe une saisie 'tempo pitch durée' (espaces, virgules ou points-virgules)."""
    return [part for part in re.split(r"[\s,;]+", line.strip()) if part]

def search_interactive(searcher: Searcher, k: int) -> Tuple[Optional[List[Neighbor]], Optional[Dict[str, float]]]:
    """
    Effectue une recherche interactive.

    Args:
        searcher: Chercheur VPSearch
        k: Nombre de résultats à retourner

    Returns:
        Tuple: Résultats et timings, (None, None) pour quitter
    """
    while True:
        try:
            line = input("\nTempo, pitch et durée (q pour quitter): ")
        except EOFError:
            return None, None

        if line.strip().lower() in ['q', 'quit', 'exit']:
            return None, None

        try:
            return search_once(searcher, parse_input_line(line), k)
        except InvalidArgumentError as e:
            print(f"⚠️ Saisie invalide: {e}")
            print("   Veuillez saisir des valeurs valides pour toutes les caractéristiques.")

def search_command(args: argparse.Namespace) -> int:
    """
    Commande pour rechercher les chansons les plus proches d'une requête.

    Args:
        args: Arguments de ligne de commande

    Returns:
        int: Code de retour (0 pour succès, autre pour erreur)
    """
    config_manager = ConfigManager(args.config)
    decimals = config_manager.get("search", "decimals", 2)
    catalog_path = args.catalog or config_manager.get_file_path("catalog")

    given = [value is not None for value in (args.tempo, args.pitch, args.duration)]

    try:
        print(f"🔍 Recherche VPSearch...")
        print(f"  - Catalogue: {catalog_path or 'exemple intégré'}")
        print(f"  - K (nombre de résultats): {args.k}")
        print(f"  - Stratégie: {args.strategy}")

        items = load_catalog(catalog_path, verbose=True)
        tree = build_tree(items, seed=args.seed, strategy=args.strategy,
                          config=config_manager.config, verbose=True)
        searcher = Searcher(tree, use_faiss=False, config=config_manager.config)

        if any(given):
            # Recherche ponctuelle
            try:
                results, timings = search_once(
                    searcher,
                    {"tempo": args.tempo, "pitch": args.pitch, "duration": args.duration},
                    args.k
                )
            except InvalidArgumentError as e:
                print(f"⚠️ Saisie invalide: {e}")
                return 1
            print(format_results(results, timings, decimals))
            return 0

        print(f"\n💬 Recherche interactive VPSearch")
        print(f"  → Saisissez tempo, pitch et durée puis appuyez sur Entrée")
        print(f"  → Tapez 'q' pour quitter")

        try:
            while True:
                results, timings = search_interactive(searcher, k=args.k)

                if results is None:
                    print("\n👋 Au revoir!")
                    break

                print(format_results(results, timings, decimals))
        except KeyboardInterrupt:
            print("\n👋 Recherche interrompue. Au revoir!")

    except Exception as e:
        print(f"\n❌ Erreur: {str(e)}")
        import traceback
        traceback.print_exc()
        return 1

    return 0
