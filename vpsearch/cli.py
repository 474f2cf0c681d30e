"""
Interface en ligne de commande pour VPSearch.
Fournit des commandes pour rechercher des chansons similaires, construire un arbre
et en afficher les statistiques, et tester les performances de la recherche.
"""

import sys
import argparse
from typing import List, Optional

from vpsearch import __version__
from vpsearch.core.tree import STRATEGIES
from vpsearch.utils.config import ConfigManager
from vpsearch.utils.cli_build import build_command
from vpsearch.utils.cli_evaluate import evaluate_command
from vpsearch.utils.cli_search import search_command

def main(argv: Optional[List[str]] = None) -> int:
    """
    Point d'entrée principal pour l'interface en ligne de commande.

    Args:
        argv: Arguments (par défaut sys.argv[1:])

    Returns:
        int: Code de retour (0 pour succès, autre pour erreur)
    """
    # Configuration lue en premier pour fixer les valeurs par défaut des options
    pre_parser = argparse.ArgumentParser(add_help=False)
    pre_parser.add_argument("--config", default=None)
    pre_args, _ = pre_parser.parse_known_args(argv)
    config_manager = ConfigManager(pre_args.config)

    build_config = config_manager.get_section("build_tree")
    search_config = config_manager.get_section("search")
    test_config = config_manager.get_section("test")

    # Parseur principal
    parser = argparse.ArgumentParser(
        description="VPSearch - Recherche des k plus proches voisins par arbre VP",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    parser.add_argument("--config", default=config_manager.config_path,
                        help="Chemin vers le fichier de configuration")
    parser.add_argument("--version", action="version", version=f"VPSearch v{__version__}")

    subparsers = parser.add_subparsers(dest="command", help="Commandes disponibles")

    # Commande search
    search_parser = subparsers.add_parser("search", help="Rechercher les chansons les plus proches")
    search_parser.add_argument("--catalog", default=None,
                         help="Catalogue YAML à indexer (par défaut: catalogue d'exemple)")
    search_parser.add_argument("--tempo", default=None, help="Tempo de la requête")
    search_parser.add_argument("--pitch", default=None, help="Pitch de la requête")
    search_parser.add_argument("--duration", default=None, help="Durée de la requête (secondes)")
    search_parser.add_argument("--k", type=int, default=search_config["k"],
                         help="Nombre de résultats à afficher")
    search_parser.add_argument("--seed", type=int, default=build_config["seed"],
                         help="Graine du choix aléatoire des points de vue")
    search_parser.add_argument("--strategy", choices=STRATEGIES, default=build_config["strategy"],
                         help="Stratégie de partition à la construction")
    search_parser.set_defaults(func=search_command)

    # Commande build
    build_parser = subparsers.add_parser("build", help="Construire l'arbre et afficher ses statistiques")
    build_parser.add_argument("--catalog", default=None,
                       help="Catalogue YAML à indexer (par défaut: catalogue d'exemple)")
    build_parser.add_argument("--stats_file", default=None,
                       help="Fichier texte où sauvegarder les statistiques")
    build_parser.add_argument("--seed", type=int, default=build_config["seed"],
                       help="Graine du choix aléatoire des points de vue")
    build_parser.add_argument("--strategy", choices=STRATEGIES, default=build_config["strategy"],
                       help="Stratégie de partition à la construction")
    build_parser.add_argument("--max_workers", type=int, default=build_config["max_workers"],
                       help="Workers joblib pour les sous-arbres de la racine")
    build_parser.set_defaults(func=build_command)

    # Commande test
    test_parser = subparsers.add_parser("test", help="Tester la performance de la recherche")
    test_parser.add_argument("--items", type=int, default=test_config["items"],
                       help="Nombre de chansons aléatoires à indexer")
    test_parser.add_argument("--queries", type=int, default=test_config["queries"],
                       help="Nombre de requêtes aléatoires à effectuer")
    test_parser.add_argument("--k", type=int, default=test_config["k"],
                       help="Nombre de voisins à retourner")
    test_parser.add_argument("--seed", type=int, default=test_config["seed"],
                       help="Graine des données et de la construction")
    test_parser.add_argument("--strategy", choices=STRATEGIES, default=build_config["strategy"],
                       help="Stratégie de partition à la construction")
    test_parser.add_argument("--max_workers", type=int, default=build_config["max_workers"],
                       help="Workers joblib pour les sous-arbres de la racine")
    test_parser.add_argument("--use_faiss", action="store_true", default=search_config["use_faiss"],
                       help="Utiliser FAISS pour la recherche naïve de référence")
    test_parser.add_argument("--no-faiss", dest="use_faiss", action="store_false",
                       help="Utiliser numpy pour la recherche naïve de référence")
    test_parser.set_defaults(func=evaluate_command)

    args = parser.parse_args(argv)

    if hasattr(args, "func"):
        return args.func(args)
    else:
        parser.print_help()
        return 0

if __name__ == "__main__":
    sys.exit(main())
