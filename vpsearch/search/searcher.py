"""
Module de recherche pour VPSearch.
Recherche exacte des k plus proches voisins dans un arbre VP, avec élagage par inégalité triangulaire.
"""

import heapq
import itertools
import math
import time
from typing import List, Dict, Any, NamedTuple, Optional, Sequence, Tuple

import numpy as np
import faiss
from tqdm.auto import tqdm

from vpsearch.utils.config import ConfigManager
from vpsearch.core.errors import InvalidArgumentError
from vpsearch.core.item import MetricItem
from vpsearch.core.tree import VPTree, VPTreeNode


class Neighbor(NamedTuple):
    """Voisin trouvé : élément et distance à la requête."""
    item: MetricItem
    distance: float


def _check_k(k: Any) -> int:
    if isinstance(k, bool) or not isinstance(k, (int, np.integer)):
        raise InvalidArgumentError(f"k doit être un entier, pas {type(k).__name__}")
    if k < 1:
        raise InvalidArgumentError(f"k doit être >= 1 (reçu {k})")
    return int(k)


class Searcher:
    """
    Classe principale pour la recherche dans un arbre VP.
    L'arbre n'est jamais modifié : un même Searcher peut servir plusieurs threads.
    """

    def __init__(self, tree: VPTree, use_faiss: Optional[bool] = None, config: Optional[Dict[str, Any]] = None):
        """
        Initialise le chercheur.

        Args:
            tree: Arbre VP construit
            use_faiss: Utiliser FAISS pour la recherche naïve de référence (sinon config)
            config: Configuration personnalisée (facultatif, sinon utilise config.yaml)
        """
        if config is None:
            search_config = ConfigManager().get_section("search")
        else:
            search_config = config.get("search", {})

        self.tree = tree
        self.use_faiss = use_faiss if use_faiss is not None else search_config.get("use_faiss", True)

        # Index de la recherche naïve, construit à la première utilisation
        self._items = None
        self._matrix = None
        self._faiss_index = None

    def search_with_stats(self, query: MetricItem, k: int) -> Tuple[List[Neighbor], Dict[str, int]]:
        """
        Recherche les k plus proches voisins et compte les nœuds visités.

        Args:
            query: Élément requête (non inséré dans l'arbre)
            k: Nombre de voisins à retourner (>= 1)

        Returns:
            Tuple[List[Neighbor], Dict[str, int]]: Voisins par distance croissante et statistiques
        """
        if self.tree.is_empty():
            return [], {"visited_nodes": 0}

        k = _check_k(k)

        # Tas max borné : (-distance, ordre d'insertion, élément)
        heap = []
        counter = itertools.count()
        visited = 0

        def worst() -> float:
            # Tant que k candidats ne sont pas réunis, aucune branche ne peut être élaguée
            return -heap[0][0] if len(heap) == k else math.inf

        def search_node(node: Optional[VPTreeNode]) -> None:
            nonlocal visited
            if node is None:
                return
            visited += 1

            distance = query.distance_to(node.vantage)

            if len(heap) < k:
                heapq.heappush(heap, (-distance, next(counter), node.vantage))
            elif distance < -heap[0][0]:
                heapq.heapreplace(heap, (-distance, next(counter), node.vantage))

            if distance < node.radius:
                search_node(node.left)
                if distance + worst() >= node.radius:
                    search_node(node.right)
            else:
                search_node(node.right)
                if distance - worst() <= node.radius:
                    search_node(node.left)

        search_node(self.tree.root)

        results = sorted((Neighbor(item, -neg_distance) for neg_distance, _, item in heap),
                         key=lambda neighbor: neighbor.distance)
        return results, {"visited_nodes": visited}

    def search(self, query: MetricItem, k: int) -> List[Neighbor]:
        """
        Recherche les k plus proches voisins de la requête.

        Args:
            query: Élément requête
            k: Nombre de voisins à retourner (>= 1)

        Returns:
            List[Neighbor]: Au plus k voisins, par distance croissante
        """
        results, _ = self.search_with_stats(query, k)
        return results

    def _prepare_brute_force(self) -> None:
        if self._items is not None:
            return
        self._items = self.tree.items()
        if self._items:
            self._matrix = np.vstack([item.vector for item in self._items])
            if self.use_faiss:
                index = faiss.IndexFlatL2(self._matrix.shape[1])
                index.add(np.ascontiguousarray(self._matrix, dtype=np.float32))
                self._faiss_index = index

    def brute_force_search(self, query: MetricItem, k: int) -> List[Neighbor]:
        """
        Recherche naïve des k plus proches voisins parmi les éléments stockés dans l'arbre.

        Args:
            query: Élément requête
            k: Nombre de voisins à retourner (>= 1)

        Returns:
            List[Neighbor]: Au plus k voisins, par distance croissante
        """
        self._prepare_brute_force()
        if not self._items:
            return []

        k = min(_check_k(k), len(self._items))

        if self._faiss_index is not None:
            _, I = self._faiss_index.search(
                np.ascontiguousarray(query.vector.reshape(1, -1), dtype=np.float32), k)
            indices = [int(idx) for idx in I[0] if idx >= 0]
        else:
            distances = query.distances_to(self._items)
            indices = np.argsort(distances, kind="stable")[:k].tolist()

        # Distances exactes recalculées (FAISS travaille en float32)
        results = [Neighbor(self._items[idx], query.distance_to(self._items[idx])) for idx in indices]
        results.sort(key=lambda neighbor: neighbor.distance)
        return results

    def evaluate_search(self, queries: Sequence[MetricItem], k: int = 10, verbose: bool = True) -> Dict[str, Any]:
        """
        Évalue les performances de l'arbre VP vs recherche naïve.

        Args:
            queries: Éléments requêtes
            k: Nombre de voisins à retourner
            verbose: Afficher la progression et le récapitulatif

        Returns:
            Dict[str, Any]: Dictionnaire de métriques de performance
        """
        k = _check_k(k)
        if len(queries) == 0:
            raise InvalidArgumentError("Au moins une requête est nécessaire pour l'évaluation")

        node_count = self.tree.get_node_count()
        if verbose:
            print(f"\n⏳ Évaluation avec {len(queries)} requêtes, k={k}, {node_count:,} nœuds...")

        # Construire l'index naïf hors chronométrage
        self._prepare_brute_force()

        tree_search_time = 0
        naive_search_time = 0
        recall_sum = 0
        visited_counts = []

        for query in tqdm(queries, desc="Évaluation", disable=not verbose):
            start_time = time.time()
            tree_results, stats = self.search_with_stats(query, k)
            tree_search_time += time.time() - start_time
            visited_counts.append(stats["visited_nodes"])

            start_time = time.time()
            naive_results = self.brute_force_search(query, k)
            naive_search_time += time.time() - start_time

            # Recall sur les distances : un voisin ex aequo n'est pas compté comme manqué
            if naive_results:
                kth = naive_results[-1].distance
                tolerance = 1e-9 + 1e-6 * kth
                found = sum(1 for neighbor in tree_results if neighbor.distance <= kth + tolerance)
                recall_sum += min(found, len(naive_results)) / len(naive_results)
            else:
                recall_sum += 1.0

        n_queries = len(queries)
        avg_tree_time = tree_search_time / n_queries
        avg_naive_time = naive_search_time / n_queries
        avg_recall = recall_sum / n_queries
        speedup = avg_naive_time / avg_tree_time if avg_tree_time > 0 else 0
        avg_visited = sum(visited_counts) / n_queries
        visited_ratio = avg_visited / node_count if node_count > 0 else 0

        if verbose:
            print("\n✓ Résultats de l'évaluation:")
            print(f"  - Nombre de requêtes     : {n_queries}")
            print(f"  - k (voisins demandés)   : {k}")
            print(f"  - Recherche naïve        : {'FAISS' if self._faiss_index is not None else 'numpy'}")
            print(f"  - Nœuds visités (moyenne): {avg_visited:.1f} ({visited_ratio*100:.1f}% de l'arbre)")
            print(f"  - Temps moyen (arbre)    : {avg_tree_time*1000:.3f} ms")
            print(f"  - Temps moyen (naïf)     : {avg_naive_time*1000:.3f} ms")
            print(f"  - Accélération           : {speedup:.2f}x")
            print(f"  - Recall moyen           : {avg_recall:.4f} ({avg_recall*100:.2f}%)")

        return {
            "n_queries": n_queries,
            "k": k,
            "avg_tree_time": avg_tree_time,
            "avg_naive_time": avg_naive_time,
            "speedup": speedup,
            "avg_recall": avg_recall,
            "avg_visited": avg_visited,
            "min_visited": min(visited_counts),
            "max_visited": max(visited_counts),
            "visited_ratio": visited_ratio
        }


def search(tree: VPTree, query: MetricItem, k: int) -> List[Neighbor]:
    """
    Recherche les k plus proches voisins de query dans l'arbre.

    Args:
        tree: Arbre VP construit par build_tree
        query: Élément requête, jamais inséré dans l'arbre
        k: Nombre de voisins à retourner (>= 1)

    Returns:
        List[Neighbor]: Au plus k couples (élément, distance) par distance croissante
    """
    if tree.is_empty():
        return []

    # Configuration vide : pas de lecture de config.yaml à chaque requête
    return Searcher(tree, use_faiss=False, config={}).search(query, k)
