"""
Constructeur d'arbres VP.
Partition récursive autour d'un point de vue tiré au hasard et de la distance médiane.
"""

import time
from collections import Counter
from typing import Optional, Dict, Any, List, Sequence, Tuple

import numpy as np
from joblib import Parallel, delayed

from vpsearch.utils.config import ConfigManager
from vpsearch.core.errors import InvalidArgumentError
from vpsearch.core.item import MetricItem
from vpsearch.core.tree import VPTree, VPTreeNode, STRATEGIES

def split_items(items: Sequence[MetricItem], rng: np.random.Generator,
                strategy: str = "standard") -> Tuple[MetricItem, float, List[MetricItem], List[MetricItem]]:
    """
    Choisit un point de vue et partitionne les éléments autour de la distance médiane.

    Avec la stratégie "standard", le point de vue est retiré avant la partition et
    tous les autres éléments se retrouvent dans exactement un des deux sous-ensembles.
    Avec la stratégie "legacy", le point de vue reste dans la liste des distances
    (distance 0) et l'élément à l'indice médian n'est conservé d'aucun côté.

    Args:
        items: Éléments du sous-ensemble courant (non vide)
        rng: Générateur aléatoire pour le choix du point de vue
        strategy: "standard" ou "legacy"

    Returns:
        Tuple: (point de vue, rayon, éléments de gauche, éléments de droite)
    """
    vantage_index = int(rng.integers(len(items)))
    vantage = items[vantage_index]

    if strategy == "legacy":
        candidates = list(items)
    else:
        candidates = list(items[:vantage_index]) + list(items[vantage_index + 1:])

    if not candidates:
        return vantage, 0.0, [], []

    distances = vantage.distances_to(candidates)
    # Tri stable : à distance égale, l'ordre d'entrée est conservé
    order = np.argsort(distances, kind="stable")

    median_index = len(candidates) // 2
    radius = float(distances[order[median_index]])

    left = [candidates[i] for i in order[:median_index]]
    if strategy == "legacy":
        right = [candidates[i] for i in order[median_index + 1:]]
    else:
        right = [candidates[i] for i in order[median_index:]]

    return vantage, radius, left, right

def build_tree_node(items: Sequence[MetricItem], rng: np.random.Generator,
                    strategy: str = "standard", level: int = 0) -> Optional[VPTreeNode]:
    """
    Construit récursivement un nœud de l'arbre VP.

    Args:
        items: Éléments assignés à ce nœud
        rng: Générateur aléatoire (consommé dans l'ordre nœud, gauche, droite)
        strategy: "standard" ou "legacy"
        level: Niveau actuel dans l'arbre

    Returns:
        Optional[VPTreeNode]: Le nœud construit, ou None pour un sous-ensemble vide
    """
    if len(items) == 0:
        return None

    vantage, radius, left_items, right_items = split_items(items, rng, strategy)

    return VPTreeNode(
        vantage,
        radius,
        build_tree_node(left_items, rng, strategy, level + 1),
        build_tree_node(right_items, rng, strategy, level + 1),
        level
    )

def build_tree(
    items: Sequence[MetricItem],
    seed: Optional[int] = None,
    strategy: Optional[str] = None,
    max_workers: Optional[int] = None,
    parallel_min_size: Optional[int] = None,
    config: Optional[Dict[str, Any]] = None,
    verbose: bool = False
) -> VPTree:
    """
    Construit un arbre VP à partir d'une collection finie d'éléments.

    La racine est partitionnée dans le processus appelant. Les deux sous-arbres
    reçoivent chacun un générateur dérivé de celui de la racine, ce qui rend
    l'arbre identique pour une graine donnée, qu'ils soient construits
    séquentiellement ou en parallèle avec joblib.

    Args:
        items: Éléments à indexer (collection éventuellement vide)
        seed: Graine du générateur aléatoire (facultatif)
        strategy: "standard" ou "legacy" (facultatif, sinon config)
        max_workers: Nombre de workers joblib pour les sous-arbres de la racine,
                     1 pour une construction séquentielle, -1 pour tous les cœurs
        parallel_min_size: Taille minimale de la collection pour paralléliser
        config: Configuration personnalisée (facultatif, sinon utilise config.yaml)
        verbose: Afficher les messages de progression

    Returns:
        VPTree: L'arbre construit
    """
    # 1. Charger la configuration
    if config is None:
        build_config = ConfigManager().get_section("build_tree")
    else:
        build_config = config.get("build_tree", {})

    # 2. Utiliser les paramètres explicites ou les valeurs de configuration
    seed = seed if seed is not None else build_config.get("seed")
    strategy = strategy if strategy is not None else build_config.get("strategy", "standard")
    max_workers = max_workers if max_workers is not None else build_config.get("max_workers", 1)
    parallel_min_size = parallel_min_size if parallel_min_size is not None else build_config.get("parallel_min_size", 2000)

    if strategy not in STRATEGIES:
        raise InvalidArgumentError(f"Stratégie de construction inconnue: {strategy!r} (attendu: {', '.join(STRATEGIES)})")

    items = list(items)
    if not items:
        if verbose:
            print("⚠️ Aucun élément fourni, arbre vide")
        return VPTree(None, strategy=strategy, input_size=0)

    if verbose:
        print(f"⏳ Construction de l'arbre VP sur {len(items):,} éléments "
              f"(stratégie={strategy}, seed={seed}, max_workers={max_workers})...")
    start_time = time.time()

    rng = np.random.default_rng(seed)

    # 3. Partition de la racine
    vantage, radius, left_items, right_items = split_items(items, rng, strategy)
    left_rng, right_rng = [np.random.default_rng(int(s)) for s in rng.integers(0, 2**32, size=2)]

    # 4. Construction des deux sous-arbres
    if max_workers != 1 and len(items) >= parallel_min_size:
        if verbose:
            print(f"  → Construction parallèle des sous-arbres avec {max_workers} workers...")
        left, right = Parallel(n_jobs=max_workers)(
            delayed(build_tree_node)(subset, child_rng, strategy, 1)
            for subset, child_rng in ((left_items, left_rng), (right_items, right_rng))
        )
    else:
        left = build_tree_node(left_items, left_rng, strategy, 1)
        right = build_tree_node(right_items, right_rng, strategy, 1)

    tree = VPTree(VPTreeNode(vantage, radius, left, right, 0), strategy=strategy,
                  input_size=len(items), input_counts=Counter(items))

    if verbose:
        elapsed = time.time() - start_time
        stats = tree.get_statistics()
        print(f"✓ Construction de l'arbre VP terminée en {elapsed:.2f}s")
        print(f"  → Nœuds                : {stats['node_count']:,}")
        print(f"  → Feuilles             : {stats['leaf_count']:,}")
        print(f"  → Profondeur maximale  : {stats['max_depth']}")
        print(f"  → Profondeur moy feuille: {stats['avg_leaf_depth']:.1f}")
        if stats["dropped_items"] or stats["duplicated_vantages"]:
            print(f"  ⚠️ {stats['dropped_items']} éléments perdus, "
                  f"{stats['duplicated_vantages']} points de vue dupliqués (stratégie {strategy})")

    return tree
