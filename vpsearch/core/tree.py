"""
Module de structures d'arbre pour VPSearch.
Définit les nœuds et l'arbre VP (vantage-point tree) construits une fois puis lus seulement.
"""

from collections import Counter
from typing import List, Any, Optional, Dict

from vpsearch.core.item import MetricItem

STRATEGIES = ("standard", "legacy")


class VPTreeNode:
    """
    Nœud de l'arbre VP.
    Contient un point de vue (vantage), un rayon de partition et deux enfants optionnels.
    """

    __slots__ = ("vantage", "radius", "left", "right", "level")

    def __init__(self, vantage: MetricItem, radius: float,
                 left: Optional["VPTreeNode"] = None,
                 right: Optional["VPTreeNode"] = None,
                 level: int = 0):
        """
        Initialise un nœud d'arbre VP.

        Args:
            vantage: Élément de référence du nœud
            radius: Distance médiane séparant les deux sous-arbres
            left: Sous-arbre des éléments à distance <= radius (optionnel)
            right: Sous-arbre des éléments à distance >= radius (optionnel)
            level: Niveau du nœud dans l'arbre (0 = racine)
        """
        self.vantage = vantage
        self.radius = radius
        self.left = left
        self.right = right
        self.level = level

    def is_leaf(self) -> bool:
        """
        Vérifie si ce nœud est une feuille.

        Returns:
            bool: True si le nœud n'a aucun enfant
        """
        return self.left is None and self.right is None

    def children(self) -> List["VPTreeNode"]:
        """Enfants présents, gauche puis droite."""
        return [child for child in (self.left, self.right) if child is not None]

    def get_size(self) -> int:
        """
        Calcule la taille du sous-arbre enraciné à ce nœud.

        Returns:
            int: Nombre total de nœuds dans le sous-arbre
        """
        size = 1
        for child in self.children():
            size += child.get_size()
        return size

    def __str__(self) -> str:
        """Représentation sous forme de chaîne pour le débogage."""
        kind = "Leaf" if self.is_leaf() else "Node"
        return f"{kind}(level={self.level}, vantage={self.vantage.item_id!r}, radius={self.radius:.4f})"


class VPTree:
    """
    Classe principale pour l'arbre VP.
    Construit une fois par vpsearch.builder, puis partagé en lecture seule entre les recherches.
    """

    def __init__(self, root: Optional[VPTreeNode] = None, strategy: str = "standard", input_size: int = 0,
                 input_counts: Optional[Counter] = None):
        """
        Initialise un arbre VP.

        Args:
            root: Nœud racine de l'arbre (None pour un arbre vide)
            strategy: Stratégie de partition utilisée à la construction ("standard" ou "legacy")
            input_size: Nombre d'éléments fournis à la construction
            input_counts: Occurrences de chaque élément fourni (égalité par valeur).
                          Si None, chaque élément fourni est supposé distinct.
        """
        self.root = root
        self.strategy = strategy
        self.input_size = input_size
        self.input_counts = input_counts
        self.stats = {}

    def is_empty(self) -> bool:
        return self.root is None

    def __len__(self) -> int:
        return self.get_node_count()

    def items(self) -> List[MetricItem]:
        """
        Liste les éléments réellement stockés dans l'arbre (parcours préfixe).
        Avec la stratégie "legacy", un même élément peut apparaître plusieurs fois.

        Returns:
            List[MetricItem]: Points de vue de tous les nœuds
        """
        result = []
        stack = [self.root] if self.root else []
        while stack:
            node = stack.pop()
            result.append(node.vantage)
            # Droite empilée d'abord pour visiter la gauche en premier
            if node.right is not None:
                stack.append(node.right)
            if node.left is not None:
                stack.append(node.left)
        return result

    def get_height(self) -> int:
        """
        Calcule la hauteur de l'arbre (niveau maximal d'un nœud).

        Returns:
            int: Hauteur de l'arbre (0 pour un arbre vide ou réduit à la racine)
        """
        if not self.root:
            return 0

        def get_node_height(node: VPTreeNode) -> int:
            if node.is_leaf():
                return node.level
            return max(get_node_height(child) for child in node.children())

        return get_node_height(self.root)

    def get_leaf_count(self) -> int:
        """
        Compte le nombre de feuilles dans l'arbre.

        Returns:
            int: Nombre de feuilles
        """
        if not self.root:
            return 0

        def count_leaves(node: VPTreeNode) -> int:
            if node.is_leaf():
                return 1
            return sum(count_leaves(child) for child in node.children())

        return count_leaves(self.root)

    def get_node_count(self) -> int:
        """
        Compte le nombre total de nœuds dans l'arbre.

        Returns:
            int: Nombre total de nœuds
        """
        if not self.root:
            return 0
        return self.root.get_size()

    def get_statistics(self) -> Dict[str, Any]:
        """
        Calcule diverses statistiques sur l'arbre.

        Returns:
            Dict: Dictionnaire de statistiques
        """
        if not self.root:
            return {"error": "Arbre vide", "strategy": self.strategy, "input_size": self.input_size}

        stats = {
            "strategy": self.strategy,
            "input_size": self.input_size,
            "node_count": 0,
            "leaf_count": 0,
            "max_depth": 0,
            "min_leaf_depth": float('inf'),
            "avg_leaf_depth": 0,
            "leaf_depths": [],
            "radii": [],
            "avg_radius": 0,
            "distinct_items": 0,
            "duplicated_vantages": 0,
            "dropped_items": 0
        }
        stored = Counter()

        def traverse(node: VPTreeNode) -> None:
            nonlocal stats

            stats["node_count"] += 1
            stats["max_depth"] = max(stats["max_depth"], node.level)
            stats["radii"].append(node.radius)
            # Comptage par valeur : les sous-arbres construits par joblib contiennent des copies
            stored[node.vantage] += 1

            if node.is_leaf():
                stats["leaf_count"] += 1
                stats["min_leaf_depth"] = min(stats["min_leaf_depth"], node.level)
                stats["leaf_depths"].append(node.level)
            else:
                for child in node.children():
                    traverse(child)

        traverse(self.root)

        stats["avg_leaf_depth"] = sum(stats["leaf_depths"]) / stats["leaf_count"]
        stats["avg_radius"] = sum(stats["radii"]) / stats["node_count"]
        stats["distinct_items"] = len(stored)

        if self.input_counts is None:
            stats["duplicated_vantages"] = stats["node_count"] - len(stored)
            stats["dropped_items"] = max(0, self.input_size - len(stored))
        else:
            # Un élément fourni deux fois et stocké deux fois n'est ni perdu ni dupliqué
            stats["duplicated_vantages"] = sum((stored - self.input_counts).values())
            stats["dropped_items"] = sum((self.input_counts - stored).values())

        self.stats = stats

        return stats

    def validate(self) -> None:
        """
        Vérifie les invariants structurels de l'arbre.
        Toute violation est une erreur de programmation et lève AssertionError.
        """
        if not self.root:
            return

        assert self.strategy in STRATEGIES, f"Stratégie inconnue: {self.strategy}"
        assert self.root.level == 0, "La racine doit être au niveau 0"

        def subtree_items(node: Optional[VPTreeNode]) -> List[MetricItem]:
            return VPTree(node).items() if node is not None else []

        def check(node: VPTreeNode) -> None:
            assert node.radius >= 0, f"Rayon négatif: {node}"
            for child in node.children():
                assert child.level == node.level + 1, f"Niveau incohérent sous {node}"

            for item in subtree_items(node.left):
                distance = node.vantage.distance_to(item)
                assert distance <= node.radius, \
                    f"{item!r} à {distance:.6f} > rayon {node.radius:.6f} dans le sous-arbre gauche de {node}"
            for item in subtree_items(node.right):
                distance = node.vantage.distance_to(item)
                assert distance >= node.radius, \
                    f"{item!r} à {distance:.6f} < rayon {node.radius:.6f} dans le sous-arbre droit de {node}"

            for child in node.children():
                check(child)

        check(self.root)

    def __str__(self) -> str:
        """Représentation sous forme de chaîne pour le débogage."""
        if not self.root:
            return "Empty VPTree"

        stats = self.get_statistics()

        return (f"VPTree(nodes={stats['node_count']}, "
                f"leaves={stats['leaf_count']}, "
                f"height={stats['max_depth']}, "
                f"strategy={self.strategy})")

    def save_statistics(self, file_path: str) -> None:
        """
        Sauvegarde les statistiques de l'arbre dans un fichier texte.

        Args:
            file_path: Chemin du fichier de sortie
        """
        stats = self.get_statistics()

        with open(file_path, "w", encoding="utf-8") as f:
            f.write("STATISTIQUES DE L'ARBRE VP\n")
            f.write("==========================\n\n")

            if "error" in stats:
                f.write(f"{stats['error']} (stratégie {stats['strategy']}, {stats['input_size']} éléments fournis)\n")
                return

            f.write("Structure générale\n")
            f.write("-----------------\n")
            f.write(f"Stratégie             : {stats['strategy']}\n")
            f.write(f"Nombre total de nœuds : {stats['node_count']}\n")
            f.write(f"Nombre de feuilles    : {stats['leaf_count']}\n")
            f.write(f"Profondeur maximale   : {stats['max_depth']}\n")
            f.write(f"Profondeur min feuille: {stats['min_leaf_depth']}\n")
            f.write(f"Profondeur moy feuille: {stats['avg_leaf_depth']:.2f}\n")
            f.write(f"Rayon moyen           : {stats['avg_radius']:.4f}\n\n")

            f.write("Conservation des éléments\n")
            f.write("-------------------------\n")
            f.write(f"Éléments fournis      : {stats['input_size']}\n")
            f.write(f"Éléments distincts    : {stats['distinct_items']}\n")
            f.write(f"Points de vue dupliqués: {stats['duplicated_vantages']}\n")
            f.write(f"Éléments perdus       : {stats['dropped_items']}\n")
