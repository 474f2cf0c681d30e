# VPSearch - Recherche des k plus proches voisins par arbre VP

__version__ = "1.0.0"

# Import main components for direct API access
from vpsearch.core.errors import InvalidArgumentError
from vpsearch.core.item import MetricItem, Song
from vpsearch.core.tree import VPTree, VPTreeNode
from vpsearch.builder.builder import build_tree
from vpsearch.search.searcher import search, Searcher, Neighbor
