"""
Exceptions de VPSearch.
"""


class InvalidArgumentError(ValueError):
    """
    Argument invalide fourni à VPSearch.

    Levée pour des caractéristiques manquantes ou non finies, un k < 1,
    une stratégie de construction inconnue ou des dimensions incompatibles.
    """
