"""
Interaction matrix construction.
"""

from .matrix import InteractionMatrix, build_matrix

__all__ = [
    "InteractionMatrix",
    "build_matrix",
]
