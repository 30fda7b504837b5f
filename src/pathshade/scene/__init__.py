"""Scene-level material management.

Components:
    table: MaterialTable assigning unified material IDs and dispatching
        eval/sample by type tag inside kernels
"""

from .table import MAX_MATERIALS, MaterialInfo, MaterialTable

__all__ = [
    "MaterialTable",
    "MaterialInfo",
    "MAX_MATERIALS",
]
