"""Renderer — contrat de données du preview et de la page publique."""
from .contract import ColumnView, PreviewBlock, column_view, public_blocks, to_preview_blocks

__all__ = ["ColumnView", "PreviewBlock", "column_view", "public_blocks", "to_preview_blocks"]
