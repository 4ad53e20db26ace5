"""Import workflows."""

from .bulk_importer import BulkImporter, pick_match

__all__ = ["BulkImporter", "pick_match"]
