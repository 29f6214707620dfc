"""Data models shared by the transformer and the tree walker."""

from src.models.page_mapping import LocationMap, LocationMapError, PageMapping
from src.models.transform_report import TransformReport

__all__ = ['LocationMap', 'LocationMapError', 'PageMapping', 'TransformReport']
