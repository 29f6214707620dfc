"""Source path to destination document mapping."""

import logging
from dataclasses import dataclass
from typing import Dict, Iterator, Optional, Tuple

from src.notion_api.errors import MigrationError

logger = logging.getLogger(__name__)


class LocationMapError(MigrationError):
    """Raised when the location map would stop being insert-once."""


@dataclass(frozen=True)
class PageMapping:
    """Where a source document landed in the destination.

    Attributes:
        source_path: Export-relative path, rooted with "/" (e.g. "/docs/intro.md")
        destination_id: Id of the created destination document
        title: Document title shown in the destination
        url: Public URL of the destination document
    """
    source_path: str
    destination_id: str
    title: str
    url: str


class LocationMap:
    """Insert-once, ordered mapping from source paths to PageMappings.

    Populated while placeholders are created, then frozen so content
    population only ever reads it.

    Example:
        >>> location_map = LocationMap()
        >>> location_map.add(PageMapping("/intro.md", "abc", "intro", "https://notion.so/abc"))
        >>> location_map.get("/intro.md").destination_id
        'abc'
    """

    def __init__(self):
        self._entries: Dict[str, PageMapping] = {}
        self._frozen = False

    def add(self, mapping: PageMapping) -> None:
        """Record a mapping.

        Raises:
            LocationMapError: If the map is frozen or the path is already mapped
        """
        if self._frozen:
            raise LocationMapError(
                f"Cannot map {mapping.source_path}: location map is read-only"
            )
        if mapping.source_path in self._entries:
            raise LocationMapError(f"Source path already mapped: {mapping.source_path}")
        self._entries[mapping.source_path] = mapping
        logger.debug(f"Mapped {mapping.source_path} -> {mapping.destination_id}")

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def get(self, source_path: str) -> Optional[PageMapping]:
        return self._entries.get(source_path)

    def items(self) -> Iterator[Tuple[str, PageMapping]]:
        """Mappings in insertion order."""
        return iter(self._entries.items())

    def __contains__(self, source_path: object) -> bool:
        return source_path in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)
