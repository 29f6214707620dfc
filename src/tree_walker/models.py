"""Data models for migration progress and results."""

from dataclasses import dataclass, field
from typing import List

from src.models.transform_report import TransformReport
from src.notion_api.error_policy import FailureRecord

PHASE_CREATE = "create"
PHASE_POPULATE = "populate"


@dataclass
class ProgressEvent:
    """Progress of one migration phase.

    Attributes:
        phase: "create" or "populate"
        done: Documents handled so far in this phase
        total: Documents expected in this phase
        percent: Completion percentage (0-100)
        throughput: Remote call starts per second over the last window
    """
    phase: str
    done: int
    total: int
    percent: float
    throughput: float


@dataclass
class MigrationSummary:
    """Final counters of a migration run.

    Attributes:
        documents_total: Documents found in the export (folder content files excluded)
        folders_created: Folder documents created
        folder_fallbacks: Folders whose children went under the parent instead
        documents_created: Empty documents created in the create phase
        documents_skipped: Documents not created because of the per-folder limit
        creation_failures: Documents whose creation failed
        documents_populated: Documents whose content was written
        read_failures: Documents whose source file could not be read
        append_calls: Block append calls issued
        failed_calls: Block append calls that failed
        blocks_written: Blocks written, children included
        skipped_blocks: Blocks never written because their parent failed
        duration_seconds: Wall time of the run
        transform: Content transformer counters
        failures: Every remote write given up on
    """
    documents_total: int = 0
    folders_created: int = 0
    folder_fallbacks: int = 0
    documents_created: int = 0
    documents_skipped: int = 0
    creation_failures: int = 0
    documents_populated: int = 0
    read_failures: int = 0
    append_calls: int = 0
    failed_calls: int = 0
    blocks_written: int = 0
    skipped_blocks: int = 0
    duration_seconds: float = 0.0
    transform: TransformReport = field(default_factory=TransformReport)
    failures: List[FailureRecord] = field(default_factory=list)

    @property
    def has_failures(self) -> bool:
        return bool(
            self.failures or self.read_failures or self.creation_failures
            or self.folder_fallbacks or self.transform.conversion_failures
        )
