"""Counters collected while transforming documents."""

from dataclasses import dataclass


@dataclass
class TransformReport:
    """Running totals of recoverable events seen by the content transformer.

    Attributes:
        documents: Documents transformed
        links_rebuilt: Internal links rewritten to destination URLs
        links_unresolved: Internal links replaced with fallback text
        links_dropped: Links stripped because their URL was not absolute
        assets_rehomed: Attachment references rewritten to durable URLs
        asset_failures: Attachment references left untouched after a failure
        password_warnings: Lines flagged as possibly disclosing a password
        tables_truncated: Tables cut down to the maximum width
        conversion_failures: Documents replaced with the conversion error stub
    """
    documents: int = 0
    links_rebuilt: int = 0
    links_unresolved: int = 0
    links_dropped: int = 0
    assets_rehomed: int = 0
    asset_failures: int = 0
    password_warnings: int = 0
    tables_truncated: int = 0
    conversion_failures: int = 0
