"""Exceptions raised by readr.

Only conditions the caller must handle up front use exceptions; "no article
here" is reported through :class:`~readr.readability.ExtractionResult`.
"""

from __future__ import annotations


class ReadrError(RuntimeError):
    """Base class for readr errors."""


class DocumentTooLargeError(ReadrError):
    """Raised before any mutation when the document exceeds the element ceiling.

    Attributes:
        element_count -- number of elements found in the document
        limit         -- configured ``max_elems_to_parse``
    """

    def __init__(self, element_count: int, limit: int) -> None:
        super().__init__(
            f"Aborting parsing document; {element_count} elements found "
            f"(limit {limit})",
        )
        self.element_count = element_count
        self.limit = limit
