"""
Repository aggregate: packages, repomd records and update records.
"""

from __future__ import annotations

import logging
from typing import Iterator, Optional

from rpmrepo_metadata.models import DistroTag, Nevra, Package, RepoMdRecord
from rpmrepo_metadata.updateinfo import UpdateRecord

logger = logging.getLogger(__name__)


class Repository:
    """In-memory view of one repository's metadata.

    Packages keep their load order so that writing them back is
    deterministic. A NEVRA index is maintained alongside the list so that
    filelists.xml and other.xml records can be merged into the package that
    primary.xml created.
    """

    def __init__(self) -> None:
        self.packages: list[Package] = []
        self.repomd_records: dict[str, RepoMdRecord] = {}
        self.updates: list[UpdateRecord] = []

        # repomd.xml header data
        self.revision: Optional[str] = None
        self.repo_tags: list[str] = []
        self.content_tags: list[str] = []
        self.distro_tags: list[DistroTag] = []

        self._index: dict[Nevra, int] = {}
        # Number of list entries the index covers
        self._indexed = 0

    def __len__(self) -> int:
        return len(self.packages)

    def __iter__(self) -> Iterator[Package]:
        return iter(self.packages)

    def add_package(self, package: Package) -> Package:
        """Append a package, keeping the NEVRA index current.

        A later package with the same NEVRA shadows the earlier one in
        lookups; both stay in the package list.
        """
        self._index[package.nevra()] = len(self.packages)
        self.packages.append(package)
        self._indexed += 1
        return package

    def find_package(self, nevra: Nevra, position: Optional[int] = None) -> Optional[Package]:
        """Find the package with ``nevra``.

        Args:
            nevra: Identity to look up
            position: Expected index (filelists/other list packages in primary
                order, so this is checked first)

        Returns:
            Matching package or None
        """
        if position is not None and position < len(self.packages):
            candidate = self.packages[position]
            if candidate.nevra() == nevra:
                return candidate

        index = self._index.get(nevra)
        if index is None and self._indexed != len(self.packages):
            # Packages were appended to the list directly
            self.reindex()
            index = self._index.get(nevra)
        if index is None or index >= len(self.packages):
            return None
        candidate = self.packages[index]
        # The index goes stale if callers mutate identity fields in place
        if candidate.nevra() != nevra:
            self.reindex()
            index = self._index.get(nevra)
            return self.packages[index] if index is not None else None
        return candidate

    def reindex(self) -> None:
        """Rebuild the NEVRA index after packages were edited or reordered."""
        self._index = {package.nevra(): i for i, package in enumerate(self.packages)}
        self._indexed = len(self.packages)

    def add_repomd_record(self, record: RepoMdRecord) -> None:
        if record.mdtype in self.repomd_records:
            logger.debug(f"Replacing repomd record {record.mdtype}")
        self.repomd_records[record.mdtype] = record

    def get_repomd_record(self, mdtype: str) -> Optional[RepoMdRecord]:
        return self.repomd_records.get(mdtype)

    def add_update(self, update: UpdateRecord) -> None:
        self.updates.append(update)
