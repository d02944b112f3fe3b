"""Filtered and sorted process table."""

import math
from collections.abc import Iterable
from functools import cmp_to_key

from tarnertop.models import ProcessRecord, SortDimension, SortKey


def _compare_cpu(a: ProcessRecord, b: ProcessRecord) -> int:
    """Float compare where an unavailable (NaN) reading equals anything."""
    x, y = a.cpu_usage, b.cpu_usage
    if math.isnan(x) or math.isnan(y):
        return 0
    return (x > y) - (x < y)


_SORT_KEYS = {
    SortDimension.NAME: lambda p: p.raw_name,
    SortDimension.CPU: cmp_to_key(_compare_cpu),
    SortDimension.MEM: lambda p: p.memory_usage,
}


class ProcessTable:
    """
    The stored process sequence plus the active filter and sort key.

    Sorting reorders the stored sequence; filtering only ever produces a view.
    """

    def __init__(
        self,
        processes: Iterable[ProcessRecord] = (),
        sort_key: SortKey = SortKey.NAME_ASC,
    ) -> None:
        self._processes: list[ProcessRecord] = list(processes)
        self._sort_key = sort_key
        self.filter_text = ""
        self.apply_sort()

    @property
    def processes(self) -> list[ProcessRecord]:
        """Stored records in sort order."""
        return list(self._processes)

    @property
    def sort_key(self) -> SortKey:
        return self._sort_key

    def __len__(self) -> int:
        return len(self._processes)

    def replace(self, processes: Iterable[ProcessRecord]) -> None:
        """Replace the whole table and re-sort it."""
        self._processes = list(processes)
        self.apply_sort()

    def find(self, pid: int) -> ProcessRecord | None:
        """Look up a record by pid."""
        for proc in self._processes:
            if proc.pid == pid:
                return proc
        return None

    def filtered_view(self) -> list[ProcessRecord]:
        """Records whose name contains the filter text, case-insensitively."""
        if not self.filter_text:
            return list(self._processes)
        needle = self.filter_text.lower()
        return [p for p in self._processes if needle in p.display_name.lower()]

    def request_sort(self, dimension: SortDimension) -> SortKey:
        """
        Sort by a dimension.

        Requesting the active ascending dimension again flips it to descending;
        anything else starts ascending.
        """
        if self._sort_key == SortKey.of(dimension):
            self._sort_key = SortKey.of(dimension, descending=True)
        else:
            self._sort_key = SortKey.of(dimension)
        self.apply_sort()
        return self._sort_key

    def apply_sort(self) -> None:
        """Sort the stored sequence by the active key (stable)."""
        self._processes.sort(
            key=_SORT_KEYS[self._sort_key.dimension],
            reverse=self._sort_key.descending,
        )
