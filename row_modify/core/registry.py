"""Dataset registry - holds the backend resources created during compilation.

Resource names are generated from the display mapper id, e.g. ``Insert7``
or ``Delete12SysUpdate``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from row_modify.core.exceptions import DatasetNotFoundError, DuplicateDatasetError

if TYPE_CHECKING:
    from row_modify.mapping.datasets import Dataset


class DatasetRegistry:
    """Name-keyed store of compiled datasets.

    Datasets are registered once while plans are compiled, then read-only
    for the lifetime of the application.

    Raises:
        DuplicateDatasetError: If two datasets share a resource name.
    """

    def __init__(self) -> None:
        self._datasets: dict[str, Dataset] = {}

    def register(self, dataset: Dataset) -> str:
        """Add *dataset* and return its resource name."""
        if dataset.name in self._datasets:
            raise DuplicateDatasetError(dataset.name)
        self._datasets[dataset.name] = dataset
        return dataset.name

    def get(self, name: str) -> Dataset:
        """Look up a dataset by resource name.

        Raises:
            DatasetNotFoundError: If no dataset has the given name.
        """
        try:
            return self._datasets[name]
        except KeyError:
            raise DatasetNotFoundError(name) from None

    def has(self, name: str) -> bool:
        """Check if a resource name is registered."""
        return name in self._datasets

    @property
    def names(self) -> list[str]:
        """List all registered resource names, sorted alphabetically."""
        return sorted(self._datasets.keys())

    def __len__(self) -> int:
        """Number of registered datasets."""
        return len(self._datasets)
