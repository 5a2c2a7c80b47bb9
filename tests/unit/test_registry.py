"""Unit tests for DatasetRegistry."""

from __future__ import annotations

import pytest

from row_modify.core.exceptions import DatasetNotFoundError, DuplicateDatasetError
from row_modify.core.registry import DatasetRegistry
from row_modify.mapping.datasets import Dataset


class TestDatasetRegistry:
    def test_register_returns_name(self) -> None:
        registry = DatasetRegistry()
        assert registry.register(Dataset("Insert7")) == "Insert7"
        assert len(registry) == 1

    def test_get_returns_dataset(self) -> None:
        registry = DatasetRegistry()
        dataset = Dataset("Update7")
        registry.register(dataset)
        assert registry.get("Update7") is dataset

    def test_has(self) -> None:
        registry = DatasetRegistry()
        registry.register(Dataset("Insert7"))
        assert registry.has("Insert7") is True
        assert registry.has("Insert8") is False

    def test_names_sorted(self) -> None:
        registry = DatasetRegistry()
        registry.register(Dataset("Update7"))
        registry.register(Dataset("Insert7"))
        assert registry.names == ["Insert7", "Update7"]

    def test_missing_dataset_raises(self) -> None:
        registry = DatasetRegistry()
        with pytest.raises(DatasetNotFoundError, match="Insert9"):
            registry.get("Insert9")

    def test_duplicate_name_raises(self) -> None:
        registry = DatasetRegistry()
        registry.register(Dataset("Insert7"))
        with pytest.raises(DuplicateDatasetError) as exc_info:
            registry.register(Dataset("Insert7"))
        assert exc_info.value.dataset_name == "Insert7"
