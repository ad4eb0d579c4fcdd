"""Merge per-file adapter output into one session dataset."""

from collections.abc import Iterable

from logweave.models.events import CanonicalDataset


def aggregate(datasets: Iterable[CanonicalDataset]) -> CanonicalDataset:
    """Concatenate per-file datasets in submission order.

    A fresh dataset is created on every call, so nothing carries over
    between runs.

    Args:
        datasets: Per-file datasets, in file submission order

    Returns:
        Merged dataset preserving file order, then in-file order
    """
    merged = CanonicalDataset()
    for dataset in datasets:
        merged.extend(dataset)
    return merged
