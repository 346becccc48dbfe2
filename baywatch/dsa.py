"""
Sorting / list utilities
========================

Small explicit primitives used by the table:

- Merge Sort driven by a three-way comparator (stable, O(n log n)).
  Column comparators such as severity ranking are not key functions, so the
  sort takes `cmp(a, b) -> int` instead of `key=`.
- Intersection of two sorted lists (two-pointer technique), used when a
  filter narrows the visible rows.
"""

from __future__ import annotations
from typing import Callable, List, Sequence, TypeVar

T = TypeVar("T")

Comparator = Callable[[T, T], int]


def merge_sort(arr: Sequence[T], cmp: Comparator) -> List[T]:
    """Stable merge sort. Returns a new list."""
    if len(arr) <= 1:
        return list(arr)
    mid = len(arr) // 2
    left = merge_sort(arr[:mid], cmp)
    right = merge_sort(arr[mid:], cmp)
    return _merge(left, right, cmp)


def _merge(left: List[T], right: List[T], cmp: Comparator) -> List[T]:
    out: List[T] = []
    # i and j are pointers into each sorted list
    i = j = 0
    while i < len(left) and j < len(right):
        # ties take from the left half to keep the sort stable
        if cmp(left[i], right[j]) <= 0:
            out.append(left[i]); i += 1
        else:
            out.append(right[j]); j += 1
    out.extend(left[i:])
    out.extend(right[j:])
    return out


def intersect_sorted(a: List[int], b: List[int]) -> List[int]:
    """Two-pointer intersection for sorted integer lists."""
    i = j = 0
    out: List[int] = []
    while i < len(a) and j < len(b):
        if a[i] == b[j]:
            out.append(a[i]); i += 1; j += 1
        elif a[i] < b[j]:
            i += 1
        else:
            j += 1
    return out
