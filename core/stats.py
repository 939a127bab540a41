# 순서 통계 (평균/중앙값/백분위) 및 빈도 순위
from __future__ import annotations
from collections import Counter
from typing import Hashable, Iterable, List, Sequence, Tuple
import math


def mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def median(sorted_values: Sequence[float]) -> float:
    """오름차순 정렬된 값의 중앙값. 짝수 개면 가운데 두 값의 평균."""
    n = len(sorted_values)
    if n == 0:
        return 0.0
    mid = n // 2
    if n % 2:
        return float(sorted_values[mid])
    return (sorted_values[mid - 1] + sorted_values[mid]) / 2


def percentile(sorted_values: Sequence[float], p: float) -> float:
    """
    nearest-rank 백분위. 0-index 정렬 배열에서 round(p * (n - 1)) 번째 값.
    반올림은 half-up (0.5 → 1).
    """
    n = len(sorted_values)
    if n == 0:
        return 0.0
    if not 0.0 <= p <= 1.0:
        raise ValueError("percentile must be within [0, 1]")
    idx = int(math.floor(p * (n - 1) + 0.5))
    return float(sorted_values[min(idx, n - 1)])


def rank_by_frequency(items: Iterable[Hashable], limit: int | None = None) -> List[Tuple[Hashable, int]]:
    # Counter 는 첫 등장 순서를 유지하고 most_common 은 안정 정렬 → 동률이면 먼저 나온 값이 앞
    return Counter(items).most_common(limit)
