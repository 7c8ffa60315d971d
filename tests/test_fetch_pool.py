"""Tests for the parallel fetch pool."""

import pytest

from townscore.utils.fetch_pool import FetchPool


def _fetch(domain: str) -> dict:
    if domain == "safety":
        raise TimeoutError("upstream timed out")
    return {"domain": domain}


class TestFetchPool:
    def test_outcomes_in_input_order(self):
        pool = FetchPool(max_workers=3)
        outcomes = pool.map(_fetch, ["price", "safety", "education"])

        assert [item for _, item, _ in outcomes] == ["price", "safety", "education"]
        assert [success for success, _, _ in outcomes] == [True, False, True]
        assert outcomes[0][2] == {"domain": "price"}
        assert isinstance(outcomes[1][2], TimeoutError)

    def test_stats(self):
        pool = FetchPool(max_workers=2)
        pool.map(_fetch, ["price", "safety"])
        pool.map(_fetch, ["education"])
        assert pool.get_stats() == {
            "max_workers": 2,
            "total_submitted": 3,
            "total_successful": 2,
            "total_failed": 1,
        }

    def test_empty(self):
        assert FetchPool().map(_fetch, []) == []

    def test_invalid_worker_count(self):
        with pytest.raises(ValueError):
            FetchPool(max_workers=0)
