"""
页数估算器单元测试
"""

import pytest

from memo_export.layout import A4, PageEstimator


@pytest.fixture
def estimator() -> PageEstimator:
    return PageEstimator(A4)


class TestPageEstimator:
    """估算器测试"""

    def test_estimate_empty(self, estimator: PageEstimator):
        """测试空文本 → 1页"""
        for text in ("", None, "\n\n  \n"):
            estimate = estimator.estimate(text)
            assert estimate.total_pages == 1
            assert estimate.body_height_units == 0

    def test_per_page_uses_fixed_allowances(self, estimator: PageEstimator):
        """测试缩减后的每页高度 = 277 − 62 − 24"""
        assert estimator.per_page_units == pytest.approx(191.0)

    def test_estimate_monotonic(self, estimator: PageEstimator):
        """测试段落数不变时页数随文本长度单调不减"""
        previous = 0
        for length in range(0, 30000, 250):
            text = "first paragraph " + "x" * length + "\nsecond paragraph"
            pages = estimator.estimate(text).total_pages
            assert pages >= previous
            previous = pages

    def test_estimate_long_text(self, estimator: PageEstimator):
        """测试长文本多页"""
        paragraph = "The archive will be unavailable during the maintenance window. " * 6
        text = "\n".join([paragraph] * 60)
        estimate = estimator.estimate(text)
        assert estimate.total_pages > 1
        assert estimate.total_pages * estimate.per_page_units >= estimate.body_height_units

    def test_lines_for_wraps_long_paragraph(self, estimator: PageEstimator):
        """测试超长段落折行"""
        assert estimator.lines_for("short") == 1
        assert estimator.lines_for("x" * 5000) > 1

    def test_estimate_short_text_single_page(self, estimator: PageEstimator):
        """测试短文本1页"""
        assert estimator.estimate("Brief note.").total_pages == 1
