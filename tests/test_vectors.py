"""Tests for embedding vector helpers."""
import numpy as np
import pytest

from app.diarization.vectors import (
    as_vector,
    average_vectors,
    cosine_similarity,
    is_degenerate,
    normalize,
)


class TestNormalize:
    @pytest.mark.parametrize(
        "values",
        [[3.0, 4.0], [0.1, 0.2, 0.3], [-5.0, 0.0, 0.0, 2.0], [1e-6, 1e-6], [1e6, -1e6, 3.0]],
    )
    def test_unit_length(self, values):
        assert np.linalg.norm(normalize(as_vector(values))) == pytest.approx(1.0)

    def test_direction_preserved(self):
        np.testing.assert_allclose(normalize(as_vector([3.0, 4.0])), [0.6, 0.8])

    def test_zero_vector_yields_zeros(self):
        out = normalize(as_vector([0.0, 0.0, 0.0]))
        assert out.shape == (3,)
        assert not out.any()

    def test_large_finite_values_normalize(self):
        vec = as_vector([1e200, 1e200])
        assert not is_degenerate(vec)
        np.testing.assert_allclose(normalize(vec), [1 / np.sqrt(2), 1 / np.sqrt(2)])

    def test_tiny_values_normalize(self):
        np.testing.assert_allclose(normalize(as_vector([0.0, 1e-300])), [0.0, 1.0])

    def test_non_finite_is_degenerate(self):
        assert is_degenerate(as_vector([float("nan"), 1.0]))
        assert is_degenerate(as_vector([float("inf"), 1.0]))
        assert not normalize(as_vector([float("nan"), 1.0])).any()


class TestCosineSimilarity:
    def test_generic_for_non_unit_vectors(self):
        assert cosine_similarity(as_vector([2.0, 0.0]), as_vector([5.0, 5.0])) == pytest.approx(
            1 / np.sqrt(2)
        )

    def test_opposite(self):
        assert cosine_similarity(as_vector([1.0, 2.0]), as_vector([-1.0, -2.0])) == pytest.approx(-1.0)

    def test_orthogonal(self):
        assert cosine_similarity(as_vector([1.0, 0.0]), as_vector([0.0, 3.0])) == 0.0

    def test_large_finite_values(self):
        a = as_vector([1e200, 1e200])
        assert cosine_similarity(a, a) == pytest.approx(1.0)
        assert cosine_similarity(a, as_vector([1.0, 1.0])) == pytest.approx(1.0)

    def test_zero_operand_scores_zero(self):
        assert cosine_similarity(as_vector([0.0, 0.0]), as_vector([1.0, 1.0])) == 0.0

    def test_dimension_mismatch(self):
        with pytest.raises(ValueError):
            cosine_similarity(as_vector([1.0, 0.0]), as_vector([1.0, 0.0, 0.0]))


class TestAverage:
    def test_dimension_wise_mean(self):
        avg = average_vectors([as_vector([1.0, 0.0]), as_vector([0.0, 1.0]), as_vector([1.0, 1.0])])
        np.testing.assert_allclose(avg, [2 / 3, 2 / 3])

    def test_large_values_do_not_overflow(self):
        avg = average_vectors([as_vector([1e308, 0.0]), as_vector([1e308, 2.0])])
        np.testing.assert_allclose(avg, [1e308, 1.0])

    def test_empty(self):
        with pytest.raises(ValueError):
            average_vectors([])


def test_as_vector_rejects_matrix():
    with pytest.raises(ValueError):
        as_vector([[1.0, 2.0], [3.0, 4.0]])
