"""Tests for online speaker assignment."""
import logging
import threading

import numpy as np
import pytest

from app.diarization.speaker_registry import EmbeddingDimensionError, SpeakerRegistry


@pytest.fixture
def registry():
    return SpeakerRegistry(similarity_threshold=0.45, label_prefix="Speaker ")


class TestFirstCall:
    def test_empty_registry_creates_speaker_1(self, registry):
        assert registry.identify_or_create([0.1, 0.2, 0.3]) == "Speaker 1"
        assert len(registry) == 1
        assert registry.dimension == 3

    def test_stored_embedding_is_normalized(self, registry):
        registry.identify_or_create([3.0, 4.0])
        (profile,) = registry.profiles
        np.testing.assert_allclose(profile.embeddings[0], [0.6, 0.8])


class TestAssignment:
    def test_similar_embeddings_share_label(self, registry):
        first = registry.identify_or_create([1.0, 0.0, 0.0])
        second = registry.identify_or_create([0.9, 0.1, 0.0])
        assert first == second == "Speaker 1"
        assert registry.summaries() == [("Speaker 1", 2)]

    def test_scale_does_not_matter(self, registry):
        assert registry.identify_or_create([1.0, 2.0]) == "Speaker 1"
        assert registry.identify_or_create([100.0, 200.0]) == "Speaker 1"

    def test_very_large_embeddings_are_not_degenerate(self, registry, caplog):
        with caplog.at_level(logging.WARNING, logger="app.diarization.speaker_registry"):
            assert registry.identify_or_create([1e200, 1e200]) == "Speaker 1"
            assert registry.identify_or_create([1e200, 1e200]) == "Speaker 1"
        assert "Degenerate" not in caplog.text

    def test_dissimilar_embeddings_get_distinct_labels(self, registry):
        assert registry.identify_or_create([1.0, 0.0]) == "Speaker 1"
        assert registry.identify_or_create([0.0, 1.0]) == "Speaker 2"
        assert registry.labels == ["Speaker 1", "Speaker 2"]

    def test_score_equal_to_threshold_creates_new_speaker(self):
        registry = SpeakerRegistry(similarity_threshold=0.0)
        registry.identify_or_create([1.0, 0.0])
        # cosine is exactly 0.0 here; join requires strictly greater
        assert registry.identify_or_create([0.0, 1.0]) == "Speaker 2"

    def test_repeated_identical_input_returns_same_label(self, registry):
        label = registry.identify_or_create([0.2, -0.4, 0.9])
        assert registry.identify_or_create([0.2, -0.4, 0.9]) == label
        assert registry.speaker_count == 1

    def test_best_match_wins_over_first_match(self, registry):
        registry.identify_or_create([1.0, 0.0, 0.0])
        registry.identify_or_create([0.0, 1.0, 0.0])
        # Above threshold for both, closer to Speaker 2
        assert registry.identify_or_create([0.6, 0.8, 0.0]) == "Speaker 2"

    def test_centroid_is_mean_of_members(self, registry):
        registry.identify_or_create([1.0, 0.0])
        registry.identify_or_create([1.0, 1.0])
        (profile,) = registry.profiles
        np.testing.assert_allclose(profile.centroid, [(1 + 1 / np.sqrt(2)) / 2, (1 / np.sqrt(2)) / 2])

    def test_labels_are_sequential(self, registry):
        labels = [registry.identify_or_create(v) for v in np.eye(4)]
        assert labels == ["Speaker 1", "Speaker 2", "Speaker 3", "Speaker 4"]


class TestTieBreak:
    def test_equidistant_embedding_goes_to_earlier_profile(self, registry):
        registry.identify_or_create([1.0, 0.0])
        registry.identify_or_create([0.0, 1.0])
        assert registry.identify_or_create([1.0, 1.0]) == "Speaker 1"
        assert registry.summaries() == [("Speaker 1", 2), ("Speaker 2", 1)]

    def test_tie_is_deterministic_across_registries(self):
        results = []
        for _ in range(3):
            registry = SpeakerRegistry(similarity_threshold=0.45)
            registry.identify_or_create([0.0, 0.0, 1.0])
            registry.identify_or_create([0.0, 1.0, 0.0])
            results.append(registry.identify_or_create([0.0, 1.0, 1.0]))
        assert results == ["Speaker 1"] * 3


class TestDegenerateEmbedding:
    def test_zero_vector_mints_new_speaker(self, registry, caplog):
        with caplog.at_level(logging.WARNING, logger="app.diarization.speaker_registry"):
            assert registry.identify_or_create([0.0, 0.0]) == "Speaker 1"
        assert "Degenerate" in caplog.text

    def test_zero_vector_profile_never_matches(self, registry):
        registry.identify_or_create([0.0, 0.0])
        assert registry.identify_or_create([1.0, 0.0]) == "Speaker 2"
        assert registry.identify_or_create([0.0, 0.0]) == "Speaker 3"
        assert registry.identify_or_create([1.0, 0.1]) == "Speaker 2"


class TestContractErrors:
    def test_empty_embedding(self, registry):
        with pytest.raises(ValueError):
            registry.identify_or_create([])
        assert len(registry) == 0

    def test_dimension_mismatch(self, registry):
        registry.identify_or_create([1.0, 0.0, 0.0])
        with pytest.raises(EmbeddingDimensionError):
            registry.identify_or_create([1.0, 0.0])
        assert registry.summaries() == [("Speaker 1", 1)]


class TestReset:
    def test_reset_clears_profiles_counter_and_dimension(self, registry):
        registry.identify_or_create([1.0, 0.0])
        registry.identify_or_create([0.0, 1.0])
        registry.reset()
        assert len(registry) == 0
        assert registry.dimension is None
        assert registry.identify_or_create([1.0, 0.0, 0.0]) == "Speaker 1"


def test_defaults_from_settings(monkeypatch):
    monkeypatch.setenv("DIARIZATION_SIMILARITY_THRESHOLD", "0.9")
    monkeypatch.setenv("DIARIZATION_SPEAKER_PREFIX", "Spk-")
    registry = SpeakerRegistry()
    assert registry.similarity_threshold == 0.9
    registry.identify_or_create([1.0, 0.0])
    # cosine ~0.894 is below 0.9
    assert registry.identify_or_create([1.0, 0.5]) == "Spk-2"


def test_concurrent_callers_are_serialized(registry):
    errors = []
    sizes = []

    def worker():
        try:
            for _ in range(50):
                registry.identify_or_create([0.5, 0.5, 0.5])
        except Exception as e:  # pragma: no cover
            errors.append(e)

    def reader():
        for _ in range(50):
            sizes.append(len(registry))

    threads = [threading.Thread(target=worker) for _ in range(4)] + [threading.Thread(target=reader)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert errors == []
    assert set(sizes) <= {0, 1}
    assert len(registry) == 1
    assert registry.summaries() == [("Speaker 1", 200)]
