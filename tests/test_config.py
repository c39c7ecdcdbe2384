from pathlib import Path
import pytest
from pydantic import ValidationError

from competitor_evidence.config import Settings, load_scoring_config
from competitor_evidence.schemas.scoring import ScoreBucket, ScoringConfig, ScoringWeights

REPO_SCORING_YAML = Path(__file__).resolve().parent.parent / "data" / "scoring.yaml"

def test_weights_must_sum_to_one():
    """
    WHY: A misconfigured weight set would silently skew every score.
    HOW: Build weights summing to 0.9, then ones summing to 1.0 with float noise.
    EXPECTED: The first is rejected, the second accepted.
    """
    with pytest.raises(ValidationError):
        ScoringWeights(coverage=0.5, recency=0.3, first_party=0.1)
    ScoringWeights(coverage=0.1, recency=0.2, first_party=0.7)

def test_buckets_must_descend():
    with pytest.raises(ValidationError):
        ScoringConfig(buckets=[ScoreBucket(label="Medium", min_score=5.0), ScoreBucket(label="High", min_score=7.5)])

def test_label_for_buckets():
    config = ScoringConfig()
    assert config.label_for(7.5) == "High"
    assert config.label_for(7.4) == "Medium"
    assert config.label_for(5.0) == "Medium"
    assert config.label_for(4.9) == "Low"

def test_evidence_types_must_be_unique():
    with pytest.raises(ValidationError):
        ScoringConfig(evidence_types=["pricing", "pricing"])

def test_settings_reject_non_positive_limits():
    """
    WHY: A zero quota or budget is a configuration error, not a silent no-op.
    HOW: Construct Settings with zero and negative limits.
    EXPECTED: ValidationError each time.
    """
    with pytest.raises(ValidationError):
        Settings(SHORTLIST_QUOTA=0)
    with pytest.raises(ValidationError):
        Settings(FETCH_BUDGET_MS=-5)
    with pytest.raises(ValidationError):
        Settings(REVIEW_SEARCH_MAX_RESULTS=-1)

def test_settings_defaults():
    s = Settings()
    assert s.MAX_PAGES_PER_COMPETITOR == 10
    assert s.FETCH_CONCURRENCY == 8
    assert s.FETCH_TIMEOUT_MS == 15000
    assert s.FETCH_BUDGET_MS == 90000
    assert s.SHORTLIST_QUOTA == 8

def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv("SHORTLIST_QUOTA", "4")
    assert Settings().SHORTLIST_QUOTA == 4

def test_load_scoring_config_from_yaml(tmp_path):
    path = tmp_path / "scoring.yaml"
    path.write_text(
        "threshold:\n"
        "  min_total_sources: 3\n"
        "weights:\n"
        "  coverage: 0.5\n"
        "  recency: 0.25\n"
        "  first_party: 0.25\n"
        "fallback_label: Weak\n"
    )
    config = load_scoring_config(path)
    assert config.threshold.min_total_sources == 3
    assert config.threshold.min_evidence_types == 3
    assert config.weights.coverage == 0.5
    assert config.fallback_label == "Weak"

def test_load_scoring_config_rejects_bad_weights(tmp_path):
    path = tmp_path / "scoring.yaml"
    path.write_text("weights:\n  coverage: 0.9\n  recency: 0.9\n  first_party: 0.9\n")
    with pytest.raises(ValidationError):
        load_scoring_config(path)

def test_load_scoring_config_missing_file_uses_defaults(tmp_path):
    assert load_scoring_config(tmp_path / "nope.yaml") == ScoringConfig()

def test_shipped_scoring_yaml_matches_defaults():
    assert load_scoring_config(REPO_SCORING_YAML) == ScoringConfig()

def test_recency_points_must_be_ordered():
    """
    WHY: The recency curve needs fresh window < knee < max age to be well defined.
    HOW: Build configs with the knee past the max age and the fresh window on the knee.
    EXPECTED: Both rejected at load time.
    """
    with pytest.raises(ValidationError):
        ScoringConfig(recency_knee_days=200)
    with pytest.raises(ValidationError):
        ScoringConfig(fresh_window_days=90)
    ScoringConfig(fresh_window_days=7, recency_knee_days=30, recency_knee_score=0.5)

def test_settings_reject_non_positive_response_cap():
    with pytest.raises(ValidationError):
        Settings(MAX_RESPONSE_CHARS=0)
