import json

import numpy as np
import pytest

from conftest import TODAY, make_profile
from discovery_engine.data_loading import generate_synthetic_profiles
from discovery_engine.profiles import distance_between
from discovery_engine.scoring import CATEGORIES, CompatibilityScorer, ScoringConfig, ScoringWeights


def score(viewer, candidate, scorer=None):
    scorer = scorer or CompatibilityScorer()
    distance = distance_between(viewer.location, candidate.location)
    return scorer.score(viewer, candidate, distance=distance, today=TODAY)


# -----------------------------------------------------------------------------
# Weights
# -----------------------------------------------------------------------------

def test_default_weights_sum_to_one():
    weights = ScoringWeights()
    assert weights.total() == pytest.approx(1.0)
    assert weights.to_dict() == {
        "lifestyle": 0.25, "budget": 0.20, "location": 0.15, "preferences": 0.20,
        "deal_breakers": 0.10, "interests": 0.05, "age": 0.05,
    }


def test_weights_that_do_not_sum_to_one_are_rejected():
    with pytest.raises(ValueError, match="sum to 1.0"):
        ScoringWeights(lifestyle=0.5)


def test_negative_weight_is_rejected():
    with pytest.raises(ValueError, match="non-negative"):
        ScoringWeights(lifestyle=-0.05, budget=0.50)


@pytest.mark.parametrize("overrides", [
    {"lifestyle": 0.9},
    {"budget": 0.0, "age": 0.3},
    {"interests": 0.333333, "location": 0.1, "preferences": 0.7},
    {name: 1.0 for name in CATEGORIES},
])
def test_overrides_are_renormalized_to_one(overrides):
    weights = ScoringWeights().with_overrides(overrides)
    assert weights.total() == pytest.approx(1.0, abs=1e-9)
    assert all(w >= 0 for w in weights.to_dict().values())


def test_overrides_keep_relative_proportions():
    weights = ScoringWeights().with_overrides({name: 1.0 for name in CATEGORIES})
    assert all(w == pytest.approx(1 / 7) for w in weights.to_dict().values())


def test_overrides_reject_unknown_and_all_zero():
    with pytest.raises(ValueError, match="Unknown"):
        ScoringWeights().with_overrides({"charisma": 0.3})
    with pytest.raises(ValueError, match="positive"):
        ScoringWeights().with_overrides({name: 0.0 for name in CATEGORIES})


def test_scorer_set_weights_updates_overall(viewer):
    candidate = make_profile("c", roommate={"budgetRange": {"min": 5000, "max": 6000}})
    scorer = CompatibilityScorer(ScoringConfig())
    before = score(viewer, candidate, scorer).overall
    scorer.set_weights({"budget": 0.0})
    after = score(viewer, candidate, scorer).overall
    assert scorer.get_weights().budget == 0.0
    assert scorer.get_weights().total() == pytest.approx(1.0)
    assert after == 100
    assert before < after


def test_scoring_config_round_trips_through_json(tmp_path):
    config = ScoringConfig(budget_max_gap=2000, deal_breaker_penalty=40)
    path = tmp_path / "scoring.json"
    config.save(str(path))
    loaded = ScoringConfig.load(str(path))
    assert loaded == config
    assert json.loads(path.read_text())["weights"]["budget"] == 0.20


def test_scoring_config_from_main_config():
    config = ScoringConfig.from_config({"scoring": {
        "weights": {"lifestyle": 0.3, "budget": 0.2, "location": 0.1, "preferences": 0.2,
                    "deal_breakers": 0.1, "interests": 0.05, "age": 0.05},
        "budget_max_gap": 1000,
    }})
    assert config.weights.lifestyle == 0.3
    assert config.budget_max_gap == 1000
    assert config.default_radius_miles == 10.0


def test_invalid_scoring_config_is_rejected():
    with pytest.raises(ValueError, match="budget_max_gap"):
        CompatibilityScorer(ScoringConfig(budget_max_gap=0))


# -----------------------------------------------------------------------------
# Category rules
# -----------------------------------------------------------------------------

def test_identical_preferences_score_full_marks(viewer):
    breakdown = score(viewer, make_profile("twin"))
    assert breakdown.sub_scores() == {name: 100 for name in CATEGORIES}
    assert breakdown.overall == 100


def test_overlapping_budgets_score_100(viewer):
    candidate = make_profile("c", roommate={"budgetRange": {"min": 1800, "max": 2500}})
    breakdown = score(viewer, candidate)
    assert breakdown.budget == 100
    assert breakdown.details["budget"][0].is_positive


def test_budget_gap_of_1000_scores_below_50(viewer):
    candidate = make_profile("c", roommate={"budgetRange": {"min": 3000, "max": 4000}})
    breakdown = score(viewer, candidate)
    assert breakdown.budget == 33
    assert breakdown.budget < 50
    assert "don't overlap" in breakdown.details["budget"][0].reason


def test_budget_score_decreases_with_gap(viewer):
    scores = []
    for low in [2100, 2500, 3000, 3400, 4000]:
        candidate = make_profile("c", roommate={"budgetRange": {"min": low, "max": low + 500}})
        scores.append(score(viewer, candidate).budget)
    assert scores == sorted(scores, reverse=True)
    assert scores[-1] == 0


def test_missing_candidate_budget_scores_zero(viewer):
    candidate = make_profile("c", roommate={"budgetRange": None})
    assert score(viewer, candidate).budget == 0


def test_no_budget_preference_scores_full(viewer):
    relaxed = make_profile("v2", roommate={"budgetRange": None})
    candidate = make_profile("c", roommate={"budgetRange": {"min": 9000, "max": 9500}})
    assert score(relaxed, candidate).budget == 100


def test_lifestyle_is_share_of_accepted_attributes(viewer):
    picky = make_profile("v2", roommate={"preferredLifestyle": {
        "cleanliness": ["very-clean"],
        "socialLevel": ["prefer-quiet"],
        "sleepSchedule": [],
    }})
    breakdown = score(picky, make_profile("c"))
    # cleanliness matches, social level does not, no sleep preference
    assert breakdown.lifestyle == 67


def test_missing_candidate_lifestyle_field_scores_zero_for_that_attribute():
    picky = make_profile("v2", roommate={"preferredLifestyle": {
        "cleanliness": ["very-clean"],
        "socialLevel": ["prefer-quiet"],
    }})
    candidate = make_profile("c", lifestyle={"cleanliness": None})
    assert score(picky, candidate).lifestyle == 33


def test_location_within_radius_is_full_score(viewer):
    nearby = make_profile("c", location={"coordinates": {"lat": 37.7849, "lng": -122.4094}})
    assert score(viewer, nearby).location == 100


def test_location_far_beyond_radius_scores_zero(viewer):
    los_angeles = make_profile("c", location={
        "city": "Los Angeles", "coordinates": {"lat": 34.0522, "lng": -118.2437},
    })
    breakdown = score(viewer, los_angeles)
    assert breakdown.location == 0
    assert not breakdown.details["location"][0].is_positive


def test_location_penalty_per_mile_beyond_radius():
    viewer = make_profile("v", roommate={"preferredRadius": 1})
    # Oakland is roughly 8 miles from downtown San Francisco
    oakland = make_profile("c", location={
        "city": "Oakland", "coordinates": {"lat": 37.8044, "lng": -122.2712},
    })
    breakdown = score(viewer, oakland)
    assert 80 <= breakdown.location < 100


@pytest.mark.parametrize("city,state,expected", [
    ("San Francisco", "California", 100),
    ("Oakland", "California", 75),
    ("Portland", "Oregon", 25),
])
def test_location_falls_back_to_city_and_state(city, state, expected):
    viewer = make_profile("v", location={"coordinates": None})
    candidate = make_profile("c", location={"city": city, "state": state, "coordinates": None})
    assert score(viewer, candidate).location == expected


def test_preferences_is_share_of_must_haves():
    viewer = make_profile("v", roommate={"mustHaves": ["Clean", "Quiet"]})
    breakdown = score(viewer, make_profile("c", traits=["clean"]))
    assert breakdown.preferences == 50
    reasons = [d.reason for d in breakdown.details["preferences"]]
    assert "Has must-have: Clean" in reasons
    assert "Missing must-have: Quiet" in reasons


def test_deal_breakers_subtract_fixed_penalty():
    viewer = make_profile("v", roommate={"dealBreakers": {"smoking": True, "pets": True}})
    one = make_profile("c1", lifestyle={"smoking": "smoker"})
    both = make_profile("c2", lifestyle={"smoking": "social-smoker", "pets": "have-pets"})
    assert score(viewer, make_profile("c0")).deal_breakers == 100
    assert score(viewer, one).deal_breakers == 50
    assert score(viewer, both).deal_breakers == 0
    assert [d.reason for d in score(viewer, both).details["deal_breakers"]] == [
        "Deal breaker: They smoke", "Deal breaker: They have pets",
    ]


def test_deal_breaker_never_goes_negative():
    viewer = make_profile("v", roommate={"dealBreakers": {
        "smoking": True, "pets": True, "parties": True, "overnight_guests": True,
    }})
    party = make_profile("c", lifestyle={
        "smoking": "smoker", "pets": "have-pets",
        "socialLevel": "very-social", "guestsPolicy": "frequent-guests",
    })
    assert score(viewer, party).deal_breakers == 0


def test_interests_are_relative_to_smaller_set(viewer):
    candidate = make_profile("c", interests=["Hiking", "yoga", "art"])
    assert score(viewer, candidate).interests == 50


def test_age_outside_range_loses_points_per_year(viewer):
    older = make_profile("c", dateOfBirth="1985-01-01")
    assert score(viewer, older).age == 50


def test_overall_is_weighted_combination(viewer):
    candidate = make_profile("c", roommate={"budgetRange": {"min": 3000, "max": 4000}},
                             interests=["Hiking", "yoga", "art"], dateOfBirth="1985-01-01")
    breakdown = score(viewer, candidate)
    weights = ScoringWeights().to_dict()
    expected = sum(breakdown.sub_scores()[name] * weights[name] for name in CATEGORIES)
    assert breakdown.overall == int(round(expected))


def test_scoring_is_deterministic(viewer):
    candidate = make_profile("c", interests=["Hiking", "yoga"], traits=["quiet"])
    assert score(viewer, candidate).to_dict() == score(viewer, candidate).to_dict()


def test_scores_stay_within_bounds():
    profiles = generate_synthetic_profiles(25, seed=7, today=TODAY)
    scorer = CompatibilityScorer()
    values = []
    for viewer in profiles[:10]:
        for candidate in profiles:
            breakdown = score(viewer, candidate, scorer)
            values.extend(breakdown.sub_scores().values())
            values.append(breakdown.overall)
    values = np.array(values)
    assert values.min() >= 0
    assert values.max() <= 100
