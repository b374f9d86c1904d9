from datetime import date
from pathlib import Path

import pytest

from discovery_engine.data_loading import load_profiles
from discovery_engine.deck import DiscoveryCard, build_card
from discovery_engine.profiles import UserProfile
from discovery_engine.scoring import CompatibilityScorer

ROOT = Path(__file__).resolve().parents[1]
SAMPLE_PROFILES = ROOT / "data" / "sample_profiles.json"
CONFIG_PATH = ROOT / "configs" / "config.yaml"

TODAY = date(2025, 6, 1)


def make_profile(user_id: str, **overrides) -> UserProfile:
    """Build a profile from camelCase overrides on top of a neutral baseline."""
    data = {
        "id": user_id,
        "userId": user_id,
        "bio": "",
        "dateOfBirth": "1996-01-01",
        "gender": "female",
        "occupation": "Engineer",
        "location": {
            "city": "San Francisco",
            "state": "California",
            "country": "United States",
            "coordinates": {"lat": 37.7749, "lng": -122.4194},
        },
        "photos": [{"id": f"photo_{user_id}", "url": "/p.jpg", "isPrimary": True, "order": 0}],
        "lifestyle": {
            "sleepSchedule": "early-bird",
            "cleanliness": "very-clean",
            "socialLevel": "moderately-social",
            "guestsPolicy": "rare-guests",
            "smoking": "non-smoker",
            "drinking": "social",
            "pets": "no-pets",
        },
        "roommate": {
            "ageRange": {"min": 22, "max": 35},
            "budgetRange": {"min": 1000, "max": 2000},
        },
        "interests": ["hiking", "cooking"],
        "traits": ["clean"],
        "isVerified": True,
        "updatedAt": "2025-05-01T00:00:00Z",
    }
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(data.get(key), dict):
            data[key] = {**data[key], **value}
        else:
            data[key] = value
    return UserProfile.from_dict(data)


def make_card(viewer: UserProfile, candidate: UserProfile, scorer=None) -> DiscoveryCard:
    return build_card(viewer, candidate, scorer or CompatibilityScorer(), today=TODAY)


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def scorer():
    return CompatibilityScorer()


@pytest.fixture
def viewer():
    return make_profile("viewer")


@pytest.fixture
def sample_profiles():
    return load_profiles(str(SAMPLE_PROFILES))


@pytest.fixture
def candidates():
    return [make_profile(f"cand_{i:02d}") for i in range(8)]
