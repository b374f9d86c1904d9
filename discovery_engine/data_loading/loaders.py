"""
Data loading functions for the discovery engine.

This module loads candidate profiles from JSON files and generates
synthetic profile pools for demos and load testing. No scoring is done
here - that's handled by the scoring module.
"""

import json
import logging
from datetime import date, timedelta
from pathlib import Path
from typing import Dict, List, Any, Optional

import numpy as np
import pandas as pd

from ..profiles.schema import (
    UserProfile,
    Gender,
    SleepSchedule,
    Cleanliness,
    SocialLevel,
    GuestsPolicy,
    Smoking,
    Drinking,
    Pets,
    HousingType,
)

logger = logging.getLogger(__name__)

CITIES = [
    # (city, state, latitude, longitude)
    ("San Francisco", "CA", 37.7749, -122.4194),
    ("Oakland", "CA", 37.8044, -122.2712),
    ("Berkeley", "CA", 37.8715, -122.2730),
    ("San Jose", "CA", 37.3382, -121.8863),
    ("Los Angeles", "CA", 34.0522, -118.2437),
]

INTERESTS = [
    "hiking", "cooking", "yoga", "reading", "music", "gaming", "travel",
    "photography", "fitness", "art", "coffee", "movies", "running", "climbing",
]

TRAITS = ["clean", "quiet", "organized", "friendly", "respectful", "pet-friendly",
          "non-smoker", "early riser", "night owl"]

OCCUPATIONS = ["Software Engineer", "Graduate Student", "Designer", "Nurse",
               "Architect", "Data Analyst", "Chef", "Marketing Manager"]


def load_profiles(filepath: str) -> List[UserProfile]:
    """
    Load candidate profiles from a JSON file.

    The file holds either a list of profiles or an object with a
    ``profiles`` list, each profile in the camelCase API layout.

    Args:
        filepath: Path to the JSON file

    Returns:
        List of UserProfile

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file has no profiles or a profile is malformed
    """
    path = Path(filepath)
    if not path.exists():
        raise FileNotFoundError(f"Profiles file not found: {filepath}")

    logger.info(f"Loading profiles from {filepath}")
    with open(filepath, "r") as f:
        data = json.load(f)

    records = data.get("profiles", []) if isinstance(data, dict) else data
    if not records:
        raise ValueError(f"Profiles file is empty: {filepath}")

    profiles = []
    for i, record in enumerate(records):
        try:
            profiles.append(UserProfile.from_dict(record))
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError(f"Malformed profile at index {i} in {filepath}: {e}")

    ids = [p.user_id for p in profiles]
    if len(set(ids)) != len(ids):
        raise ValueError(f"Duplicate user ids in {filepath}")

    logger.info(f"Loaded {len(profiles)} profiles")
    return profiles


def save_profiles(profiles: List[UserProfile], filepath: str) -> None:
    """Save profiles to a JSON file."""
    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump({"profiles": [p.to_dict() for p in profiles]}, f, indent=2)
    logger.info(f"Saved {len(profiles)} profiles to {filepath}")


def profiles_to_frame(profiles: List[UserProfile], today: Optional[date] = None) -> pd.DataFrame:
    """
    Flatten profiles into a DataFrame for inspection.

    Args:
        profiles: Profiles to flatten
        today: Reference date for ages

    Returns:
        DataFrame with one row per profile
    """
    rows = []
    for p in profiles:
        budget = p.roommate.budget_range
        rows.append({
            "user_id": p.user_id,
            "age": p.age(today),
            "gender": p.gender.value if p.gender else None,
            "city": p.location.city if p.location else None,
            "budget_min": budget.min if budget else None,
            "budget_max": budget.max if budget else None,
            "cleanliness": p.lifestyle.cleanliness.value if p.lifestyle.cleanliness else None,
            "smoking": p.lifestyle.smoking.value if p.lifestyle.smoking else None,
            "n_interests": len(p.interests),
            "is_verified": p.is_verified,
        })
    return pd.DataFrame(rows)


def _choice(rng: np.random.RandomState, options: List[Any]) -> Any:
    return options[rng.randint(len(options))]


def _sample(rng: np.random.RandomState, options: List[Any], low: int, high: int) -> List[Any]:
    k = rng.randint(low, high + 1)
    idx = rng.choice(len(options), size=min(k, len(options)), replace=False)
    return [options[i] for i in sorted(idx)]


def _synthetic_profile(i: int, rng: np.random.RandomState, today: date) -> Dict[str, Any]:
    city, state, lat, lng = _choice(rng, CITIES)
    age = int(rng.randint(19, 45))
    dob = today - timedelta(days=age * 365 + int(rng.randint(0, 365)))
    budget_min = int(rng.randint(6, 25)) * 100
    budget_max = budget_min + int(rng.randint(3, 12)) * 100
    age_min = max(18, age - int(rng.randint(3, 10)))

    return {
        "id": f"profile_synth_{i:04d}",
        "userId": f"synth_{i:04d}",
        "bio": f"{_choice(rng, OCCUPATIONS)} living in {city}.",
        "dateOfBirth": dob.isoformat(),
        "gender": _choice(rng, [g.value for g in Gender]),
        "occupation": _choice(rng, OCCUPATIONS),
        "location": {
            "city": city,
            "state": state,
            "country": "USA",
            "coordinates": {
                "lat": round(lat + rng.normal(0, 0.05), 4),
                "lng": round(lng + rng.normal(0, 0.05), 4),
            },
        },
        "photos": [{"id": f"photo_synth_{i:04d}", "url": f"/photos/synth_{i:04d}.jpg",
                    "isPrimary": True, "order": 0}] if rng.rand() < 0.85 else [],
        "lifestyle": {
            "sleepSchedule": _choice(rng, [m.value for m in SleepSchedule]),
            "cleanliness": _choice(rng, [m.value for m in Cleanliness]),
            "socialLevel": _choice(rng, [m.value for m in SocialLevel]),
            "guestsPolicy": _choice(rng, [m.value for m in GuestsPolicy]),
            "smoking": _choice(rng, [m.value for m in Smoking]),
            "drinking": _choice(rng, [m.value for m in Drinking]),
            "pets": _choice(rng, [m.value for m in Pets]),
        },
        "roommate": {
            "ageRange": {"min": age_min, "max": age_min + int(rng.randint(8, 20))},
            "budgetRange": {"min": budget_min, "max": budget_max},
            "housingType": _sample(rng, [m.value for m in HousingType], 1, 2),
            "preferredLifestyle": {
                "cleanliness": _sample(rng, [m.value for m in Cleanliness], 0, 2),
                "socialLevel": _sample(rng, [m.value for m in SocialLevel], 0, 2),
                "sleepSchedule": _sample(rng, [m.value for m in SleepSchedule], 0, 2),
            },
            "dealBreakers": {
                "smoking": bool(rng.rand() < 0.5),
                "pets": bool(rng.rand() < 0.2),
                "parties": bool(rng.rand() < 0.3),
                "overnightGuests": bool(rng.rand() < 0.1),
            },
            "mustHaves": _sample(rng, TRAITS, 0, 2),
            "preferredRadius": int(rng.randint(5, 30)),
        },
        "interests": _sample(rng, INTERESTS, 2, 5),
        "traits": _sample(rng, TRAITS, 1, 4),
        "isVerified": bool(rng.rand() < 0.6),
        "updatedAt": (today - timedelta(days=int(rng.randint(0, 90)))).isoformat(),
    }


def generate_synthetic_profiles(
    n: int,
    seed: int = 42,
    today: Optional[date] = None
) -> List[UserProfile]:
    """
    Generate a reproducible pool of synthetic profiles.

    Args:
        n: Number of profiles
        seed: Random seed
        today: Reference date for birth dates and update times

    Returns:
        List of UserProfile with user ids synth_0000..synth_{n-1}
    """
    if n < 0:
        raise ValueError(f"n must be >= 0, got {n}")
    rng = np.random.RandomState(seed)
    today = today or date.today()
    profiles = [UserProfile.from_dict(_synthetic_profile(i, rng, today)) for i in range(n)]
    logger.info(f"Generated {len(profiles)} synthetic profiles (seed={seed})")
    return profiles
