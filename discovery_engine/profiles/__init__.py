"""Profile model, trait rules, geography and the candidate repository."""

from .schema import (
    UserProfile,
    LifestylePreferences,
    RoommatePreferences,
    PreferredLifestyle,
    DealBreakers,
    Location,
    ProfilePhoto,
    Range,
)
from .geo import distance_between, haversine_miles
from .traits import exhibits, violated_deal_breakers
from .repository import ProfileRepository, InMemoryProfileRepository, CandidatePage

__all__ = [
    "UserProfile",
    "LifestylePreferences",
    "RoommatePreferences",
    "PreferredLifestyle",
    "DealBreakers",
    "Location",
    "ProfilePhoto",
    "Range",
    "distance_between",
    "haversine_miles",
    "exhibits",
    "violated_deal_breakers",
    "ProfileRepository",
    "InMemoryProfileRepository",
    "CandidatePage",
]
