"""
Viewer-chosen discovery filters.

Filters are owned by the viewer and change only through explicit setter
calls. An invalid filter set is rejected at construction time, so a
DiscoveryFilters instance is always valid; a rejected update leaves the
previous filters in effect.

Serialized form uses the camelCase keys of the marketplace API and is
what gets persisted between sessions.
"""

from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional

from ..errors import ValidationError
from ..profiles.schema import (
    Range,
    DealBreakers,
    Gender,
    HousingType,
    Cleanliness,
    SocialLevel,
    SleepSchedule,
    Smoking,
    Drinking,
    Pets,
    coerce_enum_list,
)

# filter attribute -> (serialized key, enum)
LIFESTYLE_CATEGORIES = {
    "cleanliness": ("cleanliness", Cleanliness),
    "social_level": ("socialLevel", SocialLevel),
    "sleep_schedule": ("sleepSchedule", SleepSchedule),
    "smoking": ("smoking", Smoking),
    "drinking": ("drinking", Drinking),
    "pets": ("pets", Pets),
}

# snake_case aliases accepted by DiscoveryFilters.merged()
KEY_ALIASES = {
    "age_range": "ageRange",
    "budget_range": "budgetRange",
    "max_distance": "distance",
    "genders": "gender",
    "housing_types": "housingTypes",
    "deal_breakers": "dealBreakers",
    "has_photos": "hasPhotos",
    "is_verified": "isVerified",
    "min_compatibility_score": "minCompatibilityScore",
}


@dataclass
class LifestyleFilter:
    """Accepted values per lifestyle category. An empty list accepts anything."""
    cleanliness: List[Cleanliness] = field(default_factory=list)
    social_level: List[SocialLevel] = field(default_factory=list)
    sleep_schedule: List[SleepSchedule] = field(default_factory=list)
    smoking: List[Smoking] = field(default_factory=list)
    drinking: List[Drinking] = field(default_factory=list)
    pets: List[Pets] = field(default_factory=list)

    def __post_init__(self):
        for name, (_, enum_cls) in LIFESTYLE_CATEGORIES.items():
            setattr(self, name, coerce_enum_list(enum_cls, getattr(self, name)))

    def active(self) -> Dict[str, list]:
        """Categories that actually constrain candidates."""
        return {name: getattr(self, name) for name in LIFESTYLE_CATEGORIES if getattr(self, name)}

    def to_dict(self) -> Dict[str, List[str]]:
        return {
            key: [m.value for m in getattr(self, name)]
            for name, (key, _) in LIFESTYLE_CATEGORIES.items()
        }

    @classmethod
    def from_dict(cls, d: Optional[Dict[str, Any]]) -> "LifestyleFilter":
        d = d or {}
        kwargs = {}
        for name, (key, _) in LIFESTYLE_CATEGORIES.items():
            kwargs[name] = d.get(key, d.get(name, []))
        return cls(**kwargs)


@dataclass
class DiscoveryFilters:
    """
    Constraint set applied to discovery candidates.

    Attributes:
        age_range: Accepted candidate ages (inclusive)
        budget_range: Candidate budget must intersect this range
        max_distance: Maximum distance in miles
        genders: Accepted genders (empty accepts all)
        housing_types: Candidate must offer one of these (empty accepts all)
        lifestyle: Accepted lifestyle values per category
        deal_breakers: Traits that exclude a candidate outright
        interests: Interests a candidate must all have
        has_photos: Require at least one photo
        is_verified: Require a verified profile
        min_compatibility_score: Minimum overall score [0, 100]
    """
    age_range: Range = field(default_factory=lambda: Range(18, 65))
    budget_range: Range = field(default_factory=lambda: Range(0, 10000))
    max_distance: float = 50
    genders: List[Gender] = field(default_factory=list)
    housing_types: List[HousingType] = field(default_factory=list)
    lifestyle: LifestyleFilter = field(default_factory=LifestyleFilter)
    deal_breakers: DealBreakers = field(default_factory=DealBreakers)
    interests: List[str] = field(default_factory=list)
    has_photos: bool = False
    is_verified: bool = False
    min_compatibility_score: float = 0

    def __post_init__(self):
        """Coerce enum values and validate."""
        try:
            self.genders = coerce_enum_list(Gender, self.genders)
            self.housing_types = coerce_enum_list(HousingType, self.housing_types)
        except ValueError as e:
            raise ValidationError(str(e))
        self.validate()

    def validate(self) -> None:
        """
        Validate filter values.

        Raises:
            ValidationError: Listing every problem found
        """
        errors = []
        for name in ["age_range", "budget_range"]:
            rng = getattr(self, name)
            if rng is None:
                errors.append(f"{name} is required")
                continue
            if not rng.is_valid():
                errors.append(f"{name}: min ({rng.min}) must be <= max ({rng.max})")
            if rng.min < 0:
                errors.append(f"{name}: min must be >= 0, got {rng.min}")
        if self.max_distance < 0:
            errors.append(f"max_distance must be >= 0, got {self.max_distance}")
        if not 0 <= self.min_compatibility_score <= 100:
            errors.append(f"min_compatibility_score must be in [0, 100], "
                          f"got {self.min_compatibility_score}")
        if errors:
            raise ValidationError(errors)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the persisted camelCase dictionary."""
        return {
            "ageRange": self.age_range.to_dict(),
            "budgetRange": self.budget_range.to_dict(),
            "distance": {"max": self.max_distance},
            "gender": [g.value for g in self.genders],
            "housingTypes": [h.value for h in self.housing_types],
            "lifestyle": self.lifestyle.to_dict(),
            "dealBreakers": self.deal_breakers.to_dict(),
            "interests": list(self.interests),
            "hasPhotos": self.has_photos,
            "isVerified": self.is_verified,
            "minCompatibilityScore": self.min_compatibility_score,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DiscoveryFilters":
        """
        Create from a (possibly partial) camelCase dictionary.

        Missing keys take their default values.

        Raises:
            ValidationError: If any value is malformed
        """
        data = _deep_merge(cls().to_dict(), _normalize_keys(d))
        try:
            lifestyle = LifestyleFilter.from_dict(data["lifestyle"])
            return cls(
                age_range=Range.from_dict(data["ageRange"]),
                budget_range=Range.from_dict(data["budgetRange"]),
                max_distance=float(data["distance"]["max"]),
                genders=list(data["gender"]),
                housing_types=list(data["housingTypes"]),
                lifestyle=lifestyle,
                deal_breakers=DealBreakers.from_dict(data["dealBreakers"]),
                interests=list(data["interests"]),
                has_photos=bool(data["hasPhotos"]),
                is_verified=bool(data["isVerified"]),
                min_compatibility_score=float(data["minCompatibilityScore"]),
            )
        except ValidationError:
            raise
        except (KeyError, TypeError, ValueError) as e:
            raise ValidationError(f"Malformed filters: {e}")

    def merged(self, partial: Dict[str, Any]) -> "DiscoveryFilters":
        """
        Return a new filter set with ``partial`` applied on top of this one.

        Nested ranges and sets merge one level deep, so
        ``{"ageRange": {"max": 30}}`` keeps the current minimum age.
        """
        return DiscoveryFilters.from_dict(_deep_merge(self.to_dict(), _normalize_keys(partial)))

    def is_default(self) -> bool:
        return self.to_dict() == DiscoveryFilters().to_dict()


def _normalize_keys(d: Dict[str, Any]) -> Dict[str, Any]:
    """Map snake_case keys and object values onto the serialized layout."""
    known = set(DiscoveryFilters().to_dict().keys())
    result = {}
    for key, value in (d or {}).items():
        key = KEY_ALIASES.get(key, key)
        if key not in known:
            raise ValidationError(f"Unknown filter: {key}")
        if isinstance(value, Range):
            value = value.to_dict()
        elif isinstance(value, (LifestyleFilter, DealBreakers)):
            value = value.to_dict()
        elif key == "lifestyle" and isinstance(value, dict):
            value = {LIFESTYLE_CATEGORIES[k][0] if k in LIFESTYLE_CATEGORIES else k: v
                     for k, v in value.items()}
        elif key == "dealBreakers" and isinstance(value, dict):
            value = {("overnight_guests" if k == "overnightGuests" else k): v for k, v in value.items()}
        elif key == "distance" and not isinstance(value, dict):
            value = {"max": value}
        result[key] = value
    return result


def _deep_merge(base: Dict[str, Any], update: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in update.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = {**merged[key], **value}
        else:
            merged[key] = value
    return merged
