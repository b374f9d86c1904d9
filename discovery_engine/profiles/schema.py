"""
Profile schema for roommate discovery.

Defines the data structures describing a user profile: identity,
lifestyle habits, roommate preferences, verification and photos.

Profiles are owned by the profile repository. The discovery engine
reads them but never mutates them.

Serialized form uses the camelCase keys of the marketplace API
(``dateOfBirth``, ``roommate.budgetRange``, ...).
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Optional, Dict, Any, List, Set, Type


class Gender(Enum):
    """Gender options."""
    MALE = "male"
    FEMALE = "female"
    NON_BINARY = "non-binary"
    PREFER_NOT_TO_SAY = "prefer-not-to-say"


class SleepSchedule(Enum):
    """Sleep schedule options."""
    EARLY_BIRD = "early-bird"
    NIGHT_OWL = "night-owl"
    FLEXIBLE = "flexible"


class Cleanliness(Enum):
    """Cleanliness standard options, cleanest first."""
    VERY_CLEAN = "very-clean"
    MODERATELY_CLEAN = "moderately-clean"
    RELAXED = "relaxed"


class SocialLevel(Enum):
    """Social level options, most social first."""
    VERY_SOCIAL = "very-social"
    MODERATELY_SOCIAL = "moderately-social"
    PREFER_QUIET = "prefer-quiet"


class GuestsPolicy(Enum):
    """How often the person has guests over."""
    FREQUENT_GUESTS = "frequent-guests"
    OCCASIONAL_GUESTS = "occasional-guests"
    RARE_GUESTS = "rare-guests"
    NO_GUESTS = "no-guests"


class Smoking(Enum):
    """Smoking habit options."""
    SMOKER = "smoker"
    NON_SMOKER = "non-smoker"
    SOCIAL_SMOKER = "social-smoker"
    NO_PREFERENCE = "no-preference"


class Drinking(Enum):
    """Drinking habit options."""
    REGULAR = "regular"
    SOCIAL = "social"
    RARELY = "rarely"
    NEVER = "never"
    NO_PREFERENCE = "no-preference"


class Pets(Enum):
    """Pet situation options."""
    HAVE_PETS = "have-pets"
    LOVE_PETS = "love-pets"
    ALLERGIC = "allergic"
    NO_PETS = "no-pets"
    NO_PREFERENCE = "no-preference"


class HousingType(Enum):
    """Housing type options."""
    APARTMENT = "apartment"
    HOUSE = "house"
    CONDO = "condo"
    STUDIO = "studio"
    SHARED_ROOM = "shared-room"


NO_PREFERENCE = "no-preference"


def coerce_enum(enum_cls: Type[Enum], value: Any) -> Optional[Enum]:
    """Convert a raw value to ``enum_cls``; ``None`` and ``""`` stay ``None``."""
    if value is None or value == "":
        return None
    if isinstance(value, enum_cls):
        return value
    return enum_cls(value)


def coerce_enum_list(enum_cls: Type[Enum], values: Optional[List[Any]]) -> List[Enum]:
    """Convert a list of raw values to ``enum_cls`` members."""
    return [coerce_enum(enum_cls, v) for v in (values or []) if v not in (None, "")]


def parse_date(value: Any) -> Optional[date]:
    """Parse an ISO date (or datetime) string; pass dates through."""
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def _values(members: List[Enum]) -> List[str]:
    return [m.value for m in members]


@dataclass
class Range:
    """
    Inclusive numeric range.

    Attributes:
        min: Lower bound
        max: Upper bound
    """
    min: float
    max: float

    def contains(self, value: float) -> bool:
        return self.min <= value <= self.max

    def overlaps(self, other: "Range") -> bool:
        return self.min <= other.max and other.min <= self.max

    def gap_to(self, other: "Range") -> float:
        """Distance between two ranges; 0 when they overlap."""
        if self.overlaps(other):
            return 0.0
        if other.min > self.max:
            return float(other.min - self.max)
        return float(self.min - other.max)

    def is_valid(self) -> bool:
        return self.min <= self.max

    def to_dict(self) -> Dict[str, float]:
        return {"min": self.min, "max": self.max}

    @classmethod
    def from_dict(cls, d: Optional[Dict[str, Any]]) -> Optional["Range"]:
        if not d:
            return None
        return cls(min=d["min"], max=d["max"])


@dataclass
class Location:
    """City-level location with optional coordinates."""
    city: str = ""
    state: str = ""
    country: str = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    def to_dict(self) -> Dict[str, Any]:
        result = {"city": self.city, "state": self.state, "country": self.country}
        if self.has_coordinates:
            result["coordinates"] = {"lat": self.latitude, "lng": self.longitude}
        return result

    @classmethod
    def from_dict(cls, d: Optional[Dict[str, Any]]) -> Optional["Location"]:
        if not d:
            return None
        coords = d.get("coordinates") or {}
        return cls(
            city=d.get("city", ""),
            state=d.get("state", ""),
            country=d.get("country", ""),
            latitude=coords.get("lat"),
            longitude=coords.get("lng"),
        )


@dataclass
class ProfilePhoto:
    """A profile photo reference."""
    id: str
    url: str
    is_primary: bool = False
    order: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "url": self.url, "isPrimary": self.is_primary, "order": self.order}

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ProfilePhoto":
        return cls(
            id=d["id"],
            url=d.get("url", ""),
            is_primary=d.get("isPrimary", False),
            order=d.get("order", 0),
        )


@dataclass
class LifestylePreferences:
    """
    A person's own living habits.

    Every field is optional; a missing value means the person did not
    answer that question.
    """
    sleep_schedule: Optional[SleepSchedule] = None
    cleanliness: Optional[Cleanliness] = None
    social_level: Optional[SocialLevel] = None
    guests_policy: Optional[GuestsPolicy] = None
    smoking: Optional[Smoking] = None
    drinking: Optional[Drinking] = None
    pets: Optional[Pets] = None
    work_from_home: Optional[bool] = None
    music_preference: List[str] = field(default_factory=list)
    dietary_restrictions: List[str] = field(default_factory=list)
    languages: List[str] = field(default_factory=list)

    def __post_init__(self):
        """Convert string inputs to enums."""
        self.sleep_schedule = coerce_enum(SleepSchedule, self.sleep_schedule)
        self.cleanliness = coerce_enum(Cleanliness, self.cleanliness)
        self.social_level = coerce_enum(SocialLevel, self.social_level)
        self.guests_policy = coerce_enum(GuestsPolicy, self.guests_policy)
        self.smoking = coerce_enum(Smoking, self.smoking)
        self.drinking = coerce_enum(Drinking, self.drinking)
        self.pets = coerce_enum(Pets, self.pets)

    def to_dict(self) -> Dict[str, Any]:
        def v(member):
            return member.value if member is not None else None

        return {
            "sleepSchedule": v(self.sleep_schedule),
            "cleanliness": v(self.cleanliness),
            "socialLevel": v(self.social_level),
            "guestsPolicy": v(self.guests_policy),
            "smoking": v(self.smoking),
            "drinking": v(self.drinking),
            "pets": v(self.pets),
            "workFromHome": self.work_from_home,
            "musicPreference": list(self.music_preference),
            "dietaryRestrictions": list(self.dietary_restrictions),
            "languages": list(self.languages),
        }

    @classmethod
    def from_dict(cls, d: Optional[Dict[str, Any]]) -> "LifestylePreferences":
        d = d or {}
        return cls(
            sleep_schedule=d.get("sleepSchedule"),
            cleanliness=d.get("cleanliness"),
            social_level=d.get("socialLevel"),
            guests_policy=d.get("guestsPolicy"),
            smoking=d.get("smoking"),
            drinking=d.get("drinking"),
            pets=d.get("pets"),
            work_from_home=d.get("workFromHome"),
            music_preference=list(d.get("musicPreference", [])),
            dietary_restrictions=list(d.get("dietaryRestrictions", [])),
            languages=list(d.get("languages", [])),
        )


@dataclass
class PreferredLifestyle:
    """Lifestyle values a person accepts in a roommate. Empty means any."""
    cleanliness: List[Cleanliness] = field(default_factory=list)
    social_level: List[SocialLevel] = field(default_factory=list)
    sleep_schedule: List[SleepSchedule] = field(default_factory=list)

    def __post_init__(self):
        self.cleanliness = coerce_enum_list(Cleanliness, self.cleanliness)
        self.social_level = coerce_enum_list(SocialLevel, self.social_level)
        self.sleep_schedule = coerce_enum_list(SleepSchedule, self.sleep_schedule)

    def to_dict(self) -> Dict[str, List[str]]:
        return {
            "cleanliness": _values(self.cleanliness),
            "socialLevel": _values(self.social_level),
            "sleepSchedule": _values(self.sleep_schedule),
        }

    @classmethod
    def from_dict(cls, d: Optional[Dict[str, Any]]) -> "PreferredLifestyle":
        d = d or {}
        return cls(
            cleanliness=d.get("cleanliness", []),
            social_level=d.get("socialLevel", []),
            sleep_schedule=d.get("sleepSchedule", []),
        )


@dataclass
class DealBreakers:
    """Binary constraints a person holds against roommate traits."""
    smoking: bool = False
    pets: bool = False
    parties: bool = False
    overnight_guests: bool = False

    def active(self) -> List[str]:
        """Names of the deal-breakers that are switched on."""
        return [name for name in ("smoking", "pets", "parties", "overnight_guests")
                if getattr(self, name)]

    def to_dict(self) -> Dict[str, bool]:
        return {
            "smoking": self.smoking,
            "pets": self.pets,
            "parties": self.parties,
            "overnight_guests": self.overnight_guests,
        }

    @classmethod
    def from_dict(cls, d: Optional[Dict[str, Any]]) -> "DealBreakers":
        d = d or {}
        return cls(
            smoking=bool(d.get("smoking", False)),
            pets=bool(d.get("pets", False)),
            parties=bool(d.get("parties", False)),
            overnight_guests=bool(d.get("overnight_guests", d.get("overnightGuests", False))),
        )


@dataclass
class RoommatePreferences:
    """
    What a person is looking for in a roommate and a home.

    Attributes:
        age_range: Accepted roommate ages (inclusive)
        gender_preference: A Gender value or "no-preference"
        housing_types: Housing types the person would live in
        budget_range: Monthly rent the person can pay
        preferred_lifestyle: Accepted lifestyle values per category
        deal_breakers: Hard constraints on roommate traits
        must_haves: Qualities the roommate must have
        preferred_radius: Distance tolerance in miles (None uses the scorer default)
    """
    age_range: Optional[Range] = None
    gender_preference: str = NO_PREFERENCE
    housing_types: List[HousingType] = field(default_factory=list)
    budget_range: Optional[Range] = None
    currency: str = "USD"
    move_in_date: Optional[date] = None
    lease_duration: Optional[str] = None
    preferred_areas: List[str] = field(default_factory=list)
    max_commute_time: Optional[int] = None
    transportation_modes: List[str] = field(default_factory=list)
    preferred_lifestyle: PreferredLifestyle = field(default_factory=PreferredLifestyle)
    deal_breakers: DealBreakers = field(default_factory=DealBreakers)
    must_haves: List[str] = field(default_factory=list)
    nice_to_haves: List[str] = field(default_factory=list)
    preferred_radius: Optional[float] = None

    def __post_init__(self):
        """Validate and convert nested inputs."""
        if isinstance(self.age_range, dict):
            self.age_range = Range.from_dict(self.age_range)
        if isinstance(self.budget_range, dict):
            self.budget_range = Range.from_dict(self.budget_range)
        if isinstance(self.preferred_lifestyle, dict):
            self.preferred_lifestyle = PreferredLifestyle.from_dict(self.preferred_lifestyle)
        if isinstance(self.deal_breakers, dict):
            self.deal_breakers = DealBreakers.from_dict(self.deal_breakers)
        self.housing_types = coerce_enum_list(HousingType, self.housing_types)
        self.move_in_date = parse_date(self.move_in_date)

        if self.gender_preference != NO_PREFERENCE:
            Gender(self.gender_preference)

    def to_dict(self) -> Dict[str, Any]:
        budget = None
        if self.budget_range is not None:
            budget = {**self.budget_range.to_dict(), "currency": self.currency}
        return {
            "ageRange": self.age_range.to_dict() if self.age_range else None,
            "genderPreference": self.gender_preference,
            "housingType": _values(self.housing_types),
            "budgetRange": budget,
            "moveInDate": self.move_in_date.isoformat() if self.move_in_date else None,
            "leaseDuration": self.lease_duration,
            "preferredAreas": list(self.preferred_areas),
            "maxCommuteTime": self.max_commute_time,
            "transportationMode": list(self.transportation_modes),
            "preferredLifestyle": self.preferred_lifestyle.to_dict(),
            "dealBreakers": self.deal_breakers.to_dict(),
            "mustHaves": list(self.must_haves),
            "niceToHaves": list(self.nice_to_haves),
            "preferredRadius": self.preferred_radius,
        }

    @classmethod
    def from_dict(cls, d: Optional[Dict[str, Any]]) -> "RoommatePreferences":
        d = d or {}
        budget = d.get("budgetRange") or {}
        return cls(
            age_range=Range.from_dict(d.get("ageRange")),
            gender_preference=d.get("genderPreference") or NO_PREFERENCE,
            housing_types=d.get("housingType", []),
            budget_range=Range.from_dict(budget),
            currency=budget.get("currency", "USD"),
            move_in_date=d.get("moveInDate"),
            lease_duration=d.get("leaseDuration"),
            preferred_areas=list(d.get("preferredAreas", [])),
            max_commute_time=d.get("maxCommuteTime"),
            transportation_modes=list(d.get("transportationMode", [])),
            preferred_lifestyle=PreferredLifestyle.from_dict(d.get("preferredLifestyle")),
            deal_breakers=DealBreakers.from_dict(d.get("dealBreakers")),
            must_haves=list(d.get("mustHaves", [])),
            nice_to_haves=list(d.get("niceToHaves", [])),
            preferred_radius=d.get("preferredRadius"),
        )


@dataclass
class UserProfile:
    """
    Complete profile of one marketplace user.

    Attributes:
        id: Profile identifier
        user_id: Owning user identifier (the id swipes and matches refer to)
        date_of_birth: Used to derive age
        lifestyle: The person's own habits
        roommate: What the person is looking for
        interests: Free-form interest tags
        traits: Qualities the person offers a roommate (e.g. "Clean")
        is_verified: Identity verification flag
    """
    id: str
    user_id: str
    bio: str = ""
    date_of_birth: Optional[date] = None
    gender: Optional[Gender] = None
    occupation: str = ""
    education: str = ""
    location: Optional[Location] = None
    photos: List[ProfilePhoto] = field(default_factory=list)
    lifestyle: LifestylePreferences = field(default_factory=LifestylePreferences)
    roommate: RoommatePreferences = field(default_factory=RoommatePreferences)
    interests: List[str] = field(default_factory=list)
    traits: List[str] = field(default_factory=list)
    is_verified: bool = False
    updated_at: Optional[str] = None

    def __post_init__(self):
        """Validate nested objects."""
        self.date_of_birth = parse_date(self.date_of_birth)
        self.gender = coerce_enum(Gender, self.gender)
        if isinstance(self.location, dict):
            self.location = Location.from_dict(self.location)
        if isinstance(self.lifestyle, dict):
            self.lifestyle = LifestylePreferences.from_dict(self.lifestyle)
        if isinstance(self.roommate, dict):
            self.roommate = RoommatePreferences.from_dict(self.roommate)

    def age(self, today: Optional[date] = None) -> Optional[int]:
        """Age in whole years on ``today`` (default: the current date)."""
        if self.date_of_birth is None:
            return None
        today = today or date.today()
        dob = self.date_of_birth
        return today.year - dob.year - ((today.month, today.day) < (dob.month, dob.day))

    def offered_traits(self) -> Set[str]:
        """Lower-cased qualities and interests this person brings to a household."""
        return {t.strip().lower() for t in self.traits + self.interests if t}

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "userId": self.user_id,
            "bio": self.bio,
            "dateOfBirth": self.date_of_birth.isoformat() if self.date_of_birth else None,
            "gender": self.gender.value if self.gender else None,
            "occupation": self.occupation,
            "education": self.education,
            "location": self.location.to_dict() if self.location else None,
            "photos": [p.to_dict() for p in self.photos],
            "lifestyle": self.lifestyle.to_dict(),
            "roommate": self.roommate.to_dict(),
            "interests": list(self.interests),
            "traits": list(self.traits),
            "isVerified": self.is_verified,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserProfile":
        """Create from dictionary."""
        return cls(
            id=data["id"],
            user_id=data.get("userId", data["id"]),
            bio=data.get("bio", ""),
            date_of_birth=data.get("dateOfBirth"),
            gender=data.get("gender"),
            occupation=data.get("occupation", ""),
            education=data.get("education", ""),
            location=Location.from_dict(data.get("location")),
            photos=[ProfilePhoto.from_dict(p) for p in data.get("photos", [])],
            lifestyle=LifestylePreferences.from_dict(data.get("lifestyle")),
            roommate=RoommatePreferences.from_dict(data.get("roommate")),
            interests=list(data.get("interests", [])),
            traits=list(data.get("traits", [])),
            is_verified=bool(data.get("isVerified", False)),
            updated_at=data.get("updatedAt"),
        )
