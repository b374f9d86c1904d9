"""
Deal-breaker trait rules.

Each deal-breaker flag names a trait a candidate may exhibit. The rules
live here so the compatibility scorer and the filter evaluator agree on
what counts as a violation. A candidate whose relevant lifestyle field is
missing does not exhibit the trait.
"""

from typing import Callable, Dict, List, Tuple

from .schema import LifestylePreferences, Smoking, Pets, SocialLevel, GuestsPolicy

TraitCheck = Callable[[LifestylePreferences], bool]


def _smokes(lifestyle: LifestylePreferences) -> bool:
    return lifestyle.smoking in (Smoking.SMOKER, Smoking.SOCIAL_SMOKER)


def _has_pets(lifestyle: LifestylePreferences) -> bool:
    return lifestyle.pets == Pets.HAVE_PETS


def _throws_parties(lifestyle: LifestylePreferences) -> bool:
    return (lifestyle.social_level == SocialLevel.VERY_SOCIAL
            and lifestyle.guests_policy == GuestsPolicy.FREQUENT_GUESTS)


def _hosts_overnight_guests(lifestyle: LifestylePreferences) -> bool:
    return lifestyle.guests_policy in (GuestsPolicy.FREQUENT_GUESTS,
                                       GuestsPolicy.OCCASIONAL_GUESTS)


# deal-breaker name -> (trait check, reason shown when violated)
DEAL_BREAKER_TRAITS: Dict[str, Tuple[TraitCheck, str]] = {
    "smoking": (_smokes, "Deal breaker: They smoke"),
    "pets": (_has_pets, "Deal breaker: They have pets"),
    "parties": (_throws_parties, "Deal breaker: They host parties"),
    "overnight_guests": (_hosts_overnight_guests, "Deal breaker: They have overnight guests"),
}


def exhibits(trait: str, lifestyle: LifestylePreferences) -> bool:
    """Whether ``lifestyle`` exhibits the deal-breaker ``trait``."""
    check, _ = DEAL_BREAKER_TRAITS[trait]
    return check(lifestyle)


def violated_deal_breakers(flags: List[str], lifestyle: LifestylePreferences) -> List[str]:
    """Return the subset of ``flags`` the candidate's lifestyle violates, in order."""
    return [flag for flag in flags if exhibits(flag, lifestyle)]
