import asyncio
import json

import pytest

from conftest import TODAY, make_profile
from discovery_engine.deck import DeckConfig, DeckState, SwipeAction
from discovery_engine.errors import FetchError, InvalidCardError
from discovery_engine.filtering import DiscoveryFilters
from discovery_engine.profiles import InMemoryProfileRepository
from discovery_engine.session import LOAD_ERROR, SWIPE_ERROR, DiscoverySession
from discovery_engine.storage import FilterStore


class GatedRepository(InMemoryProfileRepository):
    """Holds the next fetch until ``gate`` is set."""

    def __init__(self, profiles):
        super().__init__(profiles)
        self.hold_next = False
        self.started = asyncio.Event()
        self.gate = asyncio.Event()

    async def fetch_candidates(self, viewer_id, filters, limit, cursor=None):
        if self.hold_next:
            self.hold_next = False
            self.started.set()
            await self.gate.wait()
        return await super().fetch_candidates(viewer_id, filters, limit, cursor)


class FailingLookup:
    async def has_liked_me(self, viewer_id, candidate_id):
        raise FetchError("")


@pytest.fixture
def repository(viewer, candidates):
    return GatedRepository([viewer] + candidates)


def make_session(viewer, repository, **kwargs):
    kwargs.setdefault("config", DeckConfig(page_size=4, refill_size=4, low_watermark=2))
    return DiscoverySession(viewer, repository, today=TODAY, **kwargs)


# -----------------------------------------------------------------------------
# Loading
# -----------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_load_fills_first_page(viewer, repository):
    session = make_session(viewer, repository)
    assert session.state == DeckState.EMPTY
    assert await session.load()
    assert [c.id for c in session.cards] == [f"card_cand_{i:02d}" for i in range(4)]
    assert session.current_card.id == "card_cand_00"
    assert session.has_more
    assert not session.is_loading
    assert session.error is None


@pytest.mark.asyncio
async def test_load_applies_filters_client_side(viewer):
    men = [make_profile(f"m_{i}", gender="male") for i in range(3)]
    women = [make_profile(f"w_{i}") for i in range(3)]
    repository = InMemoryProfileRepository([viewer] + men + women)
    session = make_session(viewer, repository, config=DeckConfig(page_size=2, max_fetch_pages=10))
    assert await session.set_filters({"gender": ["female"]})
    # pages are fetched until at least a page worth of cards passes the filters
    assert [c.profile.user_id for c in session.cards] == ["w_0", "w_1", "w_2"]


@pytest.mark.asyncio
async def test_refill_when_low_watermark_is_reached(viewer, repository):
    session = make_session(viewer, repository)
    await session.load()
    await session.swipe(SwipeAction.PASS)
    assert session.refill_task is None
    await session.swipe(SwipeAction.PASS)
    assert session.current_index == 2
    assert session.refill_task is not None
    await session.drain()
    assert len(session.cards) == 8
    assert not session.has_more
    assert session.current_index == 2


@pytest.mark.asyncio
async def test_refill_after_swiping_the_last_card_shows_a_new_card(viewer):
    repository = GatedRepository([viewer] + [make_profile(f"cand_{i:02d}") for i in range(4)])
    session = make_session(viewer, repository,
                           config=DeckConfig(page_size=2, refill_size=2, low_watermark=1))
    await session.load()
    repository.hold_next = True
    await session.swipe("pass")
    await session.swipe("pass")
    assert session.current_index == 1
    assert session.current_card.is_swiped

    repository.gate.set()
    await session.drain()
    assert len(session.cards) == 4
    assert session.current_card.id == "card_cand_02"
    assert not session.current_card.is_swiped

    await session.swipe("like")
    assert session.current_card.id == "card_cand_03"
    assert not session.cards[1].is_liked


@pytest.mark.asyncio
async def test_exhausting_the_deck(viewer, repository):
    session = make_session(viewer, repository, config=DeckConfig(page_size=20))
    await session.load()
    for _ in range(8):
        await session.swipe("pass")
    await session.drain()
    assert session.current_index == 7
    assert session.state == DeckState.EXHAUSTED
    assert session.snapshot()["state"] == "exhausted"


@pytest.mark.asyncio
async def test_load_more_is_skipped_while_loading(viewer, repository):
    session = make_session(viewer, repository)
    repository.hold_next = True
    loading = asyncio.create_task(session.load())
    await repository.started.wait()
    assert session.is_loading
    assert not await session.load_more()
    repository.gate.set()
    assert await loading


@pytest.mark.asyncio
async def test_stale_load_more_is_dropped_after_filter_change(viewer, repository):
    session = make_session(viewer, repository)
    await session.load()
    repository.hold_next = True
    more = asyncio.create_task(session.load_more())
    await repository.started.wait()

    assert await session.set_filters({"hasPhotos": True})
    fresh = [c.id for c in session.cards]

    repository.gate.set()
    assert not await more
    assert [c.id for c in session.cards] == fresh
    assert session.current_index == 0


@pytest.mark.asyncio
async def test_load_failure_uses_default_message(viewer, repository):
    session = make_session(viewer, repository)
    repository.fail_next(1, message="")
    assert not await session.load()
    assert session.error == LOAD_ERROR
    assert session.state == DeckState.EMPTY


@pytest.mark.asyncio
async def test_fetch_error_keeps_previous_deck(viewer, repository):
    session = make_session(viewer, repository)
    await session.load()
    await session.swipe("like")
    before = [c.id for c in session.cards]

    repository.fail_next(1)
    assert not await session.load_more()
    assert session.error == "Profile service unavailable"
    assert [c.id for c in session.cards] == before
    assert session.current_index == 1

    repository.fail_next(1)
    assert not await session.load()
    assert [c.id for c in session.cards] == before
    assert session.snapshot()["error"] == "Profile service unavailable"


@pytest.mark.asyncio
async def test_leave_drops_late_response(viewer, repository):
    session = make_session(viewer, repository)
    repository.hold_next = True
    loading = asyncio.create_task(session.load())
    await repository.started.wait()
    await session.leave()
    repository.gate.set()
    assert not await loading
    assert session.cards == []
    assert not await session.load_more()


# -----------------------------------------------------------------------------
# Swiping
# -----------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_swipe_on_empty_deck_is_rejected(viewer, repository):
    session = make_session(viewer, repository)
    with pytest.raises(InvalidCardError):
        await session.swipe("like")


@pytest.mark.asyncio
async def test_swipe_on_unknown_card_changes_nothing(viewer, repository):
    session = make_session(viewer, repository)
    await session.load()
    with pytest.raises(InvalidCardError):
        await session.swipe("like", card_id="card_ghost")
    assert session.current_index == 0
    assert session.matches == []


@pytest.mark.asyncio
async def test_swiping_another_card_does_not_advance(viewer, repository):
    session = make_session(viewer, repository)
    await session.load()
    outcome = await session.swipe("pass", card_id="card_cand_03")
    assert outcome.card.is_passed
    assert session.current_index == 0
    assert not session.current_card.is_swiped


@pytest.mark.asyncio
async def test_mutual_match_when_candidate_already_liked_viewer(viewer, repository):
    repository.seed_like("cand_00", "viewer")
    session = make_session(viewer, repository)
    await session.load()
    outcome = await session.swipe(SwipeAction.LIKE)
    assert outcome.is_mutual
    assert outcome.message == "It's a match! You can now message each other."
    assert len(session.matches) == 1
    assert len(session.mutual_matches) == 1
    assert session.current_index == 1


@pytest.mark.asyncio
async def test_concurrent_swipes_are_applied_in_order(viewer, repository):
    session = make_session(viewer, repository, config=DeckConfig(page_size=20))
    await session.load()
    outcomes = await asyncio.gather(
        session.swipe("like"), session.swipe("pass"), session.swipe("super_like"),
    )
    assert [o.card.id for o in outcomes] == ["card_cand_00", "card_cand_01", "card_cand_02"]
    cards = session.cards
    assert cards[0].is_liked and cards[1].is_passed and cards[2].is_super_liked
    assert session.current_index == 3


@pytest.mark.asyncio
async def test_swipes_are_reconciled_with_repository(viewer, repository):
    session = make_session(viewer, repository, config=DeckConfig(page_size=20))
    await session.load()
    await session.swipe("like")
    await session.swipe("pass")
    await session.drain()
    assert repository.swiped_by("viewer") == {"cand_00", "cand_01"}
    assert await repository.has_liked_me("cand_00", "viewer")


@pytest.mark.asyncio
async def test_lookup_failure_sets_error_and_still_advances(viewer, repository):
    session = make_session(viewer, repository, lookup=FailingLookup())
    await session.load()
    assert await session.swipe("like") is None
    assert session.error == SWIPE_ERROR
    assert session.cards[0].is_liked
    assert session.current_index == 1


# -----------------------------------------------------------------------------
# Filters, search and persistence
# -----------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_invalid_filter_update_keeps_old_filters(viewer, repository):
    session = make_session(viewer, repository)
    await session.load()
    fetches = repository.fetch_count
    assert not await session.set_filters({"ageRange": {"min": 50, "max": 20}})
    assert "age_range" in session.error
    assert session.filters == DiscoveryFilters()
    assert repository.fetch_count == fetches
    assert len(session.cards) == 4


@pytest.mark.asyncio
@pytest.mark.parametrize("key", ["ageRange", "budgetRange"])
async def test_null_range_update_is_rejected(viewer, repository, key):
    session = make_session(viewer, repository)
    await session.load()
    assert not await session.set_filters({key: None})
    assert "is required" in session.error
    assert session.filters == DiscoveryFilters()
    assert len(session.cards) == 4


@pytest.mark.asyncio
async def test_null_stored_range_falls_back_to_defaults(viewer, repository, tmp_path):
    path = tmp_path / "state.json"
    path.write_text(json.dumps({"discovery-store": {
        "state": {"filters": {"ageRange": None}, "searchQuery": "art"},
        "version": 0,
    }}))
    session = make_session(viewer, repository, store=FilterStore(str(path)))
    assert session.filters == DiscoveryFilters()
    assert session.search_query == "art"
    assert await session.load()


@pytest.mark.asyncio
async def test_reset_filters(viewer, repository):
    session = make_session(viewer, repository)
    await session.set_filters({"isVerified": True})
    assert not session.filters.is_default()
    assert await session.reset_filters()
    assert session.filters.is_default()


@pytest.mark.asyncio
async def test_search_scores_and_remembers_query(viewer, repository):
    session = make_session(viewer, repository)
    results = await session.search("HIKING")
    assert results.total_count == 8
    assert all(card.id.startswith("search_") for card in results.cards)
    assert session.search_query == "HIKING"

    assert (await session.search("underwater basket weaving")).total_count == 0
    session.clear_search()
    assert session.search_query == ""
    assert session.search_results is None


@pytest.mark.asyncio
async def test_search_failure_sets_error(viewer, repository):
    session = make_session(viewer, repository)
    repository.fail_next(1)
    assert await session.search("hiking") is None
    assert session.error == "Profile service unavailable"


@pytest.mark.asyncio
async def test_only_filters_and_query_are_persisted(viewer, repository, tmp_path):
    path = tmp_path / "state.json"
    store = FilterStore(str(path))
    session = make_session(viewer, repository, store=store)
    await session.set_filters({"gender": ["female"], "distance": 25})
    await session.search("cooking")
    await session.swipe("like")
    await session.leave()

    data = json.loads(path.read_text())
    assert list(data) == ["discovery-store"]
    assert data["discovery-store"]["version"] == 0
    assert set(data["discovery-store"]["state"]) == {"filters", "searchQuery"}

    restored = make_session(viewer, repository, store=store)
    assert restored.filters == session.filters
    assert restored.filters.max_distance == 25
    assert restored.search_query == "cooking"
    assert restored.cards == []
    assert restored.matches == []
