import pytest

from conftest import make_profile
from discovery_engine.deck import SwipeAction
from discovery_engine.errors import FetchError
from discovery_engine.filtering import DiscoveryFilters
from discovery_engine.profiles import InMemoryProfileRepository


@pytest.fixture
def repository(viewer, candidates):
    return InMemoryProfileRepository([viewer] + candidates)


async def collect_ids(repository, viewer_id, limit):
    ids, cursor = [], None
    while True:
        page = await repository.fetch_candidates(viewer_id, DiscoveryFilters(), limit, cursor)
        ids.extend(p.user_id for p in page.profiles)
        if not page.has_more:
            assert page.next_cursor is None
            return ids
        cursor = page.next_cursor


@pytest.mark.asyncio
async def test_pages_cover_every_candidate_once(repository):
    ids = await collect_ids(repository, "viewer", 3)
    assert ids == [f"cand_{i:02d}" for i in range(8)]


@pytest.mark.asyncio
async def test_first_page_shape(repository):
    page = await repository.fetch_candidates("viewer", DiscoveryFilters(), 5)
    assert len(page.profiles) == 5
    assert page.has_more
    assert page.next_cursor == "cand_04"
    assert page.total_count == 8
    assert repository.fetch_count == 1


@pytest.mark.asyncio
async def test_swiped_candidates_are_excluded(repository):
    await repository.record_swipe("viewer", "cand_01", SwipeAction.PASS)
    await repository.record_swipe("viewer", "cand_02", SwipeAction.LIKE)
    ids = await collect_ids(repository, "viewer", 10)
    assert "cand_01" not in ids and "cand_02" not in ids
    assert repository.swiped_by("viewer") == {"cand_01", "cand_02"}


@pytest.mark.asyncio
async def test_exclusions_between_pages_do_not_skip_candidates(repository):
    first = await repository.fetch_candidates("viewer", DiscoveryFilters(), 3)
    for profile in first.profiles:
        await repository.record_swipe("viewer", profile.user_id, SwipeAction.PASS)
    second = await repository.fetch_candidates("viewer", DiscoveryFilters(), 3, first.next_cursor)
    assert [p.user_id for p in second.profiles] == ["cand_03", "cand_04", "cand_05"]


@pytest.mark.asyncio
async def test_viewer_never_sees_themselves(repository):
    ids = await collect_ids(repository, "cand_03", 4)
    assert "cand_03" not in ids
    assert "viewer" in ids


@pytest.mark.asyncio
async def test_scheduled_failures_raise_fetch_error(repository):
    repository.fail_next(2, message="Failed to load discovery cards")
    for _ in range(2):
        with pytest.raises(FetchError, match="Failed to load discovery cards"):
            await repository.fetch_candidates("viewer", DiscoveryFilters(), 5)
    page = await repository.fetch_candidates("viewer", DiscoveryFilters(), 5)
    assert len(page.profiles) == 5


@pytest.mark.asyncio
async def test_limit_must_be_positive(repository):
    with pytest.raises(ValueError):
        await repository.fetch_candidates("viewer", DiscoveryFilters(), 0)


@pytest.mark.asyncio
async def test_has_liked_me_reflects_swipes_and_seeds(repository):
    assert not await repository.has_liked_me("viewer", "cand_00")
    repository.seed_like("cand_00", "viewer")
    assert await repository.has_liked_me("viewer", "cand_00")

    await repository.record_swipe("cand_01", "viewer", SwipeAction.SUPER_LIKE)
    assert await repository.has_liked_me("viewer", "cand_01")
    await repository.record_swipe("cand_01", "viewer", SwipeAction.PASS)
    assert not await repository.has_liked_me("viewer", "cand_01")


@pytest.mark.asyncio
async def test_simulated_latency(viewer):
    repository = InMemoryProfileRepository([viewer, make_profile("c")], latency_ms=5)
    page = await repository.fetch_candidates("viewer", DiscoveryFilters(), 5)
    assert [p.user_id for p in page.profiles] == ["c"]


def test_negative_latency_is_rejected():
    with pytest.raises(ValueError):
        InMemoryProfileRepository([], latency_ms=-1)


def test_profiles_are_sorted_by_user_id(candidates):
    repository = InMemoryProfileRepository(reversed(candidates))
    assert [p.user_id for p in repository.profiles] == [c.user_id for c in candidates]
    assert repository.get_profile("cand_05").user_id == "cand_05"
    assert repository.get_profile("nobody") is None
