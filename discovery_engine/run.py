"""
Discovery session runner.

This is the single entrypoint for simulating a viewer's discovery session
against a profile pool and writing a session report.

Usage:
    python -m discovery_engine.run --config configs/config.yaml --viewer user_1

The runner performs the following steps:
1. Load and validate configuration
2. Load profiles (JSON file, optionally padded with synthetic profiles)
3. Seed reciprocal likes from the candidates' own scores for the viewer
4. Run a discovery session with a score-threshold swipe policy
5. Compute analytics and save the session report
"""

import argparse
import asyncio
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Dict, Any, Optional

import numpy as np

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def setup_logging(log_level: str) -> None:
    """Configure logging level from config."""
    level = getattr(logging, log_level.upper(), logging.INFO)
    logging.getLogger().setLevel(level)


def choose_action(score: int, like_threshold: int, super_like_threshold: int) -> str:
    """Scripted swipe policy: super-like, like or pass by compatibility score."""
    if score >= super_like_threshold:
        return "super_like"
    if score >= like_threshold:
        return "like"
    return "pass"


async def run_session(
    config_path: str,
    viewer_id: str,
    output_dir: Optional[str] = None,
    max_swipes: int = 50,
    like_threshold: int = 60,
    super_like_threshold: int = 85,
    synthetic: Optional[int] = None
) -> Dict[str, Any]:
    """
    Run a scripted discovery session.

    Args:
        config_path: Path to the configuration YAML file
        viewer_id: User id of the viewer
        output_dir: If provided, write the report here instead of the config default
        max_swipes: Stop after this many swipes
        like_threshold: Minimum score for a like
        super_like_threshold: Minimum score for a super-like
        synthetic: Synthetic profiles to add (overrides config)

    Returns:
        Dictionary with run results and the report path
    """
    from .configs import load_config, validate_config
    from .data_loading import load_profiles, generate_synthetic_profiles
    from .deck import DeckConfig
    from .evaluation import SessionReport, compute_discovery_analytics, compute_score_distribution_stats
    from .profiles import InMemoryProfileRepository, distance_between
    from .scoring import CompatibilityScorer, ScoringConfig
    from .session import DiscoverySession
    from .storage import FilterStore

    # =========================================================================
    # 1. Load and validate configuration
    # =========================================================================
    logger.info("=" * 60)
    logger.info("DISCOVERY SESSION")
    logger.info("=" * 60)

    config = load_config(config_path)
    issues = validate_config(config)
    if issues:
        for issue in issues:
            logger.error(f"Config issue: {issue}")
        return {"success": False, "issues": issues}

    setup_logging(config["global"].get("log_level", "INFO"))
    seed = config["global"]["random_seed"]
    np.random.seed(seed)

    output_path = Path(output_dir or config["global"].get("output_dir", "artifacts"))
    output_path.mkdir(parents=True, exist_ok=True)

    # =========================================================================
    # 2. Load profiles
    # =========================================================================
    repo_config = config["repository"]
    profiles = []
    profiles_path = repo_config.get("profiles_path")
    if profiles_path and Path(profiles_path).exists():
        profiles.extend(load_profiles(profiles_path))
    n_synthetic = repo_config.get("synthetic_profiles", 0) if synthetic is None else synthetic
    if n_synthetic:
        profiles.extend(generate_synthetic_profiles(n_synthetic, seed=seed))

    repository = InMemoryProfileRepository(profiles, latency_ms=repo_config.get("latency_ms", 0))
    viewer = repository.get_profile(viewer_id)
    if viewer is None:
        logger.error(f"Viewer {viewer_id} not found among {len(profiles)} profiles")
        return {"success": False, "issues": [f"Unknown viewer: {viewer_id}"]}

    scorer = CompatibilityScorer(ScoringConfig.from_config(config))

    # =========================================================================
    # 3. Seed reciprocal likes
    # =========================================================================
    seeded = 0
    for candidate in repository.profiles:
        if candidate.user_id == viewer.user_id:
            continue
        distance = distance_between(candidate.location, viewer.location)
        if scorer.score(candidate, viewer, distance=distance).overall >= like_threshold:
            repository.seed_like(candidate.user_id, viewer.user_id)
            seeded += 1
    logger.info(f"{seeded} candidates already like {viewer.user_id}")

    # =========================================================================
    # 4. Run the session
    # =========================================================================
    session = DiscoverySession(
        viewer,
        repository,
        scorer=scorer,
        config=DeckConfig.from_config(config),
        store=FilterStore.from_config(config),
    )
    await session.load()
    if session.error:
        logger.error(f"Initial load failed: {session.error}")

    swipes = 0
    while swipes < max_swipes:
        card = session.current_card
        if card is None or card.is_swiped:
            break
        action = choose_action(card.compatibility_score, like_threshold, super_like_threshold)
        outcome = await session.swipe(action)
        swipes += 1
        if outcome is not None:
            logger.info(f"[{swipes}] {card.profile.user_id} score={card.compatibility_score} "
                        f"{action}: {outcome.message}")
        await session.drain()
    await session.leave()

    # =========================================================================
    # 5. Analytics and report
    # =========================================================================
    analytics = compute_discovery_analytics(
        session.cards, session.ledger, viewer.user_id, total_views=swipes
    )
    scores = np.array([c.compatibility_score for c in session.cards], dtype=float)
    report = SessionReport(
        viewer_id=viewer.user_id,
        analytics=analytics,
        score_stats=compute_score_distribution_stats(scores),
        ledger=session.ledger.to_dict(),
        additional_metrics={
            "timestamp": datetime.now().isoformat(),
            "n_profiles": len(profiles),
            "deck_state": session.state.value,
            "like_threshold": like_threshold,
            "super_like_threshold": super_like_threshold,
        },
    )
    report_path = output_path / "session_report.json"
    report.save(str(report_path))
    logger.info("\n" + report.summary())

    return {"success": True, "report_path": str(report_path), "swipes": swipes}


def main():
    """Main entry point for the session runner."""
    parser = argparse.ArgumentParser(
        description="Simulate a roommate discovery session"
    )
    parser.add_argument(
        "--config",
        type=str,
        default="configs/config.yaml",
        help="Path to configuration file"
    )
    parser.add_argument(
        "--viewer",
        type=str,
        default="user_1",
        help="User id of the viewer"
    )
    parser.add_argument(
        "--max-swipes",
        type=int,
        default=50,
        help="Maximum number of swipes"
    )
    parser.add_argument(
        "--like-threshold",
        type=int,
        default=60,
        help="Minimum compatibility score for a like"
    )
    parser.add_argument(
        "--super-like-threshold",
        type=int,
        default=85,
        help="Minimum compatibility score for a super-like"
    )
    parser.add_argument(
        "--synthetic",
        type=int,
        default=None,
        help="Number of synthetic profiles to add (overrides config)"
    )
    parser.add_argument(
        "--output-dir",
        type=str,
        default=None,
        help="Output directory for the report (overrides config)"
    )

    args = parser.parse_args()

    try:
        result = asyncio.run(run_session(
            args.config,
            args.viewer,
            output_dir=args.output_dir,
            max_swipes=args.max_swipes,
            like_threshold=args.like_threshold,
            super_like_threshold=args.super_like_threshold,
            synthetic=args.synthetic,
        ))
        if result["success"]:
            logger.info("Session completed successfully!")
            return 0
        else:
            logger.error("Session failed!")
            return 1
    except Exception as e:
        logger.exception(f"Session failed with error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
