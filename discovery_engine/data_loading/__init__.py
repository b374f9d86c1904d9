"""Data loading module for candidate profiles."""

from .loaders import load_profiles, save_profiles, profiles_to_frame, generate_synthetic_profiles

__all__ = ["load_profiles", "save_profiles", "profiles_to_frame", "generate_synthetic_profiles"]
