# Ordered search space of the marker sweep: fast path first, then the full sweep
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from .preprocessing import IDENTITY, PreprocessingVariant, build_variants
from .profiles import (DetectorProfile, DictionarySpec, FAST_DICTIONARIES, FAST_PROFILES,
                       SWEEP_DICTIONARIES, SWEEP_PROFILES)

STAGE_FAST = "fast"
STAGE_SWEEP = "sweep"


@dataclass(frozen=True)
class SearchCandidate:
    stage: str
    variant: PreprocessingVariant
    profile: DetectorProfile
    dictionary: DictionarySpec

    @property
    def strategy_name(self) -> str:
        return f"{self.stage}:{self.variant.name}"

    @property
    def key(self) -> Tuple:
        """What the attempt actually runs; two candidates with equal keys find the same markers"""
        return (self.variant.name, self.variant.scale, self.profile.signature, self.dictionary.cv2_id)


def build_search_plan(fast_profiles: Sequence[DetectorProfile] = FAST_PROFILES,
                      fast_dictionaries: Sequence[DictionarySpec] = FAST_DICTIONARIES,
                      variants: Sequence[PreprocessingVariant] = None,
                      sweep_profiles: Sequence[DetectorProfile] = SWEEP_PROFILES,
                      sweep_dictionaries: Sequence[DictionarySpec] = SWEEP_DICTIONARIES,
                      use_fast_path: bool = True) -> List[SearchCandidate]:
    """
    Fast path: raw grayscale x fast profiles x fast dictionaries.
    Sweep: variant x profile x dictionary, in that nesting order.

    A candidate repeating an earlier one (same variant, parameter overrides and
    dictionary) is dropped; the first occurrence keeps its place.
    """
    if variants is None:
        variants = build_variants()

    candidates = []
    if use_fast_path:
        for profile in fast_profiles:
            for dictionary in fast_dictionaries:
                candidates.append(SearchCandidate(STAGE_FAST, IDENTITY, profile, dictionary))

    for variant in variants:
        for profile in sweep_profiles:
            for dictionary in sweep_dictionaries:
                candidates.append(SearchCandidate(STAGE_SWEEP, variant, profile, dictionary))

    plan = []
    seen = set()
    for candidate in candidates:
        if candidate.key in seen:
            continue
        seen.add(candidate.key)
        plan.append(candidate)
    return plan
