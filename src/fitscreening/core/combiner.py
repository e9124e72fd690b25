"""Deterministic five-signal score combination."""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Any

MAX_YOE = 8.0
MAX_RATING = 4

RATING_BANDS: tuple[tuple[int, str], ...] = (
    (93, "Good"),
    (85, "Maybe"),
    (75, "Poor"),
)


def clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))


def clamp01(value: float) -> float:
    return clamp(value, 0.0, 1.0)


def _clamp_rating(value: float) -> int:
    if math.isnan(value):
        return 0
    return int(clamp(value, 0, MAX_RATING))


def _clamp_yoe(value: float) -> float:
    if math.isnan(value):
        return 0.0
    return float(clamp(value, 0.0, MAX_YOE))


@dataclass(frozen=True, slots=True)
class EvaluationInputs:
    """The five signals, always held within their ranges."""

    actual_yoe: float
    required_yoe: float
    exp_score: int
    edu_score: int
    skill_score: int

    @classmethod
    def from_raw(
        cls,
        *,
        actual_yoe: float,
        required_yoe: float,
        exp_score: float,
        edu_score: float,
        skill_score: float,
    ) -> "EvaluationInputs":
        return cls(
            actual_yoe=_clamp_yoe(float(actual_yoe)),
            required_yoe=_clamp_yoe(float(required_yoe)),
            exp_score=_clamp_rating(float(exp_score)),
            edu_score=_clamp_rating(float(edu_score)),
            skill_score=_clamp_rating(float(skill_score)),
        )


@dataclass(frozen=True, slots=True)
class ScoreBreakdown:
    """Intermediate and final quantities of one combination."""

    inputs: EvaluationInputs
    f_yoe: float
    s_exp: float
    s_edu: float
    w_edu: float
    s_base: float
    m_skill: float
    final01: float
    final_percent: int

    @property
    def rating(self) -> str:
        return rating_band(self.final_percent)

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["rating"] = self.rating
        return payload


@dataclass
class CombinerConfig:
    """Constants of the combination formula."""

    f_yoe_cap: float = 1.5
    epsilon: float = 0.01
    w_edu_intercept: float = 0.85
    w_edu_slope: float = 0.05
    w_edu_min: float = 0.15
    w_edu_max: float = 0.75
    skill_floor: float = 0.95
    skill_span: float = 0.05


class ScoreCombiner:
    """Fold required/actual YOE and three 0-4 ratings into a 0-100 score.

    Pure: no I/O and no randomness. Every intermediate saturates instead of
    raising, so ``combine`` is total over its (clamped) inputs.
    """

    def __init__(self, *, config: CombinerConfig | None = None) -> None:
        self._config = config or CombinerConfig()

    def combine(self, inputs: EvaluationInputs) -> ScoreBreakdown:
        cfg = self._config
        # Re-clamp so hand-built inputs obey the same ranges as from_raw.
        inputs = EvaluationInputs.from_raw(
            actual_yoe=inputs.actual_yoe,
            required_yoe=inputs.required_yoe,
            exp_score=inputs.exp_score,
            edu_score=inputs.edu_score,
            skill_score=inputs.skill_score,
        )

        denominator = max(inputs.required_yoe + cfg.epsilon, cfg.epsilon)
        f_yoe = min(cfg.f_yoe_cap, math.sqrt(max(inputs.actual_yoe, 0.0) / denominator))

        s_exp = clamp01((math.sqrt(inputs.exp_score) * f_yoe) / (2.0 * cfg.f_yoe_cap))
        s_edu = clamp01(math.sqrt(inputs.edu_score) / 2.0)
        w_edu = clamp(
            cfg.w_edu_intercept - cfg.w_edu_slope * inputs.required_yoe,
            cfg.w_edu_min,
            cfg.w_edu_max,
        )
        s_base = clamp01((1.0 - w_edu) * s_exp + w_edu * s_edu)
        m_skill = cfg.skill_floor + cfg.skill_span * (inputs.skill_score / MAX_RATING)
        final01 = clamp01(s_base * m_skill)

        return ScoreBreakdown(
            inputs=inputs,
            f_yoe=f_yoe,
            s_exp=s_exp,
            s_edu=s_edu,
            w_edu=w_edu,
            s_base=s_base,
            m_skill=m_skill,
            final01=final01,
            final_percent=to_percent(final01),
        )


def to_percent(final01: float) -> int:
    """Round half up; builtin round() would send 0.5 to the even neighbour."""
    return int(clamp(math.floor(final01 * 100.0 + 0.5), 0, 100))


def rating_band(percent: int) -> str:
    for threshold, label in RATING_BANDS:
        if percent >= threshold:
            return label
    return "Denied"
