"""Caller-supplied render options.

Options are passed explicitly to every render call instead of living in
process-wide flags, so two renders with the same scene and options always
produce the same result.
"""

from dataclasses import dataclass

from src.raycore.core.constants import T_MAX, T_MIN


@dataclass(frozen=True)
class RenderOptions:
    """Options for a render or single-pixel evaluation.

    Attributes:
        verbose: Emit DEBUG-level diagnostics (scene and render summaries)
            from the Python-side driver. Has no effect on radiance values.
        shadows: Test each light for occlusion with a shadow ray.
        background: Radiance returned for rays that miss every primitive.
        t_min: Smallest accepted hit distance for primary rays.
        t_max: Largest accepted hit distance for primary rays.
    """

    verbose: bool = False
    shadows: bool = True
    background: tuple[float, float, float] = (0.0, 0.0, 0.0)
    t_min: float = T_MIN
    t_max: float = T_MAX
