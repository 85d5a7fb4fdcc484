"""
Exponential smoothing of transforms toward their targets.
"""
from typing import Union

import numpy as np
from scipy.spatial.transform import Rotation

from .types import Transform

ArrayLike = Union[float, np.ndarray]


class MotionInterpolator:
    """
    Moves a current value a fixed fraction of the way to its target each step.

    The fraction is min(1, rate * dt), so the distance to the target shrinks
    geometrically and never overshoots. The interpolator has no idea why a
    target changed; callers own both the current state and the target.
    """

    def __init__(self, rate: float):
        if rate <= 0:
            raise ValueError("Smoothing rate must be positive")
        self.rate = float(rate)

    def factor(self, dt: float) -> float:
        return max(0.0, min(1.0, self.rate * dt))

    def step(self, current: ArrayLike, target: ArrayLike, dt: float) -> ArrayLike:
        """Lerp scalars or arrays of any shape, component-wise."""
        return current + (target - current) * self.factor(dt)

    def slerp(self, current: Rotation, target: Rotation, dt: float) -> Rotation:
        """Spherical interpolation along the shortest arc."""
        delta = current.inv() * target
        if delta.magnitude() == 0.0:
            return current
        return current * Rotation.from_rotvec(delta.as_rotvec() * self.factor(dt))

    def advance(self, current: Transform, target: Transform, dt: float) -> Transform:
        """
        Advance one transform toward its target.

        Returns current itself when it already equals the target.
        """
        if (np.array_equal(current.position, target.position)
                and current.scale == target.scale
                and np.array_equal(current.rotation.as_quat(), target.rotation.as_quat())):
            return current

        return Transform(
            position=self.step(current.position, target.position, dt),
            rotation=self.slerp(current.rotation, target.rotation, dt),
            scale=float(self.step(current.scale, target.scale, dt)),
        )
