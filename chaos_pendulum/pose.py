"""
World-space placement of the two rods, recomputed every frame.
"""

import dataclasses
from typing import Tuple

import numpy as np

from chaos_pendulum.params import SimulationParameters, SimulationState

Point = Tuple[float, float]


@dataclasses.dataclass(frozen=True)
class DerivedPose:
    base_pivot: Point
    rod1_pivot: Point
    rod1_center: Point
    rod1_rotation: float
    rod2_attachment: Point
    rod2_pivot: Point
    rod2_center: Point
    rod2_rotation: float
    rod1_length: float
    rod2_length: float

    def rod1_endpoints(self):
        return _endpoints(self.rod1_center, self.rod1_rotation, self.rod1_length)

    def rod2_endpoints(self):
        return _endpoints(self.rod2_center, self.rod2_rotation, self.rod2_length)


def _direction(angle):
    # angle 0 hangs straight down
    return np.array([np.sin(angle), -np.cos(angle)])


def _endpoints(center, rotation, length):
    c = np.asarray(center)
    half = 0.5 * length * _direction(rotation)
    return tuple(c - half), tuple(c + half)


def _point(v):
    return float(v[0]), float(v[1])


def attachment_point(theta1, params: SimulationParameters):
    """Where rod 2 hangs from rod 1, in world space."""
    u1 = _direction(theta1)
    pivot = np.array(params.base_pivot) + params.pivot_position * params.rod1_length * u1
    return pivot + params.rod2_attachment_position * params.rod1_length * u1


def compute_pose(state: SimulationState, params: SimulationParameters) -> DerivedPose:
    """
    Place both rods from the current angles.

    Rod 2's stored angle is relative to rod 1, so it is drawn at
    theta1 + theta2.
    """
    l1, l2 = params.rod1_length, params.rod2_length
    base = np.array(params.base_pivot)
    abs_theta2 = state.theta1 + state.theta2
    u1 = _direction(state.theta1)
    u2 = _direction(abs_theta2)

    pivot = base + params.pivot_position * l1 * u1
    rod1_center = pivot + 0.5 * l1 * u1

    attachment = pivot + params.rod2_attachment_position * l1 * u1
    rod2_pivot = attachment + params.rod2_pivot_position * l2 * u2
    rod2_center = rod2_pivot + 0.5 * l2 * u2

    return DerivedPose(
        base_pivot=_point(base),
        rod1_pivot=_point(pivot),
        rod1_center=_point(rod1_center),
        rod1_rotation=float(state.theta1),
        rod2_attachment=_point(attachment),
        rod2_pivot=_point(rod2_pivot),
        rod2_center=_point(rod2_center),
        rod2_rotation=float(abs_theta2),
        rod1_length=l1,
        rod2_length=l2,
    )
