"""
Pointer interaction — drag either rod to pin it at a new angle.

Only active in position-fix mode and only inside an interaction session.
Pointer positions arrive in normalized device coordinates together with
the camera that produced them; they are cast as rays onto the z=0 plane
the pendulum swings in.
"""

import contextlib
import dataclasses
import enum
import math
from typing import Callable, Optional, Tuple

import numpy as np

from chaos_pendulum.integrator import Pin
from chaos_pendulum.params import SimulationParameters, SimulationState
from chaos_pendulum.pose import DerivedPose, attachment_point, compute_pose

# Rod 2 is drawn thinner than rod 1
ROD2_THICKNESS_SCALE = 0.8

_EPS = 1e-12


class InteractionMode(enum.Enum):
    FREE = "free"
    POSITION_FIX = "position-fix"


@dataclasses.dataclass(frozen=True)
class Ray:
    origin: np.ndarray
    direction: np.ndarray

    def at(self, t):
        return self.origin + t * self.direction


def _normalize(v):
    v = np.asarray(v, dtype=float)
    n = np.linalg.norm(v)
    if n < _EPS:
        raise ValueError("cannot normalize a zero vector")
    return v / n


class PerspectiveCamera:
    """Pinhole camera looking from ``position`` towards ``target``."""

    def __init__(self, position=(0.0, 1.0, 5.0), target=(0.0, 1.0, 0.0),
                 up=(0.0, 1.0, 0.0), fov=50.0, aspect=1.0):
        self.position = np.asarray(position, dtype=float)
        self.target = np.asarray(target, dtype=float)
        self.up = np.asarray(up, dtype=float)
        self.fov = fov
        self.aspect = aspect

    def ray(self, ndc) -> Optional[Ray]:
        """Ray through ``ndc``, or None when the view basis is degenerate."""
        try:
            forward = _normalize(self.target - self.position)
            right = _normalize(np.cross(forward, self.up))
        except ValueError:
            return None
        true_up = np.cross(right, forward)
        half_h = math.tan(math.radians(self.fov) / 2)
        half_w = half_h * self.aspect
        direction = forward + ndc[0] * half_w * right + ndc[1] * half_h * true_up
        return Ray(self.position.copy(), _normalize(direction))


class OrthographicCamera:
    """Axis-aligned view of the rectangle [left, right] x [bottom, top]."""

    def __init__(self, left, right, bottom, top, z=10.0):
        self.left, self.right = left, right
        self.bottom, self.top = bottom, top
        self.z = z

    def ray(self, ndc) -> Ray:
        x = self.left + (ndc[0] + 1) / 2 * (self.right - self.left)
        y = self.bottom + (ndc[1] + 1) / 2 * (self.top - self.bottom)
        return Ray(np.array([x, y, self.z]), np.array([0.0, 0.0, -1.0]))


def intersect_z_plane(ray: Ray) -> Optional[Tuple[float, float]]:
    """Point where the ray meets z=0, or None if it never does."""
    dz = ray.direction[2]
    if abs(dz) < _EPS:
        return None
    t = -ray.origin[2] / dz
    if t < 0:
        return None
    p = ray.at(t)
    return float(p[0]), float(p[1])


def ray_segment_distance(ray: Ray, a, b):
    """Closest distance between a ray and the segment a-b (3D points)."""
    a = np.asarray(a, dtype=float)
    b = np.asarray(b, dtype=float)
    d1 = ray.direction
    d2 = b - a
    r = ray.origin - a
    aa = d1 @ d1
    ee = d2 @ d2
    bb = d1 @ d2
    cc = d1 @ r
    ff = d2 @ r

    if ee < _EPS:
        s, t = max(-cc / aa, 0.0), 0.0
    else:
        denom = aa * ee - bb * bb
        s = max((bb * ff - cc * ee) / denom, 0.0) if denom > _EPS else 0.0
        t = (bb * s + ff) / ee
        if t < 0.0:
            t = 0.0
            s = max(-cc / aa, 0.0)
        elif t > 1.0:
            t = 1.0
            s = max((bb - cc) / aa, 0.0)

    return float(np.linalg.norm(ray.at(s) - (a + t * d2)))


def _in_plane(p):
    return np.array([p[0], p[1], 0.0])


class RodHitTester:
    """
    Hit regions for both rods as capsules around their centre lines.

    Rod 1 is tested first. Returns the link number or None.
    """

    def __init__(self, pose: DerivedPose, params: SimulationParameters):
        self.segments = (
            (1, pose.rod1_endpoints(), params.rod_thickness),
            (2, pose.rod2_endpoints(), params.rod_thickness * ROD2_THICKNESS_SCALE),
        )

    def __call__(self, ray: Ray) -> Optional[int]:
        for link, (a, b), radius in self.segments:
            if ray_segment_distance(ray, _in_plane(a), _in_plane(b)) <= radius:
                return link
        return None


def drag_angle(link, point, state: SimulationState, params: SimulationParameters):
    """Angle that points the given link at ``point``."""
    if link == 1:
        ox, oy = params.base_pivot
        return math.atan2(point[0] - ox, -(point[1] - oy))
    ox, oy = attachment_point(state.theta1, params)
    # rod 2's angle is stored relative to rod 1
    return math.atan2(point[0] - ox, -(point[1] - oy)) - state.theta1


class InteractionController:
    """
    Pin state machine for direct manipulation of the rods.

    Free -> pointer-down on a rod -> Pinned -> pointer-move updates the
    angle -> pointer-up/leave -> Free. The first pin wins until released.
    """

    def __init__(self, mode=InteractionMode.FREE):
        self._mode = InteractionMode(mode)
        self._active = False
        self.pinned_link = None
        self.pin_angle = None
        self.pointer = None

    @property
    def mode(self):
        return self._mode

    @mode.setter
    def mode(self, mode):
        self._mode = InteractionMode(mode)
        if self._mode is not InteractionMode.POSITION_FIX:
            self.release()

    @property
    def active(self):
        return self._active

    @property
    def enabled(self):
        return self._active and self._mode is InteractionMode.POSITION_FIX

    @contextlib.contextmanager
    def session(self):
        """Scope in which pointer events are listened to."""
        self._active = True
        try:
            yield self
        finally:
            self._active = False
            self.release()

    def pin(self) -> Optional[Pin]:
        if not self.enabled or self.pinned_link is None:
            return None
        return Pin(self.pinned_link, self.pin_angle)

    def pointer_down(self, ndc, camera, state: SimulationState,
                     params: SimulationParameters,
                     hit_tester: Optional[Callable[[Ray], Optional[int]]] = None):
        """Start a pin if the pointer is over a rod. Returns True on a new pin."""
        if not self.enabled or self.pinned_link is not None:
            return False
        ray = camera.ray(ndc)
        if ray is None:
            return False
        if hit_tester is None:
            hit_tester = RodHitTester(compute_pose(state, params), params)
        link = hit_tester(ray)
        if link is None:
            return False
        self.pinned_link = link
        # hold the rod where it was grabbed until the pointer moves
        self.pin_angle = state.theta1 if link == 1 else state.theta2
        self.pointer = intersect_z_plane(ray)
        return True

    def pointer_move(self, ndc, camera, state: SimulationState,
                     params: SimulationParameters):
        """Re-aim the pinned rod at the pointer. Returns True if it moved."""
        if not self.enabled or self.pinned_link is None:
            return False
        ray = camera.ray(ndc)
        point = intersect_z_plane(ray) if ray is not None else None
        if point is None:
            return False
        self.pointer = point
        self.pin_angle = drag_angle(self.pinned_link, point, state, params)
        return True

    def pointer_up(self):
        self.release()

    def pointer_leave(self):
        self.release()

    def release(self):
        self.pinned_link = None
        self.pin_angle = None
        self.pointer = None
