"""
Fixed-step RK4 integrator for the double pendulum.

One call per rendered frame. The frame time is clamped before use, a
pinned link is overwritten after the RK4 update, and any step that would
leave the state non-finite is dropped in favour of the previous state.
"""

import dataclasses
import logging
import math
from typing import Optional

import numpy as np

from chaos_pendulum.dynamics import DegenerateDynamicsError, derivatives
from chaos_pendulum.params import SimulationParameters, SimulationState

# Cap at ~60fps equivalent
MAX_FRAME_DT = 0.016

_log = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class Pin:
    """A link held at a pointer-derived angle (link is 1 or 2)."""
    link: int
    angle: float


def clamp_dt(dt_raw, params: SimulationParameters):
    """Clamp an untrusted frame time and apply the simulation speed."""
    dt_raw = float(dt_raw)
    if not math.isfinite(dt_raw) or dt_raw < 0.0:
        dt_raw = 0.0
    return min(dt_raw, MAX_FRAME_DT) * params.simulation_speed


def rk4(y, params, dt):
    """Classical RK4 update of the state vector y over dt."""
    k1 = derivatives(y, params)
    k2 = derivatives(y + 0.5 * dt * k1, params)
    k3 = derivatives(y + 0.5 * dt * k2, params)
    k4 = derivatives(y + dt * k3, params)
    return y + (dt / 6.0) * (k1 + 2 * k2 + 2 * k3 + k4)


def apply_pin(state: SimulationState, pin: Optional[Pin]):
    if pin is None:
        return state
    if pin.link == 1:
        return dataclasses.replace(state, theta1=pin.angle, omega1=0.0)
    if pin.link == 2:
        return dataclasses.replace(state, theta2=pin.angle, omega2=0.0)
    raise ValueError(f"no such link: {pin.link}")


def try_step(state: SimulationState, params: SimulationParameters, dt_raw,
             pin: Optional[Pin] = None):
    """
    Advance one frame and report whether the integration was accepted.

    Returns (new_state, accepted). A rejected step keeps the prior angles
    and velocities; the pin is applied either way.
    """
    dt = clamp_dt(dt_raw, params)
    y = state.as_array()
    try:
        with np.errstate(over="ignore", invalid="ignore"):
            y_next = rk4(y, params, dt)
    except DegenerateDynamicsError as exc:
        _log.debug("step skipped: %s", exc)
        return apply_pin(state.copy(), pin), False

    if not np.all(np.isfinite(y_next)):
        _log.debug("step skipped: non-finite state %s", y_next)
        return apply_pin(state.copy(), pin), False

    return apply_pin(SimulationState.from_array(y_next), pin), True


def step(state: SimulationState, params: SimulationParameters, dt_raw,
         pin: Optional[Pin] = None) -> SimulationState:
    """Return the state one frame later; the input state is not modified."""
    return try_step(state, params, dt_raw, pin)[0]


class Integrator:
    """
    Owns the mutable SimulationState and advances it in place.
    """

    def __init__(self, params: SimulationParameters, state: SimulationState = None):
        self.state = state if state is not None else SimulationState.initial(params)
        self.steps_taken = 0
        self.steps_skipped = 0

    def advance(self, params: SimulationParameters, dt_raw, pin: Optional[Pin] = None):
        new_state, accepted = try_step(self.state, params, dt_raw, pin)
        if accepted:
            self.steps_taken += 1
        else:
            self.steps_skipped += 1
        # update in place so callers holding a reference see the new values
        self.state.theta1 = new_state.theta1
        self.state.theta2 = new_state.theta2
        self.state.omega1 = new_state.omega1
        self.state.omega2 = new_state.omega2
        return self.state

    def reset(self, params: SimulationParameters):
        """Reinitialise to the configured initial angles and velocity."""
        initial = SimulationState.initial(params)
        self.state.theta1 = initial.theta1
        self.state.theta2 = initial.theta2
        self.state.omega1 = initial.omega1
        self.state.omega2 = initial.omega2
        return self.state

    def snapshot(self) -> SimulationState:
        return self.state.copy()
