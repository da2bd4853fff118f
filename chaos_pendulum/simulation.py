"""
Simulation — the per-frame driver around the pendulum kernel.

Each frame:
  Control surface → parameters → RK4 step (with pin) → pose → metrics

Pointer events are routed to the interaction controller together with
the current state so that rods can be grabbed and re-aimed.
"""

from chaos_pendulum.dynamics import total_energy
from chaos_pendulum.integrator import Integrator, clamp_dt
from chaos_pendulum.interaction import InteractionController, InteractionMode
from chaos_pendulum.params import ControlSurface
from chaos_pendulum.pose import compute_pose

HISTORY_LENGTH = 1000


class Simulation:
    """
    Owns the integrator and the interaction controller for one pendulum.
    """

    def __init__(self, controls: ControlSurface = None, mode=InteractionMode.FREE):
        self.controls = controls if controls is not None else ControlSurface()
        self.params = self.controls.parameters()
        self.integrator = Integrator(self.params)
        self.interaction = InteractionController(mode)
        self.pose = compute_pose(self.integrator.state, self.params)

        # Simulation clock
        self.tick = 0
        self.sim_time = 0.0

        # Metrics history
        self.energy_history = []
        self.theta1_history = []
        self.theta2_history = []

    @property
    def state(self):
        return self.integrator.state

    @property
    def mode(self):
        return self.interaction.mode

    @mode.setter
    def mode(self, mode):
        self.interaction.mode = mode

    def step(self, elapsed):
        """Advance one display frame of ``elapsed`` seconds; return the pose."""
        self.tick += 1
        # parameters are re-read every frame, sliders may have moved
        self.params = self.controls.parameters()

        if self.controls.consume_reset():
            self.integrator.reset(self.params)
        else:
            skipped = self.integrator.steps_skipped
            self.integrator.advance(self.params, elapsed, self.interaction.pin())
            if self.integrator.steps_skipped == skipped:
                self.sim_time += clamp_dt(elapsed, self.params)

        self.pose = compute_pose(self.integrator.state, self.params)
        self._record_metrics()
        return self.pose

    def reset(self):
        """Reinitialise the state immediately from the current controls."""
        self.params = self.controls.parameters()
        self.integrator.reset(self.params)
        self.pose = compute_pose(self.integrator.state, self.params)
        return self.pose

    def snapshot(self):
        """Copy of the state, safe to hand to another thread."""
        return self.integrator.snapshot()

    # ---- Pointer events ----

    def pointer_down(self, ndc, camera, hit_tester=None):
        return self.interaction.pointer_down(
            ndc, camera, self.integrator.state, self.params, hit_tester
        )

    def pointer_move(self, ndc, camera):
        return self.interaction.pointer_move(
            ndc, camera, self.integrator.state, self.params
        )

    def pointer_up(self):
        self.interaction.pointer_up()

    def pointer_leave(self):
        self.interaction.pointer_leave()

    # ---- Metrics ----

    def _record_metrics(self):
        state = self.integrator.state
        for history, value in (
            (self.energy_history, total_energy(state, self.params)),
            (self.theta1_history, state.theta1),
            (self.theta2_history, state.theta2),
        ):
            history.append(value)
            if len(history) > HISTORY_LENGTH:
                history.pop(0)

    def get_metrics(self):
        """Return current metrics dict."""
        state = self.integrator.state
        return {
            "tick": self.tick,
            "sim_time": self.sim_time,
            "theta1": state.theta1,
            "theta2": state.theta2,
            "omega1": state.omega1,
            "omega2": state.omega2,
            "energy": self.energy_history[-1] if self.energy_history else 0.0,
            "steps_taken": self.integrator.steps_taken,
            "steps_skipped": self.integrator.steps_skipped,
            "pinned_link": self.interaction.pinned_link or 0,
        }
