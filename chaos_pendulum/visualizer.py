"""
Real-Time Visualizer — matplotlib FuncAnimation host for the pendulum.

Panels:
  1. The pendulum with a trail behind the tip of rod 2
  2. Angle traces
  3. Energy

Sliders write into the simulation's control surface; a button requests a
reset and another toggles between free and position-fix mode. In
position-fix mode the rods can be dragged with the left mouse button.
"""

import time

import numpy as np
import matplotlib

# Pick the best available interactive backend
for _be in ("TkAgg", "Qt5Agg", "GTK3Agg", "Agg"):
    try:
        matplotlib.use(_be)
        break
    except Exception:
        continue

import matplotlib.pyplot as plt
from matplotlib.animation import FuncAnimation
from matplotlib.widgets import Button, Slider

from chaos_pendulum.interaction import InteractionMode, OrthographicCamera

# name, label, min, max
SLIDERS = [
    ("simulation_speed", "Speed", 0.1, 10.0),
    ("gravity", "Gravity", 0.1, 5.0),
    ("rod1_momentum_boost", "Boost", 0.0, 5.0),
    ("rod1_length", "Rod 1 length", 0.5, 3.0),
    ("rod2_length", "Rod 2 length", 0.5, 2.0),
    ("rod1_mass", "Rod 1 mass", 0.1, 20.0),
    ("rod2_mass", "Rod 2 mass", 0.1, 20.0),
    ("pivot_position", "Pivot on rod 1", -1.0, 1.0),
    ("rod2_attachment_position", "Rod 2 attachment", 0.0, 1.0),
    ("rod2_pivot_position", "Pivot on rod 2", -1.0, 1.0),
    ("initial_theta1_deg", "Initial θ₁ (deg)", -360.0, 360.0),
    ("initial_theta2_deg", "Initial θ₂ (deg)", -360.0, 360.0),
    ("initial_omega1", "Initial ω₁", -10.0, 10.0),
    ("rod_thickness", "Rod thickness", 0.02, 0.1),
    ("support_height", "Support height", 0.5, 3.0),
    ("base_height", "Base height", 0.1, 0.5),
]

SLIDER_ROWS = 8

TRAIL_LENGTH = 300


def pointer_ndc(ax, event):
    """Pixel position of a mouse event in the axes' normalized device coords."""
    bbox = ax.bbox
    x = (event.x - bbox.x0) / bbox.width * 2 - 1
    y = (event.y - bbox.y0) / bbox.height * 2 - 1
    return x, y


class RealTimeVisualizer:
    """Real-time matplotlib dashboard driving a Simulation."""

    def __init__(self, simulation, cfg):
        self.sim = simulation
        self.cfg = cfg
        vcfg = cfg.get("visualization", {})
        self.xlim = tuple(vcfg.get("xlim", (-3.5, 3.5)))
        self.ylim = tuple(vcfg.get("ylim", (-2.5, 4.0)))
        self._last_time = None
        self.trail_x = []
        self.trail_y = []

        plt.style.use("dark_background")
        self.fig = plt.figure(figsize=(14, 9), facecolor="#0a0a0a")
        self.fig.canvas.manager.set_window_title("Chaotic Double Pendulum")

        gs = self.fig.add_gridspec(
            2, 3, hspace=0.35, wspace=0.3,
            left=0.05, right=0.95, top=0.93, bottom=0.42
        )

        self.ax_pend = self.fig.add_subplot(gs[0:2, 0:2])
        self.ax_angles = self.fig.add_subplot(gs[0, 2])
        self.ax_energy = self.fig.add_subplot(gs[1, 2])

        # Sliders
        slider_color = "#2a2a3a"
        self.sliders = {}
        for i, (name, label, lo, hi) in enumerate(SLIDERS):
            col, row = divmod(i, SLIDER_ROWS)
            ax = self.fig.add_axes(
                [0.12 + 0.45 * col, 0.35 - 0.037 * row, 0.3, 0.022],
                facecolor=slider_color,
            )
            slider = Slider(ax, label, lo, hi, valinit=self.sim.controls[name],
                            color="#74c0fc")
            slider.on_changed(self._make_slider_callback(name))
            self.sliders[name] = slider

        ax_reset = self.fig.add_axes([0.1, 0.02, 0.12, 0.04])
        ax_mode = self.fig.add_axes([0.25, 0.02, 0.2, 0.04])
        self.b_reset = Button(ax_reset, "Reset", color=slider_color)
        self.b_mode = Button(ax_mode, self._mode_label(), color=slider_color)
        self.b_reset.on_clicked(self._on_reset)
        self.b_mode.on_clicked(self._on_mode)

        canvas = self.fig.canvas
        canvas.mpl_connect("button_press_event", self._on_press)
        canvas.mpl_connect("motion_notify_event", self._on_motion)
        canvas.mpl_connect("button_release_event", self._on_release)
        canvas.mpl_connect("axes_leave_event", self._on_leave)

    def _make_slider_callback(self, name):
        def _on_changed(val):
            self.sim.controls[name] = val
        return _on_changed

    def _mode_label(self):
        return f"Mode: {self.sim.mode.value}"

    def _on_reset(self, _event):
        self.sim.controls.request_reset()
        self.trail_x.clear()
        self.trail_y.clear()

    def _on_mode(self, _event):
        if self.sim.mode is InteractionMode.FREE:
            self.sim.mode = InteractionMode.POSITION_FIX
        else:
            self.sim.mode = InteractionMode.FREE
        self.b_mode.label.set_text(self._mode_label())

    # ---- Pointer events ----

    def _camera(self):
        return OrthographicCamera(*self.ax_pend.get_xlim(), *self.ax_pend.get_ylim())

    def _on_press(self, event):
        if event.inaxes is not self.ax_pend or event.button != 1:
            return
        self.sim.pointer_down(pointer_ndc(self.ax_pend, event), self._camera())

    def _on_motion(self, event):
        self.sim.pointer_move(pointer_ndc(self.ax_pend, event), self._camera())

    def _on_release(self, event):
        if event.button == 1:
            self.sim.pointer_up()

    def _on_leave(self, event):
        if event.inaxes is self.ax_pend:
            self.sim.pointer_leave()

    # ---- Frame loop ----

    def _elapsed(self):
        now = time.perf_counter()
        elapsed = 0.0 if self._last_time is None else now - self._last_time
        self._last_time = now
        return elapsed

    def _update(self, frame):
        """Animation update called each frame."""
        pose = self.sim.step(self._elapsed())

        (_, _), (tip_x, tip_y) = pose.rod2_endpoints()
        self.trail_x.append(tip_x)
        self.trail_y.append(tip_y)
        if len(self.trail_x) > TRAIL_LENGTH:
            self.trail_x.pop(0)
            self.trail_y.pop(0)

        # ---- Draw pendulum ----
        self.ax_pend.clear()
        self.ax_pend.set_xlim(*self.xlim)
        self.ax_pend.set_ylim(*self.ylim)
        self.ax_pend.set_aspect("equal")
        self.ax_pend.set_facecolor("#0a0a0a")
        self.ax_pend.set_title("Double Pendulum", fontsize=11, color="#ff6b6b")

        if len(self.trail_x) > 2:
            n_trail = len(self.trail_x)
            alphas = np.linspace(0.02, 0.6, n_trail)
            for i in range(n_trail - 1):
                self.ax_pend.plot(
                    self.trail_x[i:i + 2], self.trail_y[i:i + 2],
                    color="#ffa8a8", alpha=alphas[i], linewidth=0.8
                )

        pinned = self.sim.interaction.pinned_link
        for link, (a, b) in ((1, pose.rod1_endpoints()), (2, pose.rod2_endpoints())):
            color = "#ffd43b" if link == pinned else "#c0c0c0"
            self.ax_pend.plot([a[0], b[0]], [a[1], b[1]], color=color,
                              linewidth=4.0 if link == 1 else 3.2,
                              solid_capstyle="round", zorder=5)

        bx, by = pose.base_pivot
        self.ax_pend.scatter([bx], [by], color="white", s=30, zorder=6)
        ax_, ay_ = pose.rod2_attachment
        self.ax_pend.scatter([ax_], [ay_], color="#ff6b6b", s=20, zorder=6)

        # ---- Angle traces ----
        self.ax_angles.clear()
        self.ax_angles.set_facecolor("#0a0a0a")
        self.ax_angles.set_title("Angles", fontsize=9, color="#74c0fc")
        self.ax_angles.plot(self.sim.theta1_history[-300:], color="#ff6b6b",
                            linewidth=0.8, label="θ₁")
        self.ax_angles.plot(self.sim.theta2_history[-300:], color="#74c0fc",
                            linewidth=0.8, label="θ₂")
        self.ax_angles.legend(fontsize=6, loc="upper right", framealpha=0.3)
        self.ax_angles.tick_params(labelsize=6, colors="#444")

        # ---- Energy ----
        self.ax_energy.clear()
        self.ax_energy.set_facecolor("#0a0a0a")
        self.ax_energy.set_title("System Energy", fontsize=9, color="#ff922b")
        self.ax_energy.plot(self.sim.energy_history[-300:], color="#ff922b",
                            alpha=0.8, linewidth=0.8)
        self.ax_energy.tick_params(labelsize=6, colors="#444")

        metrics = self.sim.get_metrics()
        self.fig.suptitle(
            f"tick={metrics['tick']}  |  t={metrics['sim_time']:.2f}  |  "
            f"E={metrics['energy']:.3f}  |  skipped={metrics['steps_skipped']}  |  "
            f"{self.sim.mode.value}",
            fontsize=12, color="#aaa", y=0.97
        )

        return []

    def run(self, tb_logger=None):
        """Start the real-time animation."""
        def update_with_logging(frame):
            result = self._update(frame)
            if tb_logger is not None:
                tb_logger.log(self.sim)
            return result

        interval = self.cfg.get("visualization", {}).get("update_interval_ms", 16)
        with self.sim.interaction.session():
            self.anim = FuncAnimation(
                self.fig, update_with_logging,
                interval=interval, blit=False, cache_frame_data=False
            )
            plt.show()
