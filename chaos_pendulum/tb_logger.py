"""
TensorBoard Logger — logs pendulum metrics to TensorBoard.
"""

from torch.utils.tensorboard import SummaryWriter


class TBLogger:
    """Wraps TensorBoard SummaryWriter for simulation metrics."""

    def __init__(self, log_dir="runs", log_interval=10, writer=None):
        self.writer = writer if writer is not None else SummaryWriter(log_dir=log_dir)
        self.log_interval = log_interval
        self.step_count = 0

    def log(self, simulation):
        """Log metrics from the simulation to TensorBoard."""
        self.step_count += 1
        if self.step_count % self.log_interval != 0:
            return

        t = simulation.tick
        metrics = simulation.get_metrics()

        self.writer.add_scalar("energy/total", metrics["energy"], t)
        for name in ("theta1", "theta2", "omega1", "omega2"):
            self.writer.add_scalar(f"pendulum/{name}", metrics[name], t)

        self.writer.add_scalar("integrator/sim_time", metrics["sim_time"], t)
        self.writer.add_scalar("integrator/steps_skipped", metrics["steps_skipped"], t)
        self.writer.add_scalar("interaction/pinned_link", metrics["pinned_link"], t)

    def close(self):
        self.writer.close()
