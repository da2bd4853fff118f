#!/usr/bin/env python3
"""
Chaotic Double Pendulum — Main Entry Point.

Runs the double pendulum kernel under a real-time matplotlib host with
parameter sliders and drag-to-pose interaction, plus TensorBoard logging.

Usage:
    python main.py [--config configs/pendulum.yaml] [--mode position-fix]
    python main.py --headless --frames 600
"""

import argparse
import logging
import os

from chaos_pendulum.interaction import InteractionMode
from chaos_pendulum.params import controls_from_config, load_config
from chaos_pendulum.simulation import Simulation
from chaos_pendulum.tb_logger import TBLogger

HEADLESS_FRAME_DT = 1.0 / 60.0


def run_headless(sim, frames, tb_logger=None):
    with sim.interaction.session():
        for _ in range(frames):
            sim.step(HEADLESS_FRAME_DT)
            if tb_logger is not None:
                tb_logger.log(sim)
    m = sim.get_metrics()
    print(f"[pendulum] {m['tick']} frames, t={m['sim_time']:.3f}s, "
          f"skipped={m['steps_skipped']}")
    print(f"  → theta1={m['theta1']:.4f}  theta2={m['theta2']:.4f}  "
          f"omega1={m['omega1']:.4f}  omega2={m['omega2']:.4f}")
    print(f"  → energy={m['energy']:.4f}")


def main():
    parser = argparse.ArgumentParser(
        description="Chaotic Double Pendulum"
    )
    parser.add_argument(
        "--config", default="configs/pendulum.yaml",
        help="Path to YAML config file"
    )
    parser.add_argument(
        "--mode", choices=[m.value for m in InteractionMode], default=None,
        help="Interaction mode (overrides the config file)"
    )
    parser.add_argument(
        "--no-tb", action="store_true",
        help="Disable TensorBoard logging"
    )
    parser.add_argument(
        "--headless", action="store_true",
        help="Step the simulation without a window"
    )
    parser.add_argument(
        "--frames", type=int, default=600,
        help="Number of frames to run in headless mode"
    )
    parser.add_argument(
        "--verbose", action="store_true",
        help="Log skipped integration steps"
    )
    args = parser.parse_args()
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="[%(name)s] %(message)s")

    cfg = load_config(args.config)
    mode = args.mode or cfg.get("interaction", {}).get("mode", "free")

    controls = controls_from_config(cfg)
    sim = Simulation(controls, mode=InteractionMode(mode))
    s = sim.state
    print(f"[pendulum] Mode: {sim.mode.value}")
    print(f"[pendulum] Initial state: theta1={s.theta1:.4f} theta2={s.theta2:.4f} "
          f"omega1={s.omega1:.4f} omega2={s.omega2:.4f}")

    # TensorBoard
    tb_logger = None
    if not args.no_tb:
        tb_cfg = cfg["tensorboard"]
        os.makedirs(tb_cfg["log_dir"], exist_ok=True)
        tb_logger = TBLogger(
            log_dir=tb_cfg["log_dir"],
            log_interval=tb_cfg["log_interval"],
        )
        print(f"[pendulum] TensorBoard logging to {tb_cfg['log_dir']}/")
        print(f"         Run: tensorboard --logdir {tb_cfg['log_dir']}")

    try:
        if args.headless:
            run_headless(sim, args.frames, tb_logger)
        else:
            from chaos_pendulum.visualizer import RealTimeVisualizer

            print("[pendulum] Launching real-time visualization...")
            print("         Close the window to exit.")
            viz = RealTimeVisualizer(sim, cfg)
            viz.run(tb_logger=tb_logger)
    except KeyboardInterrupt:
        print("\n[pendulum] Interrupted.")
    finally:
        if tb_logger:
            tb_logger.close()
        print("[pendulum] Done.")


if __name__ == "__main__":
    main()
