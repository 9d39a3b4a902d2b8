# main.py
"""
Main entry point for the Liquid Countdown application.

This script orchestrates the entire application lifecycle:
1. Loads configuration from `config.json`.
2. Initializes the logging system.
3. Sets up the display, the water simulation and the countdown.
4. Runs the frame loop, feeding measured frame time to the countdown.
5. Handles clean shutdown.
"""
import logging
import cProfile
import pstats
import io
from utils import setup_logging, load_config
from constants import FPS


def main():
    """
    The main function to run the countdown.
    """
    # Logging is not set up yet, so we use a print for this one error.
    try:
        config = load_config('config.json')
    except Exception as e:
        print(f"FATAL: Could not load config.json. Error: {e}")
        return

    setup_logging(config)

    logging.info("--- Liquid Countdown Starting ---")

    sim_params = config.get('simulation_parameters', {})
    countdown_params = config.get('countdown', {})
    run_params = config.get('run_control', {})
    vis_params = config.get('visualization', {})

    from simulation import Simulation
    from countdown import CountdownController, total_seconds
    from visualization import Visualizer

    # --- Component Initialization ---
    # 1. Initialize the visualizer first. It determines the scene dimensions.
    visualizer = Visualizer(vis_params)

    # 2. Build the simulation for the actual window size.
    sim = Simulation(sim_params, visualizer.sim_width, visualizer.sim_height)
    countdown = CountdownController(sim, countdown_params)

    duration = total_seconds(
        countdown_params.get('hours', 0),
        countdown_params.get('minutes', 1),
        countdown_params.get('seconds', 0),
    )
    countdown.start(duration)

    profiler = cProfile.Profile() if run_params.get('profile', False) else None

    log_throttle = run_params.get('log_throttle_steps', 300)
    # 0 means run until the window is closed.
    max_steps = run_params.get('max_steps', 0)

    running = True
    step_num = 0

    if profiler:
        profiler.enable()
    while running:
        dt = visualizer.clock.tick(FPS) / 1000.0
        countdown.advance(dt)
        step_num += 1

        if not visualizer.draw(countdown):
            running = False

        # Hot loops must throttle logs
        if step_num % log_throttle == 0:
            stats = sim.get_runtime_stats()
            logging.info(
                f"Frame {step_num} | {countdown.display_text()} remaining | "
                f"fill {stats['fill_fraction'] * 100:.1f}% | droplets {stats['droplets']}"
            )
            logging.debug(
                f"Frame {step_num} | impacts {stats['impacts']} | escaped {stats['escaped']} | "
                f"skipped spawns {stats['skipped_spawns']} | energy {stats['surface_energy']:.2f}"
            )

        if max_steps and step_num >= max_steps:
            logging.info(f"Reached max_steps ({max_steps}). Stopping.")
            running = False

    if profiler:
        profiler.disable()

    visualizer.close()
    logging.info("Frame loop finished.")

    if profiler:
        logging.info("--- Performance Profile ---")
        s = io.StringIO()
        # Sort by cumulative time spent in the function
        stats = pstats.Stats(profiler, stream=s).sort_stats('cumtime')
        stats.print_stats(20)
        logging.info(f"\n{s.getvalue()}")

    logging.info("--- Liquid Countdown Shutting Down ---")


if __name__ == "__main__":
    main()
