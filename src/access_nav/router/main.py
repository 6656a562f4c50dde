# main.py
# Entry point: simulates a GPS loop feeding positions into NavigationSystem.
# In production, replace the simulated walk with your real GPS source.
#
# Two ways to start: nav.navigate_to_nearest(position, "elevator") or
# nav.start_navigation(position, destination). Then call nav.update(position)
# on every fix and react to the returned TickResult.

import logging
import time
from typing import Iterable, List, Optional

from ..tts.announcer import ConsoleAnnouncer
from .models import GeoPoint, SessionState, TickResult
from .nav_config import NavConfig
from .navigator import NavigationSystem
from .sample_data import FLOOR_HOTSPOTS, LEADERSHIP_CENTER_GPX, sample_buildings

# ------------------------------------------------------------------
# Simulation coordinates (Leadership Center entrance → elevator)
# ------------------------------------------------------------------
demo_walk = [
    GeoPoint(-1.9309500, 30.1528700),   # Start, outside the entrance
    GeoPoint(-1.9309453, 30.1528755),   # On the recorded track
    GeoPoint(-1.9308423, 30.1528791),   # Past the restroom
    GeoPoint(-1.9307301, 30.1528912),
    GeoPoint(-1.9306221, 30.1529017),   # Within arrival distance of the elevator
    GeoPoint(-1.9306170, 30.1529400),   # At the elevator
]


def simulate(
    system: NavigationSystem,
    positions: Iterable[Optional[GeoPoint]],
    interval_s: float = 0.0,
) -> List[TickResult]:
    """
    Feed positions into system.update() until arrival or the walk ends.

    Args:
        system:     A NavigationSystem with navigation already started.
        positions:  Position samples (None = no fix for that sample).
        interval_s: Sleep between samples.

    Returns:
        The TickResult of every processed sample.
    """
    results: List[TickResult] = []
    for position in positions:
        result = system.update(position)
        results.append(result)
        print(f"  GPS {position} → [{result.state.name}] {result.message}")
        if result.indoor_position is not None:
            ip = result.indoor_position
            print(f"      floor {ip.floor_id} at ({ip.x}, {ip.y})")

        if result.state == SessionState.ARRIVED:
            print("  ✓  Destination reached. Navigation ended.")
            break

        if interval_s:
            time.sleep(interval_s)
    return results


def main() -> None:
    # ------------------------------------------------------------------
    # Logging setup: configure once here, all modules inherit
    # ------------------------------------------------------------------
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    # Tweak thresholds or paths here, not inside the modules
    config = NavConfig(log_dir="logs")

    # 1. Boot system (parses route documents once)
    nav = NavigationSystem(
        [LEADERSHIP_CENTER_GPX],
        sample_buildings(),
        FLOOR_HOTSPOTS,
        config=config,
        announcer=ConsoleAnnouncer(),
    )
    nav.enter_building("building-1")

    # 2. Request a route
    success, msg, feature = nav.navigate_to_nearest(demo_walk[0], "elevator")
    if not success:
        print(f"[Main] Could not start navigation: {msg}")
        return
    print(f"[Main] {msg} Target: {feature}")

    print("\n--- GPS Loop Active ---")
    simulate(nav, demo_walk, interval_s=0.05)

    print("\n--- Session complete ---")
    print(f"    Log files written to: {config.log_dir}/")


if __name__ == "__main__":
    main()
