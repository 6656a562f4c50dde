# nav_config.py
# All tuneable constants in one place.
# Pass a NavConfig instance to every module that needs settings.

import os
from dataclasses import dataclass
from typing import Optional, Tuple


# ---------------------------------------------------------------------------
# Physical constants
# ---------------------------------------------------------------------------

WALKING_SPEED_MPS: float = 1.4          # average walking speed, m/s
METERS_PER_DEGREE: float = 111_320.0    # degree → metre approximation near the equator

DEFAULT_IMAGE_SIZE: Tuple[int, int] = (1000, 800)   # (width, height) until measured


# ---------------------------------------------------------------------------
# Main config
# ---------------------------------------------------------------------------

@dataclass
class NavConfig:
    # Routing
    walking_speed_mps: float = WALKING_SPEED_MPS

    # Progress tracking
    arrival_threshold_m: float = 5.0           # strictly closer than this → arrived
    step_advance_threshold_m: float = 20.0     # distance to a step's end that completes it

    # Announcements
    announcement_cooldown_s: float = 10.0
    feature_announcement_radius_m: float = 30.0
    turn_announcement_distances_m: Tuple[float, float, float, float] = (100.0, 50.0, 20.0, 5.0)
    destination_approach_m: float = 50.0
    destination_near_m: float = 20.0

    # Floor plans
    bounds_margin_deg: float = 0.0005          # ≈ 50 m of GPS noise around the building
    default_image_width: int = DEFAULT_IMAGE_SIZE[0]
    default_image_height: int = DEFAULT_IMAGE_SIZE[1]

    # Floor detection
    meters_per_degree: float = METERS_PER_DEGREE
    floor_cycle_period_s: float = 60.0

    # Logging
    log_dir: Optional[str] = None              # None disables route / session files
    route_filename: str = "active_route.json"
    session_log_filename: str = "nav_session.jsonl"

    @property
    def route_filepath(self) -> Optional[str]:
        if self.log_dir is None:
            return None
        return os.path.join(self.log_dir, self.route_filename)

    @property
    def session_log_filepath(self) -> Optional[str]:
        if self.log_dir is None:
            return None
        return os.path.join(self.log_dir, self.session_log_filename)
