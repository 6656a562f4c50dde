# nav_logger.py
# Handles all file I/O for the navigation session.
# Saves the active route as JSON and appends one JSON line per tick.
# Disabled entirely when NavConfig.log_dir is None.

import json
import os
import logging
from datetime import datetime
from typing import Optional

from .models import GeoPoint, NavigationRoute, TickResult
from .nav_config import NavConfig

logger = logging.getLogger(__name__)


class NavLogger:
    """
    Persists route data and navigation events to JSON files.

    Args:
        config: NavConfig instance for file paths and directories.
    """

    def __init__(self, config: Optional[NavConfig] = None) -> None:
        self.config = config or NavConfig()
        if self.enabled:
            os.makedirs(self.config.log_dir, exist_ok=True)

    @property
    def enabled(self) -> bool:
        return self.config.log_dir is not None

    # ------------------------------------------------------------------
    # Route persistence
    # ------------------------------------------------------------------

    def save_route(self, route: NavigationRoute) -> bool:
        """
        Serialize a route to JSON.

        Returns:
            True on success, False on failure or when logging is disabled.
        """
        filepath = self.config.route_filepath
        if filepath is None:
            return False
        try:
            data = {
                "saved_at": datetime.now().isoformat(),
                "step_count": len(route.steps),
                "route": route.to_dict(),
            }
            with open(filepath, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            logger.info(f"Route saved to {filepath} ({len(route.steps)} steps).")
            return True
        except (IOError, TypeError, ValueError) as e:
            logger.error(f"Failed to save route to {filepath}: {e}")
            return False

    def load_route_data(self, filepath: Optional[str] = None) -> Optional[dict]:
        """
        Load a previously saved route document.

        Args:
            filepath: Path override; uses config default if omitted.

        Returns:
            The route dict as written by save_route(), or None on failure.
        """
        path = filepath or self.config.route_filepath
        if path is None:
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
            return data["route"]
        except (IOError, KeyError, ValueError) as e:
            logger.error(f"Failed to load route from {path}: {e}")
            return None

    # ------------------------------------------------------------------
    # Session event logging
    # ------------------------------------------------------------------

    def log_event(self, result: TickResult, position: Optional[GeoPoint]) -> None:
        """
        Append a single navigation event to the session log file.

        Args:
            result:   TickResult from RouteTracker.
            position: Position of the tick (None when there was no fix).
        """
        event_file = self.config.session_log_filepath
        if event_file is None:
            return
        entry = {
            "timestamp": datetime.now().isoformat(),
            "lat": position.latitude if position else None,
            "lon": position.longitude if position else None,
            **result.to_dict(),
        }
        try:
            with open(event_file, "a", encoding="utf-8") as f:
                f.write(json.dumps(entry, ensure_ascii=False) + "\n")
        except IOError as e:
            logger.error(f"Failed to write event log: {e}")
