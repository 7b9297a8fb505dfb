# nav_logger.py
# Route snapshots, the JSONL session log, and the operator's running
# summary. Every write failure is logged and reported, never raised.

import json
import logging
import os
from collections import deque
from datetime import datetime
from typing import Any, Deque, List, Optional

from .events import NAV_LOG, NavigationEvents
from .models import RouteStep
from .nav_config import NavConfig

# Configured once in main.py
logger = logging.getLogger(__name__)


class NavLogger:
    """
    Record of one rover session.

    Files are written only when config.log_dir is set; the running summary
    is always kept in memory.

    Args:
        config: NavConfig (log_dir, file names, summary size).
        events: Optional event bus; summary lines are re-emitted as NAV_LOG.
    """

    def __init__(
        self,
        config: Optional[NavConfig] = None,
        events: Optional[NavigationEvents] = None,
    ) -> None:
        self.config = config or NavConfig()
        self.events = events
        self._summary: Deque[str] = deque(maxlen=self.config.summary_size)
        if self.config.log_dir is not None:
            os.makedirs(self.config.log_dir, exist_ok=True)

    # ------------------------------------------------------------------
    # Route snapshot
    # ------------------------------------------------------------------

    def save_route(self, steps: List[RouteStep]) -> bool:
        """
        Write the active route to route_filepath.

        The file is replaced atomically so a reader never sees half a route.

        Returns:
            True if the snapshot was written.
        """
        target = self.config.route_filepath
        if target is None:
            return False
        tmp = target + ".tmp"
        snapshot = {
            "saved_at": datetime.now().isoformat(),
            "step_count": len(steps),
            "total_distance_m": sum(s.distance_meters for s in steps),
            "steps": [s.to_dict() for s in steps],
        }
        try:
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(snapshot, f, ensure_ascii=False, indent=2)
            os.replace(tmp, target)
        except OSError as e:
            logger.error(f"Could not write route snapshot {target}: {e}")
            return False
        logger.debug(f"Route snapshot: {len(steps)} steps -> {target}")
        return True

    def load_route(self, filepath: Optional[str] = None) -> Optional[List[RouteStep]]:
        """
        Read a route snapshot back.

        Accepts the snapshot written by save_route() or a bare list of step
        dicts. None when the file is missing or malformed.
        """
        source = filepath or self.config.route_filepath
        if source is None:
            logger.error("No route file given and no log_dir configured")
            return None
        try:
            with open(source, "r", encoding="utf-8") as f:
                raw = json.load(f)
            items = raw["steps"] if isinstance(raw, dict) else raw
            route = [RouteStep.from_dict(item) for item in items]
        except (OSError, KeyError, TypeError, ValueError) as e:
            logger.error(f"Unusable route file {source}: {e}")
            return None
        logger.info(f"Loaded {len(route)} steps from {source}")
        return route

    # ------------------------------------------------------------------
    # Session event log
    # ------------------------------------------------------------------

    def log_event(self, name: str, **payload: Any) -> None:
        """Append one JSON line {timestamp, event, **payload} to the session file."""
        if self.config.session_filepath is None:
            return
        entry = {"timestamp": datetime.now().isoformat(), "event": name, **payload}
        try:
            with open(self.config.session_filepath, "a", encoding="utf-8") as f:
                f.write(json.dumps(entry, ensure_ascii=False, default=str) + "\n")
        except OSError as e:
            logger.error(f"Session log write failed ({name}): {e}")

    # ------------------------------------------------------------------
    # Running summary
    # ------------------------------------------------------------------

    def add_to_summary(self, message: str) -> None:
        """Record one operator-facing line."""
        self._summary.append(message)
        logger.info(message)
        if self.events is not None:
            self.events.emit(NAV_LOG, message=message)

    @property
    def summary(self) -> List[str]:
        return list(self._summary)

    def clear_summary(self) -> None:
        self._summary.clear()
