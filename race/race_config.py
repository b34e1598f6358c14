import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from race.participant import MAX_PROGRESS, Participant
from race.race_simulation import TICK_INTERVAL

DEFAULT_PARTICIPANTS: list[dict[str, Any]] = [
    {"name": "Player 1", "progress_increment": 1, "color": "#FF796B"},
    {"name": "Player 2", "progress_increment": 2, "color": "#8BC34A"},
]


@dataclass
class RaceConfig:
    """Settings for a race session, usually read from config.json."""

    tick_interval: float = TICK_INTERVAL
    max_progress: int = MAX_PROGRESS
    participants: list[dict[str, Any]] = field(
        default_factory=lambda: [dict(p) for p in DEFAULT_PARTICIPANTS]
    )

    def __post_init__(self):
        if self.tick_interval < 0:
            raise ValueError("Tick interval must be >= 0")
        if self.max_progress <= 0:
            raise ValueError("Max progress must be positive")

    def build_participants(self) -> list[Participant]:
        """
        Turn the participant entries into Participant objects.
        Entries without a name or increment are skipped; entries with invalid
        values raise ValueError.
        """
        participants: list[Participant] = []
        for entry in self.participants:
            if isinstance(entry, Participant):
                participants.append(entry)
                continue
            if not isinstance(entry, dict):
                logging.warning(f"Skipping participant entry that is not an object: {entry!r}")
                continue
            name = entry.get("name")
            increment = entry.get("progress_increment")
            if name is None or increment is None:
                logging.warning(f"Skipping incomplete participant entry: {entry!r}")
                continue
            participants.append(
                Participant(
                    name=name,
                    progress_increment=increment,
                    color=entry.get("color", "#FFFFFF"),
                    max_progress=self.max_progress,
                )
            )
        if not participants:
            raise ValueError("No valid participants configured")
        return participants


def load_race_config(config_path: Optional[Path] = None) -> RaceConfig:
    """
    Read race settings from a JSON file.
    A missing or unreadable file falls back to the default two-player race.
    """
    config_path = config_path or Path("config.json")
    if not config_path.exists():
        logging.info(f"Config file {config_path} does not exist, using defaults")
        return RaceConfig()

    try:
        config_data = json.loads(config_path.read_text())
    except (OSError, json.JSONDecodeError) as e:
        logging.error(f"Failed to read {config_path}: {e}")
        return RaceConfig()

    if not isinstance(config_data, dict):
        logging.error(f"Expected a JSON object in {config_path}, using defaults")
        return RaceConfig()

    return RaceConfig(
        tick_interval=float(config_data.get("tick_interval", TICK_INTERVAL)),
        max_progress=int(config_data.get("max_progress", MAX_PROGRESS)),
        participants=config_data.get("participants") or [dict(p) for p in DEFAULT_PARTICIPANTS],
    )
