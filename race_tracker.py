import asyncio
import logging
from pathlib import Path
from typing import Any, Optional

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.reactive import reactive
from textual.widgets import Button, Footer, Header, Label, Static

from race.race_config import RaceConfig, load_race_config
from race.race_simulation import (
    ParticipantStatus,
    RaceSimulation,
    RaceState,
    is_race_going,
)

# Width of the progress track in terminal cells.
TRACK_WIDTH = 40
WALKER = "🚶"


def render_participant(status: ParticipantStatus, width: int = TRACK_WIDTH) -> str:
    """Draw the name, walker position, progress bar and percentages for one participant."""
    filled = int(status.progress_factor * width)
    walker_offset = min(max(filled, 0), width - 1)
    current_label = f"{status.current_progress}%"
    max_label = f"{status.max_progress}%"
    gap = max(width - len(current_label) - len(max_label), 1)
    return "\n".join(
        [
            status.name,
            " " * walker_offset + WALKER,
            "█" * filled + "░" * (width - filled),
            current_label + " " * gap + max_label,
        ]
    )


class ParticipantStatusDisplay(Static):
    status: reactive[Optional[ParticipantStatus]] = reactive(None)  # type: ignore[valid-type]

    def __init__(self, status: ParticipantStatus, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.set_reactive(ParticipantStatusDisplay.status, status)

    def on_mount(self) -> None:
        if self.status is not None:
            self.styles.color = self.status.color

    def render(self) -> str:
        if self.status is None:
            return ""
        return render_participant(self.status)


class RaceStatusDisplay(Static):
    BORDER_TITLE = "Race Status"
    race_state: reactive[RaceState] = reactive(RaceState.NOT_STARTED)  # type: ignore[valid-type]

    def render(self) -> str:
        if self.race_state == RaceState.RUNNING:
            return "Race in progress"
        elif self.race_state == RaceState.PAUSED:
            return "Race paused"
        elif self.race_state == RaceState.FINISHED:
            return "Race finished"
        else:
            return "Race not started"


class RaceTracker(App[Any]):  # type: ignore[type-arg]
    TITLE = "Race Tracker"
    SUB_TITLE = "Run a race"
    CSS = """
    Screen {
        align: center middle;
    }

    #race_screen {
        width: 60;
        height: auto;
        padding: 1 2;
    }

    #race_title {
        text-style: bold;
        margin-bottom: 1;
    }

    ParticipantStatusDisplay {
        height: 4;
        margin-bottom: 1;
    }

    RaceStatusDisplay {
        padding: 0 1;
        background: $surface;
        color: $foreground;
        border: $secondary tall;
    }

    #race_controls {
        height: auto;
        margin-top: 1;
    }

    #race_controls Button {
        width: 100%;
    }
    """

    BINDINGS = [
        Binding("s", "toggle_race", "Start/Pause"),
        Binding("r", "reset_race", "Reset"),
    ]

    def __init__(
        self,
        *,
        race_config: RaceConfig,
        log_path="race.log",
        **kwargs,
    ):
        super().__init__(**kwargs)

        # Setup logging
        logging.basicConfig(
            filename=log_path,
            filemode="a",
            format="%(asctime)s %(levelname)s:%(message)s",
            level=logging.INFO,
        )

        self.race_config = race_config
        self.simulation = RaceSimulation(
            race_config.build_participants(),
            tick_interval=race_config.tick_interval,
        )
        self._refresh_task: Optional[asyncio.Task] = None
        logging.info(f"Race tracker initialized: {self.simulation}")

    def compose(self) -> ComposeResult:
        yield Header()
        with Vertical(id="race_screen"):
            yield Label("Run a race", id="race_title")
            for index, status in enumerate(self.simulation.snapshot()):
                yield ParticipantStatusDisplay(status, id=f"participant_{index}")
            yield RaceStatusDisplay(id="race_status")
            with Vertical(id="race_controls"):
                yield Button("Start", id="start_btn", variant="primary")
                yield Button("Reset", id="reset_btn")
        yield Footer()

    async def on_mount(self) -> None:
        self._refresh_task = asyncio.create_task(self.refresh_race_display())

    async def on_unmount(self) -> None:
        if self._refresh_task is not None and not self._refresh_task.done():
            self._refresh_task.cancel()
        if is_race_going(self.simulation):
            await self.simulation.pause()

    def update_display(self) -> None:
        for display, status in zip(
            self.query(ParticipantStatusDisplay), self.simulation.snapshot()
        ):
            display.status = status
        self.query_one(RaceStatusDisplay).race_state = self.simulation.state
        self.query_one("#start_btn", Button).label = (
            "Pause" if is_race_going(self.simulation) else "Start"
        )

    async def refresh_race_display(self):
        try:
            while True:
                self.update_display()
                await asyncio.sleep(0.1)
        except asyncio.CancelledError:
            logging.info("Display refresh task cancelled")

    def start_race(self) -> None:
        if is_race_going(self.simulation):
            return
        session = self.simulation.start()
        session.add_done_callback(self._on_session_done)
        self.update_display()

    def _on_session_done(self, session: asyncio.Task) -> None:
        if session.cancelled():
            logging.info("Race session cancelled")
            return
        error = session.exception()
        if error is not None:
            logging.error(f"Race session failed: {error}")
            self.notify(f"Race stopped: {error}", severity="error")
        elif self.simulation.state == RaceState.FINISHED:
            self.notify("Race finished")

    async def action_toggle_race(self) -> None:
        if is_race_going(self.simulation):
            await self.pause_race()
        else:
            self.start_race()

    async def pause_race(self) -> None:
        try:
            await self.simulation.pause()
        except Exception as e:
            # Already reported by the session callback.
            logging.error(f"Failed to pause race: {e}")
        self.update_display()

    async def action_reset_race(self) -> None:
        if is_race_going(self.simulation):
            await self.pause_race()
        self.simulation.reset()
        self.update_display()

    async def on_button_pressed(self, event: Button.Pressed) -> None:
        button_id = event.button.id
        if button_id == "start_btn":
            await self.action_toggle_race()
        elif button_id == "reset_btn":
            await self.action_reset_race()


if __name__ == "__main__":
    app = RaceTracker(race_config=load_race_config(Path("config.json")))
    app.run()
