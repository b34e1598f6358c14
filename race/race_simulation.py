import asyncio
import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable, Dict, List, Optional

from race.participant import Participant

# Delay between two progress increments, in seconds.
TICK_INTERVAL = 0.25

ProgressListener = Callable[[Participant], None]


class RaceState(Enum):
    NOT_STARTED = auto()
    RUNNING = auto()
    PAUSED = auto()
    FINISHED = auto()


@dataclass(frozen=True)
class ParticipantStatus:
    """What a display needs to draw one participant."""

    name: str
    current_progress: int
    max_progress: int
    progress_factor: float
    color: str

    @classmethod
    def of(cls, participant: Participant) -> "ParticipantStatus":
        return cls(
            name=participant.name,
            current_progress=participant.current_progress,
            max_progress=participant.max_progress,
            progress_factor=participant.progress_factor,
            color=participant.color,
        )


async def run(
    participant: Participant,
    *,
    interval: float = TICK_INTERVAL,
    stop_event: Optional[asyncio.Event] = None,
    on_tick: Optional[ProgressListener] = None,
) -> int:
    """
    Advance a participant once per interval until it reaches max progress.

    The stop event is checked at every delay boundary. When it is set the loop
    exits without applying the pending tick. Returns the number of ticks performed.
    """
    if stop_event is None:
        stop_event = asyncio.Event()
    ticks = 0
    while not participant.is_finished:
        if not stop_event.is_set():
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=interval)
            except asyncio.TimeoutError:
                pass
        if stop_event.is_set():
            logging.info(f"{participant.name} stopped at {participant.current_progress}")
            break

        participant.advance()
        ticks += 1
        logging.debug(f"{participant.name} tick {ticks}: {participant.current_progress}")
        if on_tick is not None:
            on_tick(participant)
    return ticks


class RaceSimulation:
    """Runs every participant on its own tick loop and tracks the race state."""

    def __init__(
        self,
        participants: List[Participant],
        *,
        tick_interval: float = TICK_INTERVAL,
    ):
        if not participants:
            raise ValueError("A race needs at least one participant")
        names = [participant.name for participant in participants]
        if len(set(names)) != len(names):
            raise ValueError(f"Participant names must be unique: {names}")
        if tick_interval < 0:
            raise ValueError("Tick interval must be >= 0")
        self.participants: List[Participant] = list(participants)
        self.tick_interval: float = tick_interval
        self.state: RaceState = RaceState.NOT_STARTED
        self._listeners: List[ProgressListener] = []
        self._stop_event: Optional[asyncio.Event] = None
        self._session: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self.state == RaceState.RUNNING

    def add_listener(self, listener: ProgressListener) -> None:
        """Register a callback invoked with the participant after every tick."""
        self._listeners.append(listener)

    def _notify(self, participant: Participant) -> None:
        for listener in self._listeners:
            listener(participant)

    def start(self) -> asyncio.Task:
        """Launch the tick loops. Must be called from a running event loop."""
        if self.is_running and self._session is not None:
            return self._session

        self._stop_event = asyncio.Event()
        self.state = RaceState.RUNNING
        self._session = asyncio.create_task(self._race(self._stop_event))
        logging.info(
            "Race started: %s",
            ", ".join(str(participant) for participant in self.participants),
        )
        return self._session

    async def _race(self, stop_event: asyncio.Event) -> Dict[str, int]:
        tasks = [
            asyncio.create_task(
                run(
                    participant,
                    interval=self.tick_interval,
                    stop_event=stop_event,
                    on_tick=self._notify,
                )
            )
            for participant in self.participants
        ]
        try:
            ticks = await asyncio.gather(*tasks)
        except BaseException:
            # Tick loops stop as a unit: one failing or the session being
            # cancelled takes the others down with it.
            stop_event.set()
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            self.state = RaceState.PAUSED
            logging.info("Race session stopped early")
            raise

        if all(participant.is_finished for participant in self.participants):
            self.state = RaceState.FINISHED
            logging.info("Race finished")
        else:
            self.state = RaceState.PAUSED
            logging.info("Race paused")
        return {
            participant.name: count
            for participant, count in zip(self.participants, ticks)
        }

    async def wait(self) -> Dict[str, int]:
        """Wait for the current session and return ticks performed per participant."""
        if self._session is None:
            return {participant.name: 0 for participant in self.participants}
        return await self._session

    async def pause(self) -> None:
        """Ask the tick loops to stop at their next delay boundary and wait for them."""
        if not self.is_running or self._stop_event is None:
            return
        logging.info("Pausing race")
        self._stop_event.set()
        await self.wait()

    async def run_race(self) -> Dict[str, int]:
        self.start()
        return await self.wait()

    def reset(self) -> None:
        if self.is_running:
            raise RuntimeError("Cannot reset while the race is running")
        for participant in self.participants:
            participant.reset()
        self.state = RaceState.NOT_STARTED
        self._session = None
        self._stop_event = None
        logging.info("Race reset")

    def snapshot(self) -> List[ParticipantStatus]:
        return [ParticipantStatus.of(participant) for participant in self.participants]

    def __str__(self) -> str:
        return (
            f"RaceSimulation(state={self.state.name}, "
            f"participants=[{', '.join(str(p) for p in self.participants)}])"
        )


def is_race_going(simulation: RaceSimulation) -> bool:
    return simulation.state == RaceState.RUNNING
