from dataclasses import dataclass, field

# Every participant races to the same ceiling.
MAX_PROGRESS = 100


@dataclass
class Participant:
    """Represents a racer with a fixed speed and a progress counter.

    The profile (name, increment, color, ceiling) is fixed at creation.
    Only current_progress changes during a race:
      • advance() moves it forward by progress_increment, clamped at max_progress.
      • reset() puts it back to 0.
    """

    name: str
    progress_increment: int
    color: str = "#FFFFFF"
    max_progress: int = MAX_PROGRESS
    current_progress: int = field(default=0, compare=False)

    _FIXED_FIELDS = ("name", "progress_increment", "color", "max_progress")

    def __post_init__(self):
        if (
            isinstance(self.progress_increment, bool)
            or not isinstance(self.progress_increment, int)
            or self.progress_increment <= 0
        ):
            raise ValueError("Progress increment must be a positive integer")
        if self.max_progress <= 0:
            raise ValueError("Max progress must be positive")
        if not 0 <= self.current_progress <= self.max_progress:
            raise ValueError("Current progress must be between 0 and max progress")
        object.__setattr__(self, "_initialized", True)

    def __setattr__(self, name, value):
        if name in self._FIXED_FIELDS and getattr(self, "_initialized", False):
            raise AttributeError(f"{name} cannot be changed after creation")
        super().__setattr__(name, value)

    @property
    def progress_factor(self) -> float:
        """Normalized completion ratio in [0.0, 1.0]."""
        return min(max(self.current_progress / self.max_progress, 0.0), 1.0)

    @property
    def is_finished(self) -> bool:
        return self.current_progress == self.max_progress

    def advance(self) -> int:
        """Apply one tick of progress and return the new value."""
        self.current_progress = min(
            self.current_progress + self.progress_increment, self.max_progress
        )
        return self.current_progress

    def reset(self) -> None:
        self.current_progress = 0

    def __str__(self) -> str:
        return f"{self.name} ({self.current_progress}/{self.max_progress})"
