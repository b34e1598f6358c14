import tempfile
import unittest
from pathlib import Path
from textual.widgets import Button
from race.race_config import RaceConfig
from race.race_simulation import ParticipantStatus, RaceState
from race_tracker import WALKER, ParticipantStatusDisplay, RaceTracker, render_participant


class TestRenderParticipant(unittest.TestCase):
    def make_status(self, current_progress):
        return ParticipantStatus(
            name="Player 1",
            current_progress=current_progress,
            max_progress=100,
            progress_factor=current_progress / 100,
            color="#FF796B",
        )

    def test_not_started(self):
        lines = render_participant(self.make_status(0), width=20).split("\n")
        self.assertEqual(lines[0], "Player 1")
        self.assertEqual(lines[1], WALKER)
        self.assertEqual(lines[2], "░" * 20)
        self.assertTrue(lines[3].startswith("0%"))
        self.assertTrue(lines[3].endswith("100%"))
        self.assertEqual(len(lines[3]), 20)

    def test_halfway(self):
        lines = render_participant(self.make_status(50), width=20).split("\n")
        self.assertEqual(lines[1], " " * 10 + WALKER)
        self.assertEqual(lines[2], "█" * 10 + "░" * 10)
        self.assertTrue(lines[3].startswith("50%"))

    def test_finished_walker_stays_on_track(self):
        lines = render_participant(self.make_status(100), width=20).split("\n")
        self.assertEqual(lines[1], " " * 19 + WALKER)
        self.assertEqual(lines[2], "█" * 20)


class TestRaceTrackerApp(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.tmp_dir = tempfile.TemporaryDirectory()
        self.log_path = Path(self.tmp_dir.name) / "race.log"

    async def asyncTearDown(self):
        self.tmp_dir.cleanup()

    def make_app(self, tick_interval):
        return RaceTracker(
            race_config=RaceConfig(tick_interval=tick_interval), log_path=self.log_path
        )

    async def test_shows_one_display_per_participant(self):
        app = self.make_app(0.01)
        async with app.run_test():
            displays = list(app.query(ParticipantStatusDisplay))
            self.assertEqual([d.status.name for d in displays], ["Player 1", "Player 2"])
            self.assertEqual(str(app.query_one("#start_btn", Button).label), "Start")

    async def test_start_pause_and_reset(self):
        app = self.make_app(0.1)
        async with app.run_test() as pilot:
            await pilot.press("s")
            self.assertEqual(app.simulation.state, RaceState.RUNNING)
            started_at = app.simulation.participants[1].current_progress
            await pilot.pause(0.3)
            self.assertEqual(app.simulation.state, RaceState.RUNNING)
            self.assertGreater(app.simulation.participants[1].current_progress, started_at)

            await pilot.press("s")
            await pilot.pause(0.1)
            self.assertEqual(app.simulation.state, RaceState.PAUSED)
            progress = [p.current_progress for p in app.simulation.participants]
            self.assertTrue(any(value > 0 for value in progress))
            self.assertTrue(all(value < 100 for value in progress))
            self.assertEqual(str(app.query_one("#start_btn", Button).label), "Start")

            await pilot.press("r")
            await pilot.pause(0.1)
            self.assertEqual(app.simulation.state, RaceState.NOT_STARTED)
            self.assertTrue(all(p.current_progress == 0 for p in app.simulation.participants))

    async def test_race_runs_to_finish(self):
        app = self.make_app(0)
        async with app.run_test() as pilot:
            await pilot.click("#start_btn")
            await pilot.pause(0.5)
            self.assertEqual(app.simulation.state, RaceState.FINISHED)
            self.assertTrue(all(p.is_finished for p in app.simulation.participants))
            displays = list(app.query(ParticipantStatusDisplay))
            self.assertTrue(all(d.status.current_progress == 100 for d in displays))
            self.assertEqual(str(app.query_one("#start_btn", Button).label), "Start")

    async def test_reset_while_running(self):
        app = self.make_app(0.1)
        async with app.run_test() as pilot:
            await pilot.press("s")
            await pilot.pause(0.05)
            await pilot.click("#reset_btn")
            await pilot.pause(0.1)
            self.assertEqual(app.simulation.state, RaceState.NOT_STARTED)
            self.assertTrue(all(p.current_progress == 0 for p in app.simulation.participants))


if __name__ == "__main__":
    unittest.main()
