from concurrent.futures import ThreadPoolExecutor
from enum import Enum
from threading import Event, Lock
from time import sleep

from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from config import DEFAULT_TRIAL_COUNT, SIMULATION_CYCLES, console, state
from errors import InvalidConfiguration, SimulationAborted
from probabilities import CombineMode, build_deck, deck_size_for, estimate_probability, validate_run
from shufflers import make_shuffler
from utility import clear_screen, format_history_entry, pause


class RunState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class SimulationRun:
    """One probability estimate: Idle -> Running -> Completed | Failed.

    Inputs are validated before any work starts. A cancelled run ends Failed
    with :class:`SimulationAborted` and exposes no result; any finished run
    may be started again from scratch.
    """

    def __init__(self, conditions, deck_size, draw_count, combine_mode, trial_count=DEFAULT_TRIAL_COUNT,
                 shuffler=None, cycles=SIMULATION_CYCLES, workers=None):
        self.conditions = tuple(conditions)
        self.deck_size = deck_size
        self.draw_count = draw_count
        self.combine_mode = combine_mode
        self.trial_count = trial_count
        self.shuffler = shuffler
        self.cycles = cycles
        self.workers = workers

        self.state = RunState.IDLE
        self.result = None
        self.error = None
        self.completed_trials = 0
        self._cancel_event = Event()
        self._lock = Lock()

    @property
    def fraction_done(self):
        return self.completed_trials / self.trial_count if self.trial_count > 0 else 0.0

    @property
    def probability(self):
        return self.result.probability if self.result is not None else None

    def _begin(self):
        with self._lock:
            if self.state is RunState.RUNNING:
                raise RuntimeError("Simulation is already running")
            self.result = None
            self.error = None
            self.completed_trials = 0
            self._cancel_event.clear()
            try:
                self.combine_mode = validate_run(self.conditions, self.draw_count, self.combine_mode,
                                                 self.trial_count, self.cycles)
                deck = build_deck(self.conditions, self.deck_size)
            except InvalidConfiguration as e:
                self.state = RunState.FAILED
                self.error = e
                raise
            self.state = RunState.RUNNING
            return deck

    def _on_progress(self, completed, total):
        self.completed_trials = completed

    def _execute(self, deck):
        try:
            result = estimate_probability(
                deck,
                self.conditions,
                self.draw_count,
                self.combine_mode,
                self.trial_count,
                self._on_progress,
                shuffler=self.shuffler,
                cycles=self.cycles,
                workers=self.workers,
                cancel_event=self._cancel_event,
            )
        except BaseException as e:
            self.error = e
            self.state = RunState.FAILED
            raise
        self.result = result
        self.state = RunState.COMPLETED
        return result

    def run(self):
        return self._execute(self._begin())

    def start(self):
        deck = self._begin()
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="simulation")
        future = executor.submit(self._execute, deck)
        executor.shutdown(wait=False)
        return future

    def cancel(self):
        self._cancel_event.set()

    @property
    def cancelled(self):
        return isinstance(self.error, SimulationAborted)


def run_from_state():
    return SimulationRun(
        state["conditions"],
        deck_size_for(state["constructed"], state["companion"]),
        state["draw_count"],
        state["combine_mode"],
        trial_count=state["trial_count"],
        shuffler=make_shuffler(state["shuffler"]),
        workers=state["workers"],
    )


def page_estimate_probability():
    clear_screen()
    console.print("[header][4] Estimate Probability (Monte Carlo Simulation)[/header]\n")
    if not state["conditions"]:
        console.print("[error]Define at least one condition first.[/error]")
        pause()
        return

    try:
        run = run_from_state()
        future = run.start()
    except InvalidConfiguration as e:
        console.print(f"[error]{e}[/error]")
        pause()
        return

    console.print(f"[info]Running {run.trial_count:,} trials on a {run.deck_size} card deck "
                  f"({state['shuffler']} shuffler). Press Ctrl+C to cancel.[/info]")
    with Progress(SpinnerColumn(), TextColumn("[progress.description]{task.description}"), BarColumn(),
                  TaskProgressColumn(), TimeElapsedColumn(), console=console) as progress:
        task = progress.add_task("Shuffling...", total=run.trial_count)
        while not future.done():
            try:
                progress.update(task, completed=run.completed_trials)
                sleep(0.1)
            except KeyboardInterrupt:
                run.cancel()
        progress.update(task, completed=run.completed_trials)

    if run.state is RunState.COMPLETED:
        entry = format_history_entry(run.conditions, run.draw_count, run.combine_mode, run.probability)
        state["history"].append(entry)
        table = Table(show_header=True, header_style="bold blue")
        table.add_column("Combine", style="bold")
        table.add_column("Drawn", justify="right")
        table.add_column("Successes", justify="right")
        table.add_column("Probability", justify="right", style="cyan")
        table.add_row(
            CombineMode(run.combine_mode).value,
            str(run.draw_count),
            f"{run.result.success_count:,} / {run.result.total_trials:,}",
            f"{run.probability*100:.4f}% ({run.probability:.6f})",
        )
        console.print(table)
        console.print(f"\n[success]{entry}[/success]")
    elif run.cancelled:
        console.print("[warning]Simulation cancelled, no result recorded.[/warning]")
    else:
        console.print(f"[error]Simulation failed: {run.error}[/error]")
    pause()
