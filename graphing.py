from matplotlib.ticker import MaxNLocator
import matplotlib.pyplot as plt
import numpy as np
from rich.progress import Progress, SpinnerColumn, BarColumn, TextColumn

from config import *
from errors import InvalidConfiguration
from probabilities import CombineMode, build_deck, estimate_probability
from shufflers import make_shuffler
from utility import *
from data_management import current_deck_size


def graph_set_up():
    fig, ax = plt.subplots(figsize=(12, 7))
    fig.patch.set_facecolor('black')
    ax.set_facecolor('black')
    ax.set_ylabel("Probability", color='white')
    ax.tick_params(colors='white')
    ax.set_yticks(np.arange(0, 1.01, 0.1))
    ax.set_yticks(np.arange(0, 1.01, 0.02), minor=True)
    ax.grid(True, linestyle='--', alpha=0.5, color='white')
    ax.xaxis.set_major_locator(MaxNLocator(integer=True))
    ax.set_ylim(0, 1)
    ax.spines['bottom'].set_color('white')
    ax.spines['left'].set_color('white')
    ax.spines['top'].set_visible(False)
    ax.spines['right'].set_visible(False)
    ax.spines['bottom'].set_linewidth(1.5)
    ax.spines['left'].set_linewidth(1.5)
    return fig, ax


def probability_curve(conditions, deck_size, draw_counts, combine_mode, trial_count, shuffler_kind="fast",
                      seed=None, progress_sink=None):
    """Estimated probability for every draw count, sharing one deck."""
    deck = build_deck(conditions, deck_size)
    shuffler = make_shuffler(shuffler_kind, seed)
    probabilities = []
    for draw_count in draw_counts:
        result = estimate_probability(deck, conditions, draw_count, combine_mode, trial_count,
                                      shuffler=shuffler.spawn(1)[0])
        probabilities.append(result.probability)
        if progress_sink is not None:
            progress_sink(draw_count)
    return np.array(probabilities)


def page_graph():
    clear_screen()
    console.print("[header][6] Graphs[/header]\n")
    if not state["conditions"]:
        console.print("[error]Define at least one condition first.[/error]")
        pause()
        return

    deck_size = current_deck_size()
    x_min = get_int_input("Min cards drawn (≥1)", minimum=1, default=1)
    x_max = get_int_input(f"Max cards drawn (≥{x_min})", minimum=x_min, maximum=deck_size,
                          default=min(max(x_min, 15), deck_size))
    trial_count = get_int_input("Trials per point", minimum=1, default=40_000)
    compare = get_yes_no("Plot both AND and OR?")

    modes = [CombineMode.AND, CombineMode.OR] if compare else [CombineMode(state["combine_mode"])]
    colors = {CombineMode.AND: 'cyan', CombineMode.OR: 'magenta'}
    x_vals = np.arange(x_min, x_max + 1)

    curves = {}
    try:
        with Progress(SpinnerColumn(), TextColumn("[progress.description]{task.description}"), BarColumn(),
                      transient=True, console=console) as progress:
            for mode in modes:
                task = progress.add_task(f"Estimating {mode.value}...", total=len(x_vals))
                curves[mode] = probability_curve(
                    state["conditions"], deck_size, x_vals, mode, trial_count, state["shuffler"],
                    progress_sink=lambda _: progress.advance(task),
                )
    except InvalidConfiguration as e:
        console.print(f"[error]{e}[/error]")
        pause()
        return

    fig, ax = graph_set_up()
    for mode, probabilities in curves.items():
        ax.plot(x_vals, probabilities, linestyle='-', marker='o', color=colors[mode],
                label=combine_mode_descriptions[mode.value])
    names = ", ".join(condition.label for condition in state["conditions"])
    ax.set_title(f"{names} ({deck_size} card deck)", color='white')
    ax.set_xlabel("Cards Drawn", color='white')
    ax.legend(facecolor='black', labelcolor='white')
    plt.show()
