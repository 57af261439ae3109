from rich.theme import Theme
from rich.console import Console

custom_theme = Theme({
    "info": "cyan",
    "success": "green",
    "warning": "yellow",
    "error": "bold red",
    "header": "bold magenta",
    "prompt": "bold blue",
    "condition": "bold green",
    "highlight": "bold white on dark_red",
    "text": "bold yellow"
})

console = Console(theme=custom_theme)

ASCII_ART = """[highlight]
 ███████╗ ██████╗ █████╗ ███╗   ███╗    ██████╗ ███████╗████████╗███████╗ ██████╗████████╗ ██████╗ ██████╗
 ██╔════╝██╔════╝██╔══██╗████╗ ████║    ██╔══██╗██╔════╝╚══██╔══╝██╔════╝██╔════╝╚══██╔══╝██╔═══██╗██╔══██╗
 ███████╗██║     ███████║██╔████╔██║    ██║  ██║█████╗     ██║   █████╗  ██║        ██║   ██║   ██║██████╔╝
 ╚════██║██║     ██╔══██║██║╚██╔╝██║    ██║  ██║██╔══╝     ██║   ██╔══╝  ██║        ██║   ██║   ██║██╔══██╗
 ███████║╚██████╗██║  ██║██║ ╚═╝ ██║    ██████╔╝███████╗   ██║   ███████╗╚██████╗   ██║   ╚██████╔╝██║  ██║
 ╚══════╝ ╚═════╝╚═╝  ╚═╝╚═╝     ╚═╝    ╚═════╝ ╚══════╝   ╚═╝   ╚══════╝ ╚═════╝   ╚═╝    ╚═════╝ ╚═╝  ╚═╝
[/highlight]"""

ASCII_ART_SMALL = """[highlight]
 +-+-+-+-+ +-+-+-+-+-+-+-+-+
 |S|C|A|M| |D|E|T|E|C|T|O|R|
 +-+-+-+-+ +-+-+-+-+-+-+-+-+
[/highlight]
"""

# Deck size policy
CONSTRUCTED_DECK_SIZE = 60
LIMITED_DECK_SIZE = 40
COMPANION_EXTRA_CARDS = 20

DEFAULT_DRAW_COUNT = 7
DEFAULT_COPIES_IN_DECK = 4
DEFAULT_MIN_DRAWN = 1

# 100 cycles x 4000 trials; cycles only pace progress reporting
SIMULATION_CYCLES = 100
TRIALS_PER_CYCLE = 4000
DEFAULT_TRIAL_COUNT = SIMULATION_CYCLES * TRIALS_PER_CYCLE

DEFAULT_SHUFFLER = "fast"
FILLER_LABEL = "Other card"

state = {
    "constructed": True,
    "companion": False,
    "draw_count": DEFAULT_DRAW_COUNT,
    "combine_mode": "AND",
    "trial_count": DEFAULT_TRIAL_COUNT,
    "shuffler": DEFAULT_SHUFFLER,
    "workers": None,
    "conditions": [],
    "history": [],
}

combine_mode_descriptions = {
    "AND": "All conditions must occur",
    "OR": "Any condition may occur",
}

shuffler_descriptions = {
    "fast": "Fast pseudo-random (numpy PCG64, seedable)",
    "strong": "Cryptographically strong (OS entropy, slower)",
}
