from dataclasses import replace

from rich.table import Table

from config import *
from errors import InvalidConfiguration
from probabilities import Condition, build_deck, deck_size_for, draw_sample_hand, label_slots
from utility import *


def current_deck_size():
    return deck_size_for(state["constructed"], state["companion"])


def conditions_copies():
    return sum(condition.copies_in_deck for condition in state["conditions"])


def ensure_default_condition():
    if not state["conditions"]:
        state["conditions"].append(Condition())


def page_deck_settings():
    while True:
        clear_screen()
        console.print("[header][1] Deck and Draw Settings[/header]\n")
        console.print(f"[info]Format: {'Constructed' if state['constructed'] else 'Limited'}"
                      f"{' + companion' if state['companion'] else ''} ({current_deck_size()} cards)[/info]")
        console.print(f"[info]Cards drawn: {state['draw_count']}[/info]")
        console.print(f"[info]Combine mode: {state['combine_mode']} - {combine_mode_descriptions[state['combine_mode']]}[/info]")
        console.print(f"[info]Trials: {state['trial_count']:,}[/info]")
        console.print(f"[info]Shuffler: {shuffler_descriptions[state['shuffler']]}[/info]")
        console.print(f"[info]Workers: {state['workers'] or 1}[/info]\n")
        console.print("[info]1. Toggle Constructed/Limited[/info]")
        console.print("[info]2. Toggle Companion (+20 cards)[/info]")
        console.print("[info]3. Set Cards Drawn[/info]")
        console.print("[info]4. Toggle AND/OR[/info]")
        console.print("[info]5. Set Trial Count[/info]")
        console.print("[info]6. Toggle Shuffler[/info]")
        console.print("[info]7. Set Workers[/info]")
        console.print("[info]8. Back[/info]")
        choice = console.input("[prompt]> [/prompt]")
        match choice:
            case "1" | "2":
                key = "constructed" if choice == "1" else "companion"
                state[key] = not state[key]
                if conditions_copies() > current_deck_size():
                    console.print(f"[warning]Conditions need {conditions_copies()} cards but the deck now holds "
                                  f"{current_deck_size()}. Reduce copies before estimating.[/warning]")
                    pause()
            case "3":
                state["draw_count"] = get_int_input("Cards drawn", minimum=1, default=state["draw_count"])
            case "4":
                state["combine_mode"] = "OR" if state["combine_mode"] == "AND" else "AND"
            case "5":
                state["trial_count"] = get_int_input("Number of trials", minimum=1, default=state["trial_count"])
            case "6":
                state["shuffler"] = "strong" if state["shuffler"] == "fast" else "fast"
            case "7":
                workers = get_int_input("Worker threads (1 = no sharding)", minimum=1, default=state["workers"] or 1)
                state["workers"] = workers if workers > 1 else None
            case "8" | "":
                return
            case _:
                console.print("[error]Invalid option.[/error]")
                pause()


def prompt_condition(existing=None):
    name = console.input(
        f"[prompt]Card name{f' ({existing.name})' if existing else ''}: [/prompt]"
    ).strip()
    if existing and not name:
        name = existing.name
    copies = get_int_input("Copies in deck", minimum=1,
                           default=existing.copies_in_deck if existing else DEFAULT_COPIES_IN_DECK)
    min_drawn = get_int_input("Minimum drawn", minimum=1, maximum=copies,
                              default=min(existing.min_drawn, copies) if existing else DEFAULT_MIN_DRAWN)
    if existing:
        return replace(existing, name=name, copies_in_deck=copies, min_drawn=min_drawn)
    return Condition(name, copies, min_drawn)


def fits_in_deck(conditions):
    try:
        build_deck(conditions, current_deck_size())
    except InvalidConfiguration as e:
        console.print(f"[error]{e}[/error]")
        pause()
        return False
    return True


def page_conditions():
    while True:
        clear_screen()
        console.print("[header][2] Conditions[/header]\n")
        for i, condition in enumerate(state["conditions"]):
            console.print(f"[condition][{i}] {describe_condition(condition) or condition.label}[/condition]")
        console.print(f"[info]Other cards: {current_deck_size() - conditions_copies()}[/info]\n")
        console.print("[info]1. Add Condition[/info]")
        console.print("[info]2. Edit/Remove Condition[/info]")
        console.print("[info]3. Back[/info]")
        choice = console.input("[prompt]> [/prompt]")
        match choice:
            case "1":
                try:
                    condition = prompt_condition()
                except InvalidConfiguration as e:
                    console.print(f"[error]{e}[/error]")
                    pause()
                    continue
                if fits_in_deck(state["conditions"] + [condition]):
                    state["conditions"].append(condition)
            case "2":
                index = console.input("[prompt]Enter condition index to edit/remove: [/prompt]")
                if not index.isdigit() or int(index) >= len(state["conditions"]):
                    console.print("[error]Invalid index.[/error]")
                    pause()
                    continue
                index = int(index)
                console.print(f"[info]Selected: {state['conditions'][index].label}[/info]")
                console.print("[info]1. Edit[/info]")
                console.print("[info]2. Remove[/info]")
                match console.input("[prompt]> [/prompt]"):
                    case "1":
                        try:
                            condition = prompt_condition(state["conditions"][index])
                        except InvalidConfiguration as e:
                            console.print(f"[error]{e}[/error]")
                            pause()
                            continue
                        updated = list(state["conditions"])
                        updated[index] = condition
                        if fits_in_deck(updated):
                            state["conditions"] = updated
                    case "2":
                        if len(state["conditions"]) <= 1:
                            console.print("[error]At least one condition must remain.[/error]")
                            pause()
                            continue
                        del state["conditions"][index]
                    case _:
                        console.print("[error]Invalid option.[/error]")
                        pause()
            case "3" | "":
                return
            case _:
                console.print("[error]Invalid option.[/error]")
                pause()


def page_draw_hand():
    try:
        deck, hand = draw_sample_hand(state["conditions"], current_deck_size(), state["draw_count"])
    except InvalidConfiguration as e:
        console.print(f"[error]{e}[/error]")
        pause()
        return
    drawn = len(hand)

    while True:
        clear_screen()
        console.print("[header][3] Sample Hand[/header]\n")
        for i, name in enumerate(label_slots(deck[:drawn], state["conditions"])):
            style = "info" if name == FILLER_LABEL else "condition"
            console.print(f"[{style}]{i + 1:>2}. {name}[/{style}]")
        console.print(f"\n[info]{len(deck) - drawn} cards left in deck[/info]\n")
        console.print("[info]1. Draw a Card[/info]")
        console.print("[info]2. New Hand[/info]")
        console.print("[info]3. Back[/info]")
        match console.input("[prompt]> [/prompt]"):
            case "1":
                if drawn < len(deck):
                    drawn += 1
                else:
                    console.print("[error]The deck is empty.[/error]")
                    pause()
            case "2":
                deck, hand = draw_sample_hand(state["conditions"], current_deck_size(), state["draw_count"])
                drawn = len(hand)
            case "3" | "":
                return
            case _:
                console.print("[error]Invalid option.[/error]")
                pause()


def page_history():
    clear_screen()
    console.print("[header][5] History[/header]\n")
    if not state["history"]:
        console.print("[info]No estimates yet.[/info]")
    for entry in state["history"]:
        console.print(f"[success]{entry}[/success]\n")
    if state["history"] and get_yes_no("Clear history?"):
        state["history"].clear()
        return
    pause()


def page_list():
    clear_screen()
    console.print("[header][7] State Summary[/header]\n")
    table = Table(show_header=True, header_style="bold blue")
    table.add_column("Setting", style="bold")
    table.add_column("Value", style="cyan")
    table.add_row("Deck size", str(current_deck_size()))
    table.add_row("Cards drawn", str(state["draw_count"]))
    table.add_row("Combine mode", combine_mode_descriptions[state["combine_mode"]])
    table.add_row("Trials", f"{state['trial_count']:,}")
    table.add_row("Shuffler", shuffler_descriptions[state["shuffler"]])
    console.print(table)

    conditions = Table(show_header=True, header_style="bold yellow")
    conditions.add_column("Condition", style="bold")
    conditions.add_column("Copies", justify="right")
    conditions.add_column("Min Drawn", justify="right")
    for condition in state["conditions"]:
        conditions.add_row(condition.label, str(condition.copies_in_deck), str(condition.min_drawn))
    conditions.add_row("Other cards", str(current_deck_size() - conditions_copies()), "-")
    console.print(conditions)
    pause()
