from config import *
from shutil import get_terminal_size


def clear_screen():
    console.clear()
    columns, _ = get_terminal_size(fallback=(80, 24))
    if columns >= 110:
        console.print(ASCII_ART, justify="center")
    else:
        console.print(ASCII_ART_SMALL, justify="center")


def pause():
    console.print("[prompt]Press Enter to continue...[/prompt]", end="")
    console.input()


def get_int_input(prompt, minimum=0, maximum=None, default=None):
    while True:
        val = console.input(f"[prompt]{prompt} > [/prompt]").strip()
        if val == "" and default is not None:
            return default
        try:
            num = int(val)
            if num < minimum:
                console.print(f"[error]Value must be at least {minimum}.[/error]")
            elif maximum is not None and num > maximum:
                console.print(f"[error]Value must be at most {maximum}.[/error]")
            else:
                return num
        except ValueError:
            console.print("[error]Please enter a valid integer.[/error]")


def get_yes_no(prompt, default=False):
    hint = "Y/n" if default else "y/N"
    val = console.input(f"[prompt]{prompt} ({hint}): [/prompt]").strip().lower()
    if val == "":
        return default
    return val in ("y", "yes")


def describe_condition(condition):
    if condition.is_simple:
        return condition.name
    return f"at least {condition.min_drawn} of {condition.copies_in_deck} {condition.name}".rstrip()


def format_history_entry(conditions, draw_count, combine_mode, probability):
    if len(conditions) == 1:
        condition = conditions[0]
        return (f"==In {draw_count} cards at least {condition.min_drawn} of {condition.copies_in_deck} cards: "
                f"{probability:.2%}==")

    all_occur = combine_mode == "AND"
    delim = "AND " if all_occur else "OR "
    if all(condition.is_simple for condition in conditions):
        described = f" {delim}".join(condition.name for condition in conditions)
    else:
        described = f"\n{delim}".join(describe_condition(condition) for condition in conditions)
    title = "ALL events" if all_occur else "ANY event"
    return f"========== {title} in {draw_count} cards ==========\n{described}\n{probability:.2%}"
