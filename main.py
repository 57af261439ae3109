from sys import exit

from config import *
from utility import *
from data_management import *
from graphing import page_graph
from runner import page_estimate_probability


def page_exit():
    clear_screen()
    console.print("[header]Exiting program.[/header]")
    exit()


def main():
    ensure_default_condition()
    while True:
        clear_screen()
        console.print("[header]Main Page[/header]\n")
        console.print("[info]1.[/info] [text]Deck and Draw Settings[/text]")
        console.print("[info]2.[/info] [text]Conditions[/text]")
        console.print("[info]3.[/info] [text]Draw Sample Hand[/text]")
        console.print("[info]4.[/info] [text]Estimate Probability[/text]")
        console.print("[info]5.[/info] [text]History[/text]")
        console.print("[info]6.[/info] [text]Graphs[/text]")
        console.print("[info]7.[/info] [text]Show All State[/text]")
        console.print("[info]8.[/info] [text]Exit[/text]")
        choice = console.input("[prompt]> [/prompt]")

        match choice:
            case "1":
                page_deck_settings()
            case "2":
                page_conditions()
            case "3":
                page_draw_hand()
            case "4":
                page_estimate_probability()
            case "5":
                page_history()
            case "6":
                page_graph()
            case "7":
                page_list()
            case "8":
                page_exit()
            case _:
                console.print("[error]Invalid option.[/error]")
                pause()


if __name__ == "__main__":
    main()
