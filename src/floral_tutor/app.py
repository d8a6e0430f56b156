"""Interactive CLI application."""
import os
import random
import sys
from pathlib import Path
from typing import Optional

from loguru import logger
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, IntPrompt, Prompt
from rich.table import Table

from floral_tutor.catalog import load_catalog
from floral_tutor.dashboard import (
    FILTERS, SORT_KEYS, compute_stats, filter_stats, progress_to_next_stage, sort_stats,
    summarize,
)
from floral_tutor.db import DEFAULT_DB_PATH
from floral_tutor.exceptions import TutorError
from floral_tutor.mastery import CORRECT_TO_ADVANCE, record_correct, record_incorrect
from floral_tutor.models import STAGE_LABELS, STAGE_ORDER, Item, Stage
from floral_tutor.quiz import build_question, check_answer
from floral_tutor.review import get_items_needing_review
from floral_tutor.selector import select_batch
from floral_tutor.store import ProgressStore

console = Console()

EXIT_WORDS = ("q", "menu")


class SessionExitRequested(Exception):
    """Raised when the learner leaves a session from any prompt."""


def configure_logging() -> None:
    logger.remove()
    logger.add(
        sys.stderr,
        level=os.environ.get("FLORAL_TUTOR_LOG_LEVEL", "WARNING"),
        format="<dim>{time:HH:mm:ss}</dim> | <level>{level: <8}</level> | {message}",
    )


def session_prompt(prompt: str, **kwargs) -> str:
    answer = Prompt.ask(prompt, **kwargs)
    if answer.strip().lower() in EXIT_WORDS:
        raise SessionExitRequested()
    return answer


def show_welcome():
    console.print(Panel(
        "[bold]Floral Tutor[/bold]\n[dim]Learn flowers by common and scientific name[/dim]",
        title="Welcome", border_style="magenta",
    ))


def show_menu():
    console.print("\n[bold]Commands:[/bold]")
    commands = [
        ("study", "Smart study session"),
        ("review", "Flowers you missed or haven't seen"),
        ("browse", "Flip through the flower cards"),
        ("dashboard", "Progress by flower and stage"),
        ("export", "Save progress to a file"),
        ("import", "Load progress from a file"),
        ("reset", "Clear all progress"),
        ("quit", "Exit"),
    ]
    for cmd, desc in commands:
        console.print(f"  [cyan]{cmd:<14}[/cyan] {desc}")


def ask_question(store: ProgressStore, catalog: list[Item], item: Item, number: int, total: int) -> bool:
    record = store.get(item.id)
    question = build_question(item, record, catalog)
    title = f"{number}/{total} · {STAGE_LABELS[question.kind]}"

    if question.kind is Stage.FLASHCARD:
        console.print(Panel(f"[bold]{item.common_names[0]}[/bold]", title=title, border_style="cyan"))
        session_prompt("[dim]Press Enter to reveal[/dim]", default="")
        console.print(f"  Also known as: {', '.join(item.common_names)}")
        console.print(f"  Scientific name: [italic]{item.scientific_name}[/italic]")
        return check_answer(question, "")

    console.print(Panel(f"[italic]{item.scientific_name}[/italic]", title=title, border_style="cyan"))
    if question.kind is Stage.MULTIPLE_CHOICE:
        letters = "abcd"[:len(question.options)]
        for letter, option in zip(letters, question.options):
            console.print(f"  [cyan]{letter})[/cyan] {option}")
        choice = session_prompt("Your answer", choices=list(letters))
        return check_answer(question, question.options[letters.index(choice)])
    if question.kind is Stage.SCIENTIFIC_NAME:
        return check_answer(question, session_prompt(f"Scientific name of {item.common_names[0]}"))
    answer = session_prompt("Common name")
    if question.kind is Stage.MASTERY:
        return check_answer(question, answer, session_prompt("Scientific name"))
    return check_answer(question, answer)


def run_quiz_session(store: ProgressStore, catalog: list[Item], items: list[Item]) -> tuple[int, int]:
    if not items:
        console.print("[yellow]Nothing to study right now![/yellow]")
        return 0, 0
    correct = 0
    answered = 0
    console.print(f"\n[bold]Session[/bold] · {len(items)} flowers\n")
    try:
        for i, item in enumerate(items, 1):
            if ask_question(store, catalog, item, i, len(items)):
                updated = record_correct(store, item.id)
                correct += 1
                if updated.stage is Stage.MASTERY and updated.stage_correct_count:
                    console.print("[green]Correct![/green]")
                else:
                    console.print(f"[green]Correct![/green] [dim]{updated.stage_correct_count}/"
                                  f"{CORRECT_TO_ADVANCE} in {STAGE_LABELS[updated.stage]}[/dim]")
            else:
                record_incorrect(store, item.id)
                console.print(f"[red]Incorrect.[/red] {', '.join(item.common_names)} "
                              f"([italic]{item.scientific_name}[/italic])")
            answered += 1
            console.print()
    except SessionExitRequested:
        console.print("[dim]Session ended early.[/dim]")
    if answered:
        console.print(f"[bold]Score: {correct}/{answered} ({correct / answered * 100:.0f}%)[/bold]\n")
    return correct, answered


BROWSE_HELP = "[dim]Enter flip · n next · p previous · s shuffle · r reset · q quit[/dim]"


def run_browse_session(items: list[Item], rng: Optional[random.Random] = None) -> int:
    """Step through flower cards without recording answers. Returns cards flipped."""
    if not items:
        console.print("[yellow]No flowers to browse![/yellow]")
        return 0
    rng = rng or random.Random()
    order = list(items)
    index = 0
    flipped = 0
    while True:
        item = order[index]
        console.print(Panel(f"[bold]{item.common_names[0]}[/bold]",
                            title=f"Card {index + 1}/{len(order)}", border_style="cyan"))
        action = Prompt.ask(BROWSE_HELP, default="", show_default=False).strip().lower()
        if action in EXIT_WORDS:
            break
        if action == "":
            console.print(Panel(
                f"[italic]{item.scientific_name}[/italic]\n{', '.join(item.common_names)}",
                border_style="green",
            ))
            flipped += 1
        elif action == "n":
            index = (index + 1) % len(order)
        elif action == "p":
            index = (index - 1) % len(order)
        elif action == "s":
            rng.shuffle(order)
            index = 0
        elif action == "r":
            order = list(items)
            index = 0
        else:
            console.print("[red]Unknown key. Try again.[/red]")
    return flipped


def cmd_browse(catalog: list[Item]):
    run_browse_session(catalog)


def cmd_study(store: ProgressStore, catalog: list[Item]):
    count = IntPrompt.ask("Number of flowers", default=10)
    run_quiz_session(store, catalog, select_batch(store, catalog, count))


def cmd_review(store: ProgressStore, catalog: list[Item]):
    items = get_items_needing_review(store, catalog)
    if not items:
        console.print("[green]No flowers need review! Great job![/green]")
        return
    count = IntPrompt.ask("Number of flowers", default=min(10, len(items)))
    run_quiz_session(store, catalog, items[:max(count, 0)])


def cmd_dashboard(store: ProgressStore, catalog: list[Item]):
    stats = compute_stats(store, catalog)
    summary = summarize(stats)
    console.print(Panel(
        f"Attempted [bold]{summary['attempted']}/{summary['total']}[/bold]  |  "
        f"Needs review [bold]{summary['needs_review']}[/bold]  |  "
        f"Success [bold]{summary['success_rate']}%[/bold]",
        title="Progress Dashboard", border_style="blue",
    ))
    console.print("  " + "  ".join(
        f"{STAGE_LABELS[stage]}: [bold]{summary['stage_counts'][stage]}[/bold]" for stage in STAGE_ORDER
    ))

    view = Prompt.ask("Filter", choices=list(FILTERS), default="all")
    order = Prompt.ask("Sort by", choices=list(SORT_KEYS), default="name")
    table = Table(title="Flowers")
    table.add_column("Flower", style="cyan")
    table.add_column("Stage")
    table.add_column("Progress")
    table.add_column("Success", justify="right")
    table.add_column("Review")
    for stat in sort_stats(filter_stats(stats, view), order):
        table.add_row(
            stat.item.common_names[0],
            STAGE_LABELS[stat.stage],
            progress_to_next_stage(stat),
            f"{round(stat.success_rate * 100)}%" if stat.attempted else "-",
            "[red]yes[/red]" if stat.needs_review else "",
        )
    console.print(table)


def cmd_export(store: ProgressStore):
    file_path = Prompt.ask("Export to", default="floral_progress.json")
    Path(file_path).write_text(store.export(), encoding="utf-8")
    console.print(f"[green]Progress saved to {file_path}[/green]")


def cmd_import(store: ProgressStore):
    file_path = Prompt.ask("File path")
    if not Path(file_path).exists():
        console.print(f"[red]File not found: {file_path}[/red]")
        return
    if store.import_snapshot(Path(file_path).read_text(encoding="utf-8")):
        console.print("[green]Progress imported.[/green]")
    else:
        console.print("[red]That file is not a valid progress export. Nothing was changed.[/red]")


def cmd_reset(store: ProgressStore):
    if Confirm.ask("Clear all progress? This cannot be undone", default=False):
        store.clear_all()
        console.print("[yellow]All progress cleared.[/yellow]")


def main():
    configure_logging()
    catalog_path = sys.argv[1] if len(sys.argv) > 1 else None
    try:
        catalog = load_catalog(catalog_path)
        store = ProgressStore(DEFAULT_DB_PATH)
    except TutorError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)

    show_welcome()

    while True:
        show_menu()
        choice = Prompt.ask("\n[bold]>[/bold]", default="study").strip().lower()
        try:
            if choice == "study":
                cmd_study(store, catalog)
            elif choice == "review":
                cmd_review(store, catalog)
            elif choice == "browse":
                cmd_browse(catalog)
            elif choice == "dashboard":
                cmd_dashboard(store, catalog)
            elif choice == "export":
                cmd_export(store)
            elif choice == "import":
                cmd_import(store)
            elif choice == "reset":
                cmd_reset(store)
            elif choice in ("quit", "exit", "q"):
                console.print("[dim]Happy gardening![/dim]")
                break
            else:
                console.print("[red]Unknown command. Try again.[/red]")
        except KeyboardInterrupt:
            console.print("\n[dim]Use 'quit' to exit.[/dim]")
        except TutorError as e:
            logger.error("Command {} failed: {}", choice, e)
            console.print(f"[red]Error: {e}[/red]")


if __name__ == "__main__":
    main()
