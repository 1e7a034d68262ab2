from __future__ import annotations

from collections.abc import Callable

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ..core.engine import ChoiceOutcome
from ..core.interfaces import PathReport
from ..core.models import Choice, Drill, OutcomeKind, ScenarioNode, Session, StepStatus
from ..core.scoring import PASS_THRESHOLD, ChoiceQuality, FinalScore, choice_quality

_QUALITY_STYLE = {
    ChoiceQuality.BEST: "green",
    ChoiceQuality.GOOD: "cyan",
    ChoiceQuality.POOR: "red",
}

_STATUS_STYLE = {
    StepStatus.FOLLOWED: ("blue", "You followed this optimal step"),
    StepStatus.DEVIATED: ("yellow", "You were here, but chose a different path"),
    StepStatus.MISSED: ("green", "You missed this optimal step"),
}

# Characters of node text shown per optimal-path step.
_EXCERPT = 50


class RichPresenter:
    def __init__(self, *, no_color: bool = False, input_fn: Callable[[str], str] = input):
        # Default: color ON (forced), unless explicitly disabled via --no-color.
        if no_color:
            self.console = Console(force_terminal=False, color_system=None)
        else:
            self.console = Console(force_terminal=True, color_system="auto")
        self.quit_requested = False
        self._input = input_fn
        self._drill: Drill | None = None

    def start_drill(self, drill: Drill) -> None:
        self._drill = drill
        guide = (
            f"{escape(drill.description)}\n\n"
            "- Read each situation carefully.\n"
            "- Type the number next to your chosen action.\n"
            "- After each choice you'll see why it helps or hurts.\n"
            f"- Aim for [bold]{PASS_THRESHOLD}%[/] or higher to pass.\n\n"
            "[bold]Controls[/]: numbers = act • h = help • q = quit"
        )
        self.console.print(Panel(guide, title=escape(drill.title), border_style="bold cyan"))
        self.console.print()

    def show_node(self, node: ScenarioNode, session: Session) -> None:
        title = self._drill.title if self._drill else "Drill"
        self.console.rule(f"{escape(title)}: Scenario {session.step_number}")

        info = Table.grid(padding=(0, 1))
        info.add_column(style="bold cyan", justify="right")
        info.add_column(justify="left")
        info.add_row("Score", f"{session.accumulated_score} XP")
        info.add_row("Situation", escape(node.description))
        self.console.print(Panel(info, border_style="magenta", expand=False))

        table = Table(show_header=True, header_style="bold blue", box=box.SIMPLE_HEAVY)
        table.add_column("#", justify="right", style="cyan", no_wrap=True)
        table.add_column("Action", overflow="fold")
        for i, choice in enumerate(node.choices, 1):
            table.add_row(str(i), escape(choice.text))
        self.console.print(table)

    def prompt_choice(self, n: int) -> int:
        while True:
            raw = self._input(f"Your choice (1-{n}), or 'q' to quit: ").strip().lower()
            if raw == "q":
                self.quit_requested = True
                return -1
            if raw in {"h", "help"}:
                self._print_help(n)
                continue
            if raw.isdigit():
                v = int(raw)
                if 1 <= v <= n:
                    return v - 1
            self.console.print(f"[red]Invalid input[/]. Please enter a number 1-{n} or 'q'.")

    def step_feedback(self, _node: ScenarioNode, choice: Choice, outcome: ChoiceOutcome) -> None:
        style = _QUALITY_STYLE[choice_quality(outcome.xp_delta)]
        sign = "+" if outcome.xp_delta >= 0 else ""
        self.console.print(f"\nYou chose: {escape(choice.text)} [{style}]({sign}{outcome.xp_delta} XP)[/]")
        if outcome.feedback:
            self.console.print(f"[bold]{escape(outcome.feedback)}[/]")
        self.console.print(f"[dim]Running score: {outcome.session.accumulated_score} XP[/]\n")

    def summary(self, drill: Drill, session: Session, final: FinalScore | None, report: PathReport) -> None:
        if final is None:
            self.console.print(f"Drill stopped after {len(session.steps)} step(s).")
            return

        ending = drill.graph.node(final.end_node_id)
        verdict = "Complete" if final.outcome is OutcomeKind.SUCCESS else "Failed"
        label = drill.badge_label(final.badge)
        border = "green" if final.passed else "red"

        result = Table(title=f"{drill.title} {verdict}", show_header=False)
        result.add_row("Ending:", escape(ending.description))
        result.add_row("XP earned:", f"{final.xp} / {final.max_possible_score}")
        result.add_row("Final score:", f"{final.percentage}%")
        result.add_row("Result:", "Passed" if final.passed else "Not passed")
        result.add_row("Badge:", escape(f"{label.icon} {label.name}".strip()))
        self.console.print("\n")
        self.console.print(Panel(result, border_style=border, expand=False))

        if final.percentage < 100 and report:
            self._print_optimal_path(drill, report)

    # --- helpers ---
    def _print_optimal_path(self, drill: Drill, report: PathReport) -> None:
        table = Table(title="Path to a Perfect Score", show_header=True, header_style="bold blue")
        table.add_column("#", justify="right")
        table.add_column("Situation", overflow="fold")
        table.add_column("Optimal choice", overflow="fold")
        table.add_column("You")
        for i, (step, status) in enumerate(report, 1):
            text = drill.graph.node(step.node_id).description
            excerpt = text if len(text) <= _EXCERPT else text[:_EXCERPT] + "..."
            choice = escape(step.choice_text) if step.choice_text is not None else "[dim](ending)[/]"
            style, note = _STATUS_STYLE[status]
            table.add_row(str(i), escape(excerpt), choice, f"[{style}]{note}[/]")
        self.console.print(table)

    def _print_help(self, n: int) -> None:
        table = Table(show_header=False)
        table.add_row("Choose action:", f"1–{n}")
        table.add_row("Help:", "h")
        table.add_row("Quit:", "q")
        self.console.print(Panel.fit(table, title="Controls", style="dim"))
