import logging
import time
from dataclasses import dataclass
from typing import List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text


@dataclass
class StepResult:
    name: str
    success: bool
    details: str
    elapsed: float


class StepTracker:
    """Records each pipeline stage with its outcome and how long it took"""

    def __init__(self, logger: logging.Logger, console: Optional[Console] = None):
        self.logger = logger
        self.console = console or Console()
        self.start_time = time.time()
        self._last_mark = self.start_time
        self.steps: List[StepResult] = []

    @property
    def errors(self) -> List[str]:
        return [f"{step.name}: {step.details}" for step in self.steps if not step.success]

    @property
    def completed_steps(self) -> List[str]:
        return [step.name for step in self.steps if step.success]

    def log_step(self, step: str, success: bool = True, details: str = ""):
        now = time.time()
        result = StepResult(step, success, details, now - self._last_mark)
        self._last_mark = now
        self.steps.append(result)

        icon, color = ("✅", "green") if success else ("❌", "red")
        self.console.print(Text(f"{icon} {step} ({result.elapsed:.1f}s)", style=color))
        if details:
            self.console.print(Text(f"   {details}", style="dim"))

        if success:
            self.logger.info(f"{step} completed in {result.elapsed:.1f}s {details}".rstrip())
        else:
            self.logger.error(f"{step} failed: {details}")

    def get_duration(self) -> float:
        return time.time() - self.start_time

    def print_summary(self):
        table = Table(title="📊 Pipeline Summary", show_header=True, header_style="bold magenta")
        table.add_column("Stage", style="cyan", no_wrap=True)
        table.add_column("Status", justify="center")
        table.add_column("Time", style="green", justify="right")

        for step in self.steps:
            table.add_row(step.name, "✅" if step.success else "❌", f"{step.elapsed:.1f}s")
        table.add_row("Total", f"{len(self.completed_steps)}/{len(self.steps)}", f"{self.get_duration():.1f}s")

        self.console.print()
        self.console.print(table)

        if self.errors:
            self.console.print(Panel(
                "\n".join(f"• {error}" for error in self.errors),
                title="❌ Pipeline stopped",
                border_style="red",
            ))
