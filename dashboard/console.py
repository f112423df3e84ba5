"""
Console output formatting for the demonstrations
"""
from datetime import datetime, timezone
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.pretty import Pretty

from .models import DashboardData

BANNER_WIDTH = 60
RULE_WIDTH = 40


class ConsoleReporter:
    """Coloured, human-readable progress output.

    Distinct from logging: this is the demonstration's own narration.
    """

    def __init__(self, console: Console = None):
        self.console = console or Console(highlight=False)

    def _timestamp(self) -> str:
        return datetime.now(timezone.utc).isoformat()

    def header(self, title: str):
        self.console.print("\n" + "=" * BANNER_WIDTH)
        self.console.print(f"[bold cyan]ASYNC WEATHER & NEWS DASHBOARD - {escape(title.upper())}[/]")
        self.console.print(f"[bright_black]Started at: {self._timestamp()}[/]")
        self.console.print("=" * BANNER_WIDTH)

    def section(self, title: str):
        self.console.print(f"\n[bold yellow] {escape(title)}[/]")
        self.console.print("-" * RULE_WIDTH)

    def success(self, message: str):
        self.console.print(f"[green] {escape(message)}[/]")

    def error(self, message: str):
        self.console.print(f"[red] {escape(message)}[/]")

    def info(self, message: str):
        self.console.print(f"[blue]  {escape(message)}[/]")

    def warn(self, message: str):
        self.console.print(f"[yellow]  {escape(message)}[/]")

    def data(self, label: str, value: Any):
        self.console.print(f"[magenta] {escape(label)}:[/]", Pretty(value))

    def timing(self, operation: str, duration_ms: float):
        if duration_ms > 2000:
            color = "red"
        elif duration_ms > 1000:
            color = "yellow"
        else:
            color = "green"
        self.console.print(f"[{color}]  {escape(operation)}: {duration_ms:.0f}ms[/]")

    def separator(self):
        self.console.print(f"[bright_black]{'-' * RULE_WIDTH}[/]")

    def footer(self, title: str):
        self.console.print("\n" + "=" * BANNER_WIDTH)
        self.console.print(f"[bold cyan] {escape(title.upper())} DEMONSTRATION COMPLETED[/]")
        self.console.print(f"[bright_black]Finished at: {self._timestamp()}[/]")
        self.console.print("=" * BANNER_WIDTH + "\n")

    def dashboard(self, data: DashboardData, headlines: int = 3):
        self.section("Dashboard Data")

        weather = data.weather
        self.data("Weather", {
            'location': weather.location.label,
            'temperature': f"{weather.temperature}°C",
            'humidity': f"{weather.humidity}%",
            'windSpeed': f"{weather.wind_speed} km/h",
            'description': weather.description,
        })

        self.data("Latest News Headlines", [
            {'title': article.headline(), 'likes': article.likes, 'views': article.views}
            for article in data.news.articles[:headlines]
        ])
