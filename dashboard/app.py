"""
Entrypoint: load config, init logging, build the fetcher and the three
demonstrations, run the interactive menu, handle graceful shutdown.
"""

import asyncio
import logging
import os
import signal
import sys
import threading
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

import httpx
import structlog
from dotenv import load_dotenv

from .config import Config
from .console import ConsoleReporter
from .demos.async_await import AsyncAwaitDemo
from .demos.base import Demo
from .demos.callbacks import CallbackDemo
from .demos.promises import PromiseDemo
from .fetcher import create_fetcher, timed
from .models import AsyncMethod
from .sources import DashboardSources

MENU_OPTIONS = (
    ("1", "Callback Version (with callback hell)"),
    ("2", "Promise Version (with chaining, all, race)"),
    ("3", "Async/Await Version (modern syntax)"),
    ("4", "Run All Versions (sequential)"),
    ("5", "Performance Comparison"),
    ("0", "Exit"),
)


def configure_logging(level: str = "INFO", renderer: str = "console"):
    """Route structlog through stdlib logging on stdout."""
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, str(level).upper(), logging.INFO),
        force=True,
    )

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]
    if renderer == "json":
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


class DashboardApp:
    """Interactive menu over the three async demonstrations."""

    def __init__(
        self,
        config: Config,
        reporter: ConsoleReporter = None,
        input_fn: Callable[[str], str] = input,
        client: httpx.AsyncClient = None,
    ):
        self.config = config
        self.reporter = reporter or ConsoleReporter()
        self.input_fn = input_fn
        self.client = client
        self.timings = config.timings()
        self.running = False
        self.interrupted = False
        self._current: Optional[asyncio.Task] = None
        self._signals: List[signal.Signals] = []
        self.demos: Dict[AsyncMethod, Demo] = {}
        self.logger = logging.getLogger(__name__)

    def _setup_logging(self):
        """Initialize logging configuration."""
        log_config = self.config.logging
        configure_logging(
            level=log_config.get('level', 'INFO'),
            renderer=log_config.get('renderer', 'console'),
        )
        self.logger.info("Logging initialized")

    def _setup_signal_handlers(self):
        """SIGINT and SIGTERM stop the menu and cancel the running step."""
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, self._handle_signal, sig)
            except (NotImplementedError, RuntimeError):
                # loop cannot watch signals here; Ctrl-C still raises KeyboardInterrupt
                return
            self._signals.append(sig)

    def _remove_signal_handlers(self):
        loop = asyncio.get_running_loop()
        for sig in self._signals:
            loop.remove_signal_handler(sig)
        self._signals.clear()

    def _handle_signal(self, signum: signal.Signals):
        self.logger.info(f"Received signal {signum.name}, initiating graceful shutdown...")
        self.interrupted = True
        self.stop_app()
        if self._current is not None:
            self._current.cancel()

    async def _step(self, aw: Awaitable[Any]) -> Any:
        """Run one menu step as a task a shutdown signal can cancel."""
        self._current = asyncio.ensure_future(aw)
        try:
            return await self._current
        finally:
            self._current = None

    async def _read_input(self, prompt: str) -> str:
        """Call the blocking input function without stalling the event loop.

        The read happens on a daemon thread so a prompt still waiting at
        shutdown does not keep the process alive.
        """
        loop = asyncio.get_running_loop()
        answer = loop.create_future()

        def deliver(value, error):
            if answer.done():
                return
            if error is not None:
                answer.set_exception(error)
            else:
                answer.set_result(value)

        def reader():
            try:
                value = self.input_fn(prompt)
            except Exception as e:
                loop.call_soon_threadsafe(deliver, None, e)
            else:
                loop.call_soon_threadsafe(deliver, value, None)

        threading.Thread(target=reader, name="menu-input", daemon=True).start()
        return await answer

    def _build_demos(self, sources: DashboardSources) -> Dict[AsyncMethod, Demo]:
        return {
            demo.method: demo
            for demo in (
                CallbackDemo(sources, self.reporter, self.timings),
                PromiseDemo(sources, self.reporter, self.timings),
                AsyncAwaitDemo(sources, self.reporter, self.timings),
            )
        }

    def show_menu(self):
        print_ = self.reporter.console.print
        print_("\nAsync Weather & News Dashboard\n")
        print_("Choose an asynchronous programming demonstration:\n")
        for key, label in MENU_OPTIONS:
            print_(f"{key}. {label}")
        print_("")

    async def get_choice(self) -> str:
        return (await self._read_input("Enter your choice (0-5): ")).strip()

    async def wait_for_user_input(self):
        await self._read_input("\nPress Enter to return to menu...")

    async def run_demo(self, method: AsyncMethod):
        await self.demos[method].run()
        await self.wait_for_user_input()

    async def run_all(self):
        self.reporter.header("ALL VERSIONS")
        self.reporter.info("Running all asynchronous implementations sequentially...")

        for index, demo in enumerate(self.demos.values()):
            if index:
                self.reporter.console.print("\n" + "=" * 80 + "\n")
            await demo.run()

        self.reporter.footer("ALL VERSIONS")
        await self.wait_for_user_input()

    async def compare_performance(self) -> List[Tuple[str, float]]:
        """Time every demonstration end to end and report the spread."""
        self.reporter.header("PERFORMANCE COMPARISON")
        self.reporter.info("Comparing performance of different async patterns...")

        results: List[Tuple[str, float]] = []
        for index, demo in enumerate(self.demos.values()):
            if index:
                await asyncio.sleep(self.timings.between_demos)

            label = demo.method.value.title()
            self.reporter.section(f"Testing {label} Performance")
            _, duration = await timed(demo.run())
            results.append((label, duration))
            self.reporter.timing(f"{label} method total time", duration)

        self.reporter.section("Performance Comparison Results")
        if len(results) > 1:
            fastest = min(results, key=lambda r: r[1])
            slowest = max(results, key=lambda r: r[1])
            self.reporter.success(f"Fastest: {fastest[0]} ({fastest[1]:.0f}ms)")
            self.reporter.info(f"Slowest: {slowest[0]} ({slowest[1]:.0f}ms)")

            difference = slowest[1] - fastest[1]
            percentage = (difference / slowest[1] * 100) if slowest[1] else 0.0
            self.reporter.data("Performance Difference", f"{difference:.0f}ms ({percentage:.1f}% faster)")

        for label, duration in results:
            self.reporter.data(label, f"{duration:.0f}ms")

        self.reporter.footer("PERFORMANCE COMPARISON")
        await self.wait_for_user_input()
        return results

    async def start_app(self) -> int:
        """Run the menu loop until the user exits. Returns the process exit code."""
        self.logger.info(f"Weather endpoint: {self.config.endpoints().weather_url}")
        self.logger.info(f"News endpoint: {self.config.endpoints().news_url}")

        fetcher = await create_fetcher(self.config.fetch_options(), self.config.user_agent, client=self.client)
        async with fetcher:
            sources = DashboardSources(fetcher, self.config.endpoints())
            self.demos = self._build_demos(sources)

            actions: Dict[str, Callable[[], Awaitable[None]]] = {
                "1": lambda: self.run_demo(AsyncMethod.CALLBACK),
                "2": lambda: self.run_demo(AsyncMethod.PROMISE),
                "3": lambda: self.run_demo(AsyncMethod.ASYNC_AWAIT),
                "4": self.run_all,
                "5": self.compare_performance,
            }

            self.reporter.console.print("Starting Async Weather & News Dashboard...\n")
            self.running = True
            self._setup_signal_handlers()
            try:
                await self._menu_loop(actions)
            except asyncio.CancelledError:
                # only a shutdown signal cancels the current step
                if not self.interrupted:
                    raise
            finally:
                self._remove_signal_handlers()

        if self.interrupted:
            self.reporter.console.print("\n\nShutting down gracefully...")
        self.stop_app()
        return 0

    async def _menu_loop(self, actions: Dict[str, Callable[[], Awaitable[Any]]]):
        while self.running:
            self.show_menu()
            try:
                choice = await self._step(self.get_choice())
            except EOFError:
                return

            if choice == "0":
                self.reporter.console.print("\nThanks for using the Async Weather & News Dashboard!")
                return

            action = actions.get(choice)
            if action is None:
                self.reporter.error("Invalid choice. Please enter a number between 0-5.")
                await asyncio.sleep(self.timings.invalid_choice_pause)
                continue

            try:
                await self._step(action())
            except EOFError:
                return

    def stop_app(self):
        """Stop the menu loop."""
        if not self.running:
            return
        self.logger.info("Stopping dashboard...")
        self.running = False


def main() -> int:
    """Main entry point for the dashboard application."""
    load_dotenv()

    try:
        config = Config(os.getenv('DASHBOARD_CONFIG'))
    except (FileNotFoundError, ValueError) as e:
        print(f"Fatal error during startup: {e}")
        return 1

    app = DashboardApp(config)
    app._setup_logging()

    try:
        return asyncio.run(app.start_app())
    except KeyboardInterrupt:
        app.reporter.console.print("\n\nShutting down gracefully...")
        return 0
    except Exception as e:
        app.logger.exception(f"Application failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
