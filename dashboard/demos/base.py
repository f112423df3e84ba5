"""Shared plumbing for the three demonstrations."""

from ..config import DemoTimings
from ..console import ConsoleReporter
from ..models import AsyncMethod
from ..sources import DashboardSources


class Demo:
    """One way of sequencing the weather and news fetches."""

    method: AsyncMethod

    def __init__(
        self,
        sources: DashboardSources,
        reporter: ConsoleReporter = None,
        timings: DemoTimings = None,
    ):
        self.sources = sources
        self.reporter = reporter or ConsoleReporter()
        self.timings = timings or DemoTimings()

    @property
    def fetcher(self):
        return self.sources.fetcher

    @property
    def endpoints(self):
        return self.sources.endpoints

    async def run(self):
        raise NotImplementedError
