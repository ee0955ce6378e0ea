"""Run a query against a feed and act on the matches."""

import logging
import shlex
import time
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional

from rich.console import Console
from rich.markup import escape
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from ..config import Mode, RunConfig, SettingsModel
from ..download import DownloadOutcome, DownloadScheduler, HttpFetcher
from ..errors import EXIT_OK, EXIT_PARTIAL_DOWNLOAD
from ..ingestion import FeedChannel, FeedItem, FeedLoader
from ..output import write_feed
from ..query import EvaluationContext, NotExists, Predicate, evaluate, parse_query

logger = logging.getLogger(__name__)

console = Console()


class PipelineStage:
    """One step of a run: query, feed, select, or the mode itself."""

    def __init__(self, name: str, description: str):
        self.name = name
        self.description = description
        self.start_time: Optional[float] = None
        self.end_time: Optional[float] = None
        self.success = False
        self.error: Optional[str] = None
        self.stats: Dict = {}

    @contextmanager
    def track(self) -> Iterator[Dict]:
        """Time the enclosed block; yields the stats dict to fill in.

        Any exception marks the stage failed and is re-raised.
        """
        self.start_time = time.monotonic()
        try:
            yield self.stats
        except Exception as e:
            self.error = str(e)
            raise
        else:
            self.success = True
        finally:
            self.end_time = time.monotonic()

    @property
    def duration(self) -> float:
        """Seconds spent in the stage, 0.0 if it never ran."""
        if self.start_time is not None and self.end_time is not None:
            return self.end_time - self.start_time
        return 0.0


class Dispatcher:
    """Parses the query, loads the feed, selects items and runs the chosen mode."""

    def __init__(self, run_config: RunConfig, settings: Optional[SettingsModel] = None, output: Optional[Console] = None):
        """Initialize dispatcher."""
        self.run_config = run_config
        self.settings = settings or SettingsModel()
        self.console = output or console
        self.stages = [
            PipelineStage("query", "Parsing query"),
            PipelineStage("feed", "Loading feed"),
            PipelineStage("select", "Selecting items"),
            PipelineStage(run_config.mode.value, f"Running {run_config.mode.value}"),
        ]

    def _stage(self, name: str) -> PipelineStage:
        return next(stage for stage in self.stages if stage.name == name)

    def run(self) -> int:
        """
        Execute the run.

        Returns:
            Process exit code

        Raises:
            DumptruckError: for fatal query, load, config or write errors
        """
        predicate = self._parse()
        feed = self._load()
        matches = self._select(feed, predicate)

        with self._stage(self.run_config.mode.value).track():
            if self.run_config.mode is Mode.CHECK:
                exit_code = self.check(feed, matches)
            elif self.run_config.mode is Mode.DOWNLOAD:
                exit_code = self.download(feed, matches)
            else:
                exit_code = self.create(feed, matches)

        logger.debug(
            "Stage timings: %s",
            ", ".join(f"{s.name}={s.duration:.2f}s" for s in self.stages),
        )
        return exit_code

    def _parse(self) -> Predicate:
        with self._stage("query").track() as stats:
            predicate = parse_query(self.run_config.query)
            stats["kind"] = predicate.kind
        logger.debug("Parsed query %r as %r", self.run_config.query, predicate)
        return predicate

    def _load(self) -> FeedChannel:
        loader = FeedLoader(
            timeout=self.settings.http.timeout,
            user_agent=self.settings.http.user_agent,
        )
        with self._stage("feed").track() as stats:
            feed = loader.load(self.run_config.source, self.run_config.source_is_url)
            stats["items"] = feed.total_items
        logger.info("%s contains %d items", feed.title or self.run_config.source, feed.total_items)
        return feed

    def _select(self, feed: FeedChannel, predicate: Predicate) -> List[FeedItem]:
        with self._stage("select").track() as stats:
            context = None
            if isinstance(predicate, NotExists):
                context = EvaluationContext.from_directory(self.run_config.notexists_directory)
            matches = evaluate(feed.items, predicate, context)
            stats["matches"] = len(matches)
        return matches

    def check(self, feed: FeedChannel, matches: List[FeedItem]) -> int:
        """Report the matched items without touching the filesystem."""
        if not matches:
            self.console.print(f"[yellow]Didn't find any matches with query: {escape(self.run_config.query) or '(all)'}[/yellow]")
            return EXIT_OK

        table = Table(title=f"{escape(feed.title) or 'Feed'}: {len(matches)} of {feed.total_items} items match")
        table.add_column("#", style="cyan", justify="right")
        table.add_column("Title", style="bold")
        table.add_column("Published", style="yellow")
        table.add_column("Enclosure", style="blue")

        for item in matches:
            published = item.published_at.strftime("%Y-%m-%d %H:%M %z") if item.published_at else "-"
            enclosure = escape(item.enclosure_url) if item.enclosure_url else "[red]none[/red]"
            table.add_row(str(item.index), escape(item.title), published, enclosure)

        self.console.print(table)
        self.console.print(f"\nTo download these files run:\n\t{escape(self.download_command())}", soft_wrap=True)
        return EXIT_OK

    def download_command(self) -> str:
        """Command line that downloads the same matches."""
        source_flag = "--url" if self.run_config.source_is_url else "--file"
        parts = [
            "dumptruck",
            source_flag, self.run_config.source,
            "--output", str(self.run_config.output),
            "--ndownloads", str(self.run_config.ndownloads),
        ]
        if self.run_config.query:
            parts += ["--query", self.run_config.query]
        parts.append("download")
        return shlex.join(parts)

    def download(self, feed: FeedChannel, matches: List[FeedItem]) -> int:
        """Download the enclosures of the matches and report outcomes."""
        destination = self.run_config.output
        self.console.print(f"You are about to download the contents of the feed: [bold]{escape(feed.title)}[/bold]")

        fetcher = HttpFetcher(
            timeout=self.settings.download.timeout,
            retries=self.settings.download.retries,
            retry_delay_ms=self.settings.download.retry_delay_ms,
            user_agent=self.settings.http.user_agent,
        )

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TextColumn("{task.completed}/{task.total}"),
            TimeElapsedColumn(),
            console=self.console,
        ) as progress:
            task = progress.add_task("Downloading", total=len(matches))
            scheduler = DownloadScheduler(
                fetch=fetcher.fetch,
                max_concurrency=self.run_config.ndownloads,
                on_outcome=lambda outcome: progress.advance(task, 1),
            )
            outcomes = scheduler.run_sync(matches, destination)

        print_download_summary(outcomes, self.console)

        stage = self._stage(Mode.DOWNLOAD.value)
        succeeded = sum(1 for o in outcomes if o.succeeded)
        stage.stats.update({"succeeded": succeeded, "failed": len(outcomes) - succeeded})

        if succeeded == len(outcomes):
            if outcomes:
                self.console.print("[green]✅ Full download successfully completed[/green]")
            else:
                self.console.print("[yellow]Nothing to download[/yellow]")
            return EXIT_OK

        self.console.print(f"[red]❌ {len(outcomes) - succeeded} of {len(outcomes)} downloads failed[/red]")
        return EXIT_PARTIAL_DOWNLOAD

    def create(self, feed: FeedChannel, matches: List[FeedItem]) -> int:
        """Write the matches into a new feed document."""
        title = self.run_config.title
        if title is None:
            title = f"{feed.title}-{self.run_config.query}"

        path = write_feed(feed, matches, title, self.run_config.output)
        self.console.print(f"[green]✅ Created feed '{escape(title)}' with {len(matches)} items: {path}[/green]")
        return EXIT_OK


def print_download_summary(outcomes: List[DownloadOutcome], out: Optional[Console] = None) -> None:
    """Print a table of download outcomes in match order."""
    out = out or console
    if not outcomes:
        return

    table = Table(title="Download Summary")
    table.add_column("#", style="cyan", justify="right")
    table.add_column("Title")
    table.add_column("Status", style="bold")
    table.add_column("Details", style="dim")

    for outcome in outcomes:
        if outcome.succeeded:
            status = "[green]✓[/green]"
            details = str(outcome.destination_path)
        else:
            status = "[red]✗[/red]"
            details = outcome.reason or "Failed"
        table.add_row(str(outcome.item_index), escape(outcome.title), status, escape(details))

    out.print(table)
