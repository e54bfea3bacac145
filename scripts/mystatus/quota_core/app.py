"""Quota dashboard entrypoint: single-shot and watch mode driver."""

from __future__ import annotations

import argparse
import json
import logging
import os
import signal
import sys
import threading
import time
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from rich.console import Console

from quota_core.ansi import fit_line_to_width
from quota_core.collectors import (
    CredentialReadError,
    collect_all,
    env_auth_path,
    read_credentials,
)
from quota_core.collectors.providers import Provider, build_providers
from quota_core.collectors.zai import fetch_derived_token_usage
from quota_core.config import ConfigError, env_config_path, resolve_config
from quota_core.formatting import format_countdown
from quota_core.layout import render_width, terminal_width
from quota_core.models import DerivedUsage, Frame, RenderConfig
from quota_core.panels import paint, set_color_enabled
from quota_core.panels.dashboard import (
    assemble,
    assemble_credential_error,
    footer_line,
    querying_line,
)

logger = logging.getLogger(__name__)

CLEAR_SCREEN = "\x1b[2J\x1b[H"
CLEAR_TO_END = "\x1b[J"
CURSOR_UP_2 = "\x1b[2A"
CLEAR_LINE = "\x1b[K"

COUNTDOWN_TICK_SECONDS = 1.0
FAREWELL = "\n\n👋 Shutting down dashboard..."


def setup_logging(debug: bool = False, log_file: str | None = None) -> None:
    """Send logs to a file when given, otherwise to stderr.

    stdout belongs to the dashboard, so nothing is logged there.
    """
    level = logging.DEBUG if debug else logging.WARNING
    handler: logging.Handler
    if log_file:
        handler = logging.FileHandler(Path(log_file).expanduser())
        level = logging.DEBUG if debug else logging.INFO
    else:
        handler = logging.StreamHandler(sys.stderr)

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=[handler],
        force=True,
    )


class PollContext:
    """Run state shared by the poll loop, the countdown ticker and signal handlers."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._stop = threading.Event()
        self.next_update_time: float | None = None

    @property
    def is_running(self) -> bool:
        return not self._stop.is_set()

    def request_stop(self) -> None:
        self._stop.set()

    def schedule(self, seconds: float) -> None:
        self.next_update_time = self._clock() + seconds

    def seconds_until_next(self) -> float:
        if self.next_update_time is None:
            return 0.0
        return max(0.0, self.next_update_time - self._clock())

    def time_until_next(self) -> str:
        if self.next_update_time is None:
            return ""
        return format_countdown(self.seconds_until_next())

    def wait(self, seconds: float) -> bool:
        """Sleep up to ``seconds``; returns True if a stop was requested."""
        return self._stop.wait(max(0.0, seconds))


class Dashboard:
    def __init__(
        self,
        console: Console,
        config: RenderConfig,
        providers: list[Provider],
        auth_path: Path,
        context: PollContext | None = None,
        derived_fetch: Callable[[Any], DerivedUsage | None] | None = fetch_derived_token_usage,
    ):
        self.console = console
        self.config = config
        self.providers = providers
        self.auth_path = auth_path
        self.context = context or PollContext()
        self.derived_fetch = derived_fetch
        self.frame: Frame | None = None
        self.interactive = console.is_terminal
        self.fetching = False

    def width(self) -> int:
        return render_width(self.config.max_width, terminal_width(self.console))

    def write(self, text: str) -> None:
        self.console.file.write(text)
        self.console.file.flush()

    def control(self, code: str) -> None:
        if self.interactive:
            self.write(code)

    def collect(self) -> tuple[list, list[str]]:
        credentials = read_credentials(self.auth_path)
        return collect_all(credentials, self.providers, self.derived_fetch)

    def render_frame(self, watch: bool = False, interval: int | None = None) -> int:
        """Fetch every provider and draw one full frame.

        Returns 1 when the credential store cannot be read, else 0.
        """
        width = self.width()
        self.fetching = True
        self.control(CLEAR_SCREEN)
        self.write(querying_line(width) + "\n")

        status = 0
        try:
            reports, errors = self.collect()
        except CredentialReadError as exc:
            logger.error("Cannot read credential store %s: %s", exc.path, exc.message)
            frame = assemble_credential_error(
                self.config, width, exc.path, exc.message, watch=watch, interval=interval
            )
            status = 1
        else:
            frame = assemble(
                reports,
                errors,
                self.config,
                width,
                watch=watch,
                interval=interval,
                countdown=self.context.time_until_next(),
            )
        finally:
            self.fetching = False

        if not self.context.is_running:
            return status

        if self.interactive:
            self.write(CLEAR_SCREEN)
        else:
            self.write("\n")
        self.write(frame.render())
        self.control(CLEAR_TO_END)
        self.frame = frame
        return status

    def redraw_countdown(self) -> None:
        if self.frame is None or not self.frame.has_footer or not self.interactive:
            return
        line = footer_line(self.frame.updated_at, self.context.time_until_next(), watch=True)
        self.write(CURSOR_UP_2 + CLEAR_LINE + fit_line_to_width(line, self.width()) + "\n\n")

    def run_once(self) -> int:
        return self.render_frame(watch=False)

    def run_watch(self, interval_minutes: int) -> int:
        interval_seconds = interval_minutes * 60
        self.render_frame(watch=True, interval=interval_minutes)

        while self.context.is_running:
            self.context.schedule(interval_seconds)
            while self.context.is_running and self.context.seconds_until_next() > 0:
                stopped = self.context.wait(min(COUNTDOWN_TICK_SECONDS, self.context.seconds_until_next()))
                if stopped:
                    break
                self.redraw_countdown()

            if self.context.is_running:
                self.render_frame(watch=True, interval=interval_minutes)
        return 0

    def shutdown(self) -> None:
        if not self.context.is_running:
            return
        self.context.request_stop()
        self.write(paint(FAREWELL, "yellow") + "\n")


def install_signal_handlers(dashboard: Dashboard, exit_process: Callable[[int], Any] = os._exit) -> None:
    """Stop the dashboard on SIGINT/SIGTERM.

    A blocked provider query cannot be cancelled, so a signal that arrives
    mid-fetch ends the process right after the farewell.
    """

    def handle(signum, _frame):
        logger.info("Received signal %s, shutting down", signum)
        dashboard.shutdown()
        if dashboard.fetching:
            logging.shutdown()
            exit_process(0)

    signal.signal(signal.SIGINT, handle)
    if hasattr(signal, "SIGTERM"):
        signal.signal(signal.SIGTERM, handle)


def _json_output(dashboard: Dashboard) -> int:
    try:
        reports, errors = dashboard.collect()
    except CredentialReadError as exc:
        print(f"Error reading auth file {exc.path}: {exc.message}", file=sys.stderr)
        return 1

    payload = {
        "collected_at": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "reports": [report.to_dict() for report in reports],
        "errors": errors,
    }
    print(json.dumps(payload, indent=2, ensure_ascii=False))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mystatus",
        description="Monitor AI account quotas in a terminal dashboard",
    )
    parser.add_argument("-w", "--watch", action="store_true", help="Watch mode: continuously poll and update")
    parser.add_argument("-i", "--interval", help="Polling interval in minutes (default: 5)")
    parser.add_argument("--show", help="Comma-separated sections to show: header,summary,dashboard,footer")
    parser.add_argument("--width", help="Set max dashboard width (default: auto-detect terminal width)")
    parser.add_argument("--config", default=env_config_path(), help="Optional JSON config file")
    parser.add_argument("--auth-file", help="Override the credential store path")
    parser.add_argument("--json", action="store_true", help="Emit collected reports as JSON")
    parser.add_argument("--no-color", action="store_true", help="Disable ANSI colors")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--log-file", help="Write logs to this file instead of stderr")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(debug=args.debug, log_file=args.log_file)

    console = Console(highlight=False)
    set_color_enabled(not args.no_color and console.color_system is not None and not console.no_color)

    try:
        config, interval, user_config = resolve_config(
            show=args.show,
            width=args.width,
            interval=args.interval,
            config_path=args.config,
        )
        providers = build_providers(user_config)
    except ConfigError as exc:
        print(paint(f"Error: {exc}", "red"), file=sys.stderr)
        return 1

    auth_path = Path(args.auth_file).expanduser() if args.auth_file else env_auth_path()
    dashboard = Dashboard(console, config, providers, auth_path)

    if args.json:
        return _json_output(dashboard)

    install_signal_handlers(dashboard)
    try:
        if args.watch:
            return dashboard.run_watch(interval)
        return dashboard.run_once()
    except KeyboardInterrupt:
        dashboard.shutdown()
        return 0


if __name__ == "__main__":
    raise SystemExit(main())
