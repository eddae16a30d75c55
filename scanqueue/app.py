"""Scanner application - reads decoded scans from stdin and records attendance."""
import argparse
import asyncio
import signal
import sys
import threading
from typing import Optional, TextIO

from scanqueue.logging_conf import logger
from scanqueue import settings
from scanqueue.payload import encode_payload
from scanqueue.session import ScanSession

_EOF = object()


def build_repository():
    """Create the attendance repository selected by REPOSITORY_BACKEND."""
    backend = settings.REPOSITORY_BACKEND
    if backend == "postgres":
        from scanqueue.db import AsyncPostgresRepository
        return AsyncPostgresRepository()
    if backend == "supabase":
        from scanqueue.supabase_client import AsyncSupabaseRepository
        return AsyncSupabaseRepository()

    from scanqueue.memory_repository import InMemoryAttendanceRepository
    if settings.MEMORY_MEMBERS_FILE:
        return InMemoryAttendanceRepository.from_file(settings.MEMORY_MEMBERS_FILE)
    return InMemoryAttendanceRepository()


class Application:
    """Feeds lines from a scan source into a scanning session."""

    def __init__(self, repository=None, source: Optional[TextIO] = None, **session_kwargs):
        self.repository = repository if repository is not None else build_repository()
        self.session = ScanSession(self.repository, **session_kwargs)
        self.source = source or sys.stdin
        self.running = False
        self._lines: Optional[asyncio.Queue] = None

    def start(self):
        """Start the application."""
        logger.info("=" * 50)
        logger.info("Attendance Scanner")
        logger.info("=" * 50)
        logger.info(f"Repository: {type(self.repository).__name__}")
        logger.info(f"Mode: {'batch' if self.session.batch_mode else 'direct'}")
        logger.info(f"Checksum policy: {self.session.checksum_policy}")
        logger.info("=" * 50)

        self.running = True
        self.session.start_session()

    def stop(self):
        """Stop the application."""
        if not self.running:
            return
        self.running = False
        if self._lines is not None:
            self._lines.put_nowait(_EOF)
        logger.info("Stopping")

    def _read_source(self, loop: asyncio.AbstractEventLoop):
        """Blocking reader thread: hands every line to the event loop."""
        for line in self.source:
            loop.call_soon_threadsafe(self._lines.put_nowait, line)
        loop.call_soon_threadsafe(self._lines.put_nowait, _EOF)

    async def run(self):
        """Main loop."""
        self.start()
        loop = asyncio.get_running_loop()
        self._lines = asyncio.Queue()
        reader = threading.Thread(target=self._read_source, args=(loop,), name="ScanSource", daemon=True)
        reader.start()

        while self.running:
            line = await self._lines.get()
            if line is _EOF:
                break
            try:
                await self.handle_line(line)
            except Exception as e:
                logger.error(f"Error handling scan: {e}", exc_info=True)

        await self.session.wait_idle()
        self.report()
        self.running = False

    async def handle_line(self, line: str):
        text = line.strip()
        if not text:
            return
        if text.startswith(":"):
            self.handle_command(text[1:].strip().lower())
            return

        outcome = await self.session.submit(text)
        if outcome.resolution is not None:
            resolution = outcome.resolution
            logger.info(f"{resolution.identifier}: {resolution.error or 'Attendance marked'}",
                        extra={"identifier": resolution.identifier})
        elif not outcome.accepted:
            logger.debug(f"Scan not accepted: {outcome.reason}")

    def handle_command(self, command: str):
        if command == "batch on":
            self.session.enable_batch_mode()
        elif command == "batch off":
            self.session.disable_batch_mode()
        elif command == "clear":
            self.session.clear_queue()
        elif command == "stats":
            self.report_stats()
        elif command == "quit":
            self.stop()
        else:
            logger.warning(f"Unknown command: {command}")

    def report_stats(self):
        stats = self.session.stats
        logger.info(
            f"Queue: {stats.total} total, {stats.pending} pending, {stats.processing} processing, "
            f"{stats.success} success, {stats.error} error"
        )

    def report(self):
        for item in self.session.items:
            detail = item.error or f"{item.name} ({item.chapter})"
            flag = "" if item.verified or item.checksum is None else " [checksum mismatch]"
            logger.info(f"{item.identifier}: {item.status.value} - {detail}{flag}",
                        extra={"identifier": item.identifier})
        self.report_stats()


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Record attendance from scanned QR codes.")
    parser.add_argument("--encode", metavar="ID", help="print the QR payload for an ID number and exit")
    parser.add_argument("--direct", action="store_true", help="start in direct (non-batch) mode")
    parser.add_argument("--init-db", action="store_true", help="create the attendance tables (postgres)")
    return parser.parse_args(argv)


def main(argv=None):
    """Entry point."""
    args = parse_args(argv)
    if args.encode:
        print(encode_payload(args.encode))
        return

    try:
        settings.validate_config()
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(1)

    repository = build_repository()
    if args.init_db:
        if settings.REPOSITORY_BACKEND != "postgres":
            logger.error("--init-db requires REPOSITORY_BACKEND=postgres")
            sys.exit(1)
        repository.db.ensure_schema()

    app = Application(repository, batch_mode=False if args.direct else None)

    async def _run():
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, lambda s=sig: (logger.info(f"Received signal {s}"), app.stop()))
        await app.run()

    try:
        asyncio.run(_run())
    finally:
        close = getattr(repository, "close", None)
        if close:
            close()


if __name__ == "__main__":
    main()
