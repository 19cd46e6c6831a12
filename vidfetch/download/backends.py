"""Transport backends.

Each backend either downloads a stream to a file or plays it through the
configured player. Both return a truthy value on success and a falsy one
on failure; failures are logged, not raised.
"""

from __future__ import annotations

import logging
import shlex
import shutil
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional

import httpx
from rich.console import Console
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    TextColumn,
    TimeRemainingColumn,
    TransferSpeedColumn,
)

from vidfetch.extraction import (
    CaptureStream,
    HlsStream,
    RtmpStream,
    Stream,
    TransportKind,
)
from vidfetch.session import Session

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024

# rtmpdump exits with 2 when the transfer stopped early and can be resumed
RTMPDUMP_INCOMPLETE = 2
RTMP_MAX_ATTEMPTS = 3

RTMP_PROGRAMS = ("rtmpdump", "flvstreamer")


def player_command(player: str, target: str) -> List[str]:
    """Build the player command line, substituting ``%s`` with the target.

    The target is appended when the template has no ``%s``.
    """
    args = shlex.split(player)
    if any("%s" in arg for arg in args):
        return [arg.replace("%s", target) for arg in args]
    return args + [target]


class Backend(ABC):
    """Base class for transport backends."""

    kind: TransportKind

    def __init__(self, player: str = "", quiet: bool = False) -> None:
        self.player = player
        self.quiet = quiet

    @abstractmethod
    def download(self, stream: Stream, filename: Path) -> int:
        """Download a stream to a file."""
        pass

    def play(self, stream: Stream, filename: Path) -> int:
        """Play a stream with the configured player."""
        return self._run_player(stream.url)

    def _run_player(self, target: str, stdin=None) -> int:
        command = player_command(self.player, target)
        logger.debug(f"Running player: {shlex.join(command)}")
        try:
            result = subprocess.run(command, stdin=stdin)
        except FileNotFoundError:
            logger.error(f"Player not found: {command[0]}")
            return 0
        return 1 if result.returncode == 0 else 0


class HttpBackend(Backend):
    """Progressive download over HTTP using the shared session."""

    kind = TransportKind.HTTP

    def __init__(
        self,
        session: Session,
        player: str = "",
        quiet: bool = False,
        console: Optional[Console] = None,
    ) -> None:
        super().__init__(player, quiet)
        self.session = session
        self.console = console or Console(stderr=True)

    def download(self, stream: Stream, filename: Path) -> int:
        written = 0
        logger.info(f"Downloading {stream.url} to {filename}")

        try:
            with self.session.stream("GET", stream.url) as response:
                response.raise_for_status()
                total = response.headers.get("content-length")

                with Progress(
                    TextColumn("[progress.description]{task.description}"),
                    BarColumn(),
                    DownloadColumn(),
                    TransferSpeedColumn(),
                    TimeRemainingColumn(),
                    console=self.console,
                    disable=self.quiet,
                ) as progress:
                    task = progress.add_task(
                        filename.name,
                        total=int(total) if total and total.isdigit() else None,
                    )
                    with filename.open("wb") as f:
                        for chunk in response.iter_bytes(CHUNK_SIZE):
                            f.write(chunk)
                            written += len(chunk)
                            progress.update(task, advance=len(chunk))
        except httpx.HTTPError as e:
            logger.error(f"Download of {stream.url} failed: {e}")
            return 0
        except OSError as e:
            logger.error(f"Cannot write {filename}: {e}")
            return 0

        if written == 0:
            logger.error(f"Download of {stream.url} returned no data")
        return written


class RtmpBackend(Backend):
    """RTMP download through rtmpdump (or flvstreamer)."""

    kind = TransportKind.RTMP

    def _program(self) -> Optional[str]:
        for name in RTMP_PROGRAMS:
            if path := shutil.which(name):
                return path
        return None

    def build_args(self, stream: Stream, output: str) -> List[str]:
        """rtmpdump arguments for a stream, writing to ``output``."""
        params: Dict[str, object] = dict(stream.params) if isinstance(stream, RtmpStream) else {}
        params.setdefault("rtmp", stream.url)

        args = ["--rtmp", str(params.pop("rtmp"))]
        for key, value in params.items():
            if value is True:
                args.append(f"--{key}")
            elif value not in (None, False, ""):
                args.extend([f"--{key}", str(value)])
        if self.quiet:
            args.append("--quiet")
        args.extend(["--flv", output])
        return args

    def download(self, stream: Stream, filename: Path) -> int:
        program = self._program()
        if program is None:
            logger.error("rtmpdump is not installed; it is needed for RTMP streams")
            return 0

        args = [program] + self.build_args(stream, str(filename))
        for attempt in range(1, RTMP_MAX_ATTEMPTS + 1):
            logger.debug(f"Running: {shlex.join(args)}")
            try:
                result = subprocess.run(args)
            except OSError as e:
                logger.error(f"Could not run {program}: {e}")
                return 0

            if result.returncode == 0:
                return 1
            if result.returncode != RTMPDUMP_INCOMPLETE:
                logger.error(f"{program} failed with exit code {result.returncode}")
                return 0

            logger.info(f"Transfer incomplete, resuming (attempt {attempt + 1})")
            if "--resume" not in args:
                args = args + ["--resume"]

        logger.error(f"{program} could not complete {filename}")
        return 0

    def play(self, stream: Stream, filename: Path) -> int:
        program = self._program()
        if program is None:
            logger.error("rtmpdump is not installed; it is needed for RTMP streams")
            return 0

        args = [program] + self.build_args(stream, "-")
        logger.debug(f"Running: {shlex.join(args)}")
        try:
            dumper = subprocess.Popen(args, stdout=subprocess.PIPE)
        except OSError as e:
            logger.error(f"Could not run {program}: {e}")
            return 0

        try:
            played = self._run_player("-", stdin=dumper.stdout)
        finally:
            if dumper.stdout is not None:
                dumper.stdout.close()
            dumper.wait()
        return played


class FfmpegBackend(Backend):
    """HLS download and generic capture through ffmpeg."""

    def __init__(self, kind: TransportKind, player: str = "", quiet: bool = False) -> None:
        super().__init__(player, quiet)
        self.kind = kind

    def build_args(self, stream: Stream, output: str) -> List[str]:
        """ffmpeg arguments for a stream, writing to ``output``."""
        args = ["ffmpeg", "-y", "-hide_banner"]
        if self.quiet:
            args.extend(["-loglevel", "error"])

        if isinstance(stream, HlsStream) and stream.headers:
            headers = "".join(f"{k}: {v}\r\n" for k, v in stream.headers.items())
            args.extend(["-headers", headers])
        if isinstance(stream, CaptureStream):
            args.extend(stream.args)

        args.extend(["-i", stream.url, "-c", "copy"])
        if isinstance(stream, HlsStream):
            args.extend(["-bsf:a", "aac_adtstoasc"])
        args.append(output)
        return args

    def download(self, stream: Stream, filename: Path) -> int:
        if shutil.which("ffmpeg") is None:
            logger.error(f"ffmpeg is not installed; it is needed for {self.kind.value} streams")
            return 0

        args = self.build_args(stream, str(filename))
        logger.debug(f"Running: {shlex.join(args)}")
        try:
            result = subprocess.run(args)
        except OSError as e:
            logger.error(f"Could not run ffmpeg: {e}")
            return 0

        if result.returncode != 0:
            logger.error(f"ffmpeg failed with exit code {result.returncode}")
            return 0
        return 1


def default_backends(
    session: Session,
    player: str,
    quiet: bool = False,
) -> Dict[TransportKind, Backend]:
    """One backend per transport kind."""
    return {
        TransportKind.HTTP: HttpBackend(session, player, quiet),
        TransportKind.RTMP: RtmpBackend(player, quiet),
        TransportKind.HLS: FfmpegBackend(TransportKind.HLS, player, quiet),
        TransportKind.FFMPEG: FfmpegBackend(TransportKind.FFMPEG, player, quiet),
    }
