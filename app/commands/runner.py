import subprocess
import tempfile
from collections.abc import Generator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

from app.commands.exceptions import CommandError
from app.logging.logger import Log


@dataclass(frozen=True)
class CommandResult:
    """Captured outcome of an external command."""

    args: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str


class CommandRunner:
    """Runs external binaries (gs, pdftoppm, tesseract) with a timeout.

    Adapters never call subprocess directly so tests can inject a fake runner.
    """

    def __init__(self, default_timeout_seconds: int = 300) -> None:
        self._default_timeout = default_timeout_seconds

    def run(self, args: Sequence[str], timeout: int | None = None) -> CommandResult:
        """Run a command and capture its output.

        Raises:
            CommandError: if the binary is missing, times out, or exits non-zero.
        """
        argv = tuple(str(arg) for arg in args)
        effective_timeout = timeout if timeout is not None else self._default_timeout
        Log.debug(f"Running command: {' '.join(argv)}")
        try:
            completed = subprocess.run(
                argv,
                capture_output=True,
                text=True,
                timeout=effective_timeout,
            )
        except FileNotFoundError as exc:
            raise CommandError(f"Command not found: {argv[0]}") from exc
        except subprocess.TimeoutExpired as exc:
            raise CommandError(
                f"Command timed out after {effective_timeout}s: {argv[0]}"
            ) from exc

        result = CommandResult(
            args=argv,
            returncode=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
        )
        if result.returncode != 0:
            raise CommandError(
                f"{argv[0]} exited with code {result.returncode}: {result.stderr.strip()}"
            )
        return result

    def is_available(self, binary: str) -> bool:
        """Return True when `binary --version` can be executed."""
        try:
            subprocess.run([binary, "--version"], capture_output=True, timeout=5)
            return True
        except (FileNotFoundError, subprocess.TimeoutExpired):
            return False


@contextmanager
def temporary_workspace(
    root: str | None = None, prefix: str = "filing-"
) -> Generator[Path, None, None]:
    """Yield a private scratch directory removed on every exit path."""
    with tempfile.TemporaryDirectory(prefix=prefix, dir=root) as tmpdir:
        yield Path(tmpdir)
