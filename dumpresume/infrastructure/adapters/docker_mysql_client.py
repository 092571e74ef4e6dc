"""Database client adapter running the mysql CLI inside a Docker container."""

from __future__ import annotations

import logging
import os
import subprocess
import threading
from collections import deque

from ...application.ports.database_client import ClientResult, DatabaseClientPort
from ...domain.errors import ClientFailure
from ..logging import CLIENT_OUTPUT_LOGGER, in_run_context

logger = logging.getLogger(__name__)
client_output = logging.getLogger(CLIENT_OUTPUT_LOGGER)

# Shell convention for "command not found"
EXIT_NOT_FOUND = 127


def normalize_exit_status(returncode: int) -> int:
    """Map death-by-signal (negative returncode) to the shell's 128 + signal."""
    if returncode < 0:
        return 128 - returncode
    return returncode


class DockerImportProcess:
    """A ``docker exec -i ... mysql`` process consuming a dump on stdin."""

    def __init__(
        self,
        popen: subprocess.Popen,
        preamble: bytes = b"",
        tail_lines: int = 20,
    ) -> None:
        """
        Initialize import process wrapper.
        
        Args:
            popen: Started process with binary stdin/stdout pipes
            preamble: Bytes written on entry, before any dump bytes
            tail_lines: Number of trailing output lines kept for error reports
        """
        self._popen = popen
        self._preamble = preamble
        self._tail: deque[str] = deque(maxlen=tail_lines)
        self._pump = threading.Thread(
            target=in_run_context(self._pump_output),
            name="client-output",
            daemon=True,
        )

    @property
    def pid(self) -> int:
        return self._popen.pid

    @property
    def tail(self) -> list[str]:
        """Last lines of client output."""
        return list(self._tail)

    def __enter__(self) -> DockerImportProcess:
        self._pump.start()
        if self._preamble:
            try:
                self.write(self._preamble)
            except BrokenPipeError:
                logger.warning("Database client exited before the session preamble was sent")
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._popen.poll() is None:
            logger.warning(f"Terminating database client (pid {self._popen.pid})")
            self._popen.terminate()
            try:
                self._popen.wait(timeout=10)
            except subprocess.TimeoutExpired:
                self._popen.kill()
                self._popen.wait()
        self.close_stdin()
        if self._pump.is_alive():
            self._pump.join(timeout=5)
        if self._popen.stdout is not None:
            self._popen.stdout.close()

    def write(self, chunk: bytes) -> None:
        """
        Send bytes to the client's standard input.
        
        Raises:
            BrokenPipeError: If the client has already exited
        """
        stdin = self._popen.stdin
        if stdin is None or stdin.closed:
            raise BrokenPipeError("client standard input is closed")
        view = memoryview(chunk)
        while view:
            written = stdin.write(view)
            view = view[written:]

    def close_stdin(self) -> None:
        stdin = self._popen.stdin
        if stdin is None or stdin.closed:
            return
        try:
            stdin.close()
        except BrokenPipeError:
            logger.debug("Client input already closed by the client")

    def wait(self) -> int:
        """Wait for the client to exit and return its (normalized) exit status."""
        status = normalize_exit_status(self._popen.wait())
        if self._pump.is_alive():
            self._pump.join()
        if status != 0:
            for line in self._tail:
                logger.error(f"[client] {line}")
        return status

    def _pump_output(self) -> None:
        stdout = self._popen.stdout
        if stdout is None:
            return
        for raw in iter(stdout.readline, b""):
            line = raw.decode("utf-8", errors="replace").rstrip("\r\n")
            self._tail.append(line)
            client_output.debug(line)


class DockerMySQLClient(DatabaseClientPort):
    """Runs ``mysql`` in a container via ``docker exec``; the password travels in MYSQL_PWD."""

    def __init__(
        self,
        container: str,
        database: str,
        password: str,
        user: str = "root",
        docker_bin: str = "docker",
        admin_timeout: float | None = 300.0,
    ) -> None:
        """
        Initialize Docker MySQL client.
        
        Args:
            container: Container name (CONTAINER_NAME)
            database: Target database (MYSQL_DATABASE)
            password: Password for ``user`` (MYSQL_ROOT_PASSWORD)
            user: Database user
            docker_bin: Docker executable
            admin_timeout: Timeout in seconds for administrative scripts (None = no timeout)
        """
        self.container = container
        self.database = database
        self.user = user
        self.docker_bin = docker_bin
        self.admin_timeout = admin_timeout
        self._password = password

    def command(self, *mysql_args: str) -> list[str]:
        """Build the argv for a client invocation; contains no secrets."""
        return [
            self.docker_bin,
            "exec",
            "-i",
            "-e",
            "MYSQL_PWD",
            self.container,
            "mysql",
            f"-u{self.user}",
            *mysql_args,
            self.database,
        ]

    def _env(self) -> dict[str, str]:
        env = os.environ.copy()
        env["MYSQL_PWD"] = self._password
        return env

    def execute(self, script: str, batch: bool = False) -> ClientResult:
        """
        Run a short SQL script and capture its output.
        
        Args:
            script: SQL statements fed on standard input
            batch: Request tab-separated output without column names
        
        Returns:
            ClientResult with exit status and combined output (127 if docker is missing)
        """
        args = ("--batch", "--skip-column-names") if batch else ()
        cmd = self.command(*args)
        logger.debug(f"Running client: {' '.join(cmd)}")
        try:
            completed = subprocess.run(
                cmd,
                input=script,
                capture_output=True,
                text=True,
                env=self._env(),
                timeout=self.admin_timeout,
            )
        except FileNotFoundError:
            return ClientResult(EXIT_NOT_FOUND, f"{self.docker_bin}: command not found")
        except subprocess.TimeoutExpired:
            logger.error(f"Client script timed out after {self.admin_timeout}s")
            return ClientResult(124, "timed out")
        output = completed.stdout + completed.stderr
        return ClientResult(normalize_exit_status(completed.returncode), output)

    def start_import(self, preamble: bytes = b"") -> DockerImportProcess:
        """
        Start ``mysql --verbose`` reading the dump from standard input.
        
        Raises:
            ClientFailure: If docker cannot be executed
        """
        cmd = self.command("--verbose")
        logger.debug(f"Starting import client: {' '.join(cmd)}")
        try:
            popen = subprocess.Popen(
                cmd,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                env=self._env(),
                bufsize=0,
            )
        except FileNotFoundError as e:
            logger.error(f"{self.docker_bin}: command not found")
            raise ClientFailure(EXIT_NOT_FOUND, "import") from e
        return DockerImportProcess(popen, preamble=preamble)
