"""Unit tests for the Docker MySQL client adapter."""

from __future__ import annotations

import subprocess
from unittest.mock import MagicMock, patch

import pytest

from dumpresume.application.services.table_stats import collect_table_stats
from dumpresume.domain.errors import ClientFailure
from dumpresume.domain.policy.session_policy import SessionPolicy
from dumpresume.infrastructure.adapters.docker_mysql_client import (
    DockerImportProcess,
    DockerMySQLClient,
    normalize_exit_status,
)

RUN = "dumpresume.infrastructure.adapters.docker_mysql_client.subprocess.run"
POPEN = "dumpresume.infrastructure.adapters.docker_mysql_client.subprocess.Popen"


def _client() -> DockerMySQLClient:
    return DockerMySQLClient(container="mariadb", database="app", password="s3cret")


def test_command_keeps_password_out_of_argv():
    """Test the password is passed through the environment, not the command line."""
    cmd = _client().command("--verbose")
    
    assert cmd == [
        "docker", "exec", "-i", "-e", "MYSQL_PWD", "mariadb",
        "mysql", "-uroot", "--verbose", "app",
    ]
    assert not any("s3cret" in part for part in cmd)


def test_execute_feeds_script_and_sets_password_env():
    """Test execute() pipes the script on stdin with MYSQL_PWD in the environment."""
    completed = subprocess.CompletedProcess(args=[], returncode=0, stdout="status\nok\n", stderr="")
    with patch(RUN, return_value=completed) as mock_run:
        result = _client().execute("SELECT 1;")
    
    assert result.ok
    assert result.output == "status\nok\n"
    kwargs = mock_run.call_args.kwargs
    assert kwargs["input"] == "SELECT 1;"
    assert kwargs["env"]["MYSQL_PWD"] == "s3cret"


def test_execute_batch_flags():
    """Test batch mode asks for tab-separated output without headers."""
    completed = subprocess.CompletedProcess(args=[], returncode=0, stdout="", stderr="")
    with patch(RUN, return_value=completed) as mock_run:
        _client().execute("SELECT 1;", batch=True)
    
    cmd = mock_run.call_args.args[0]
    assert "--batch" in cmd
    assert "--skip-column-names" in cmd


def test_execute_failure_combines_output():
    """Test a failing script reports its status and stderr."""
    completed = subprocess.CompletedProcess(
        args=[], returncode=1, stdout="", stderr="ERROR 1045 (28000): Access denied\n"
    )
    with patch(RUN, return_value=completed):
        result = _client().execute("SELECT 1;")
    
    assert result.exit_status == 1
    assert "Access denied" in result.output


def test_execute_without_docker():
    """Test a missing docker binary maps to exit status 127."""
    with patch(RUN, side_effect=FileNotFoundError("docker")):
        result = _client().execute("SELECT 1;")
    
    assert result.exit_status == 127


def test_start_import_without_docker():
    """Test start_import() raises ClientFailure when docker cannot be executed."""
    with patch(POPEN, side_effect=FileNotFoundError("docker")):
        with pytest.raises(ClientFailure) as exc_info:
            _client().start_import()
    
    assert exc_info.value.exit_status == 127
    assert exc_info.value.stage == "import"


@pytest.mark.parametrize("returncode,expected", [(0, 0), (1, 1), (-9, 137), (-15, 143)])
def test_normalize_exit_status(returncode, expected):
    """Test signal deaths map to 128 + signal number."""
    assert normalize_exit_status(returncode) == expected


def test_import_process_write_handles_partial_writes():
    """Test write() keeps writing until the whole chunk is accepted."""
    popen = MagicMock()
    popen.stdin.closed = False
    accepted: list[bytes] = []
    
    def _partial(view):
        accepted.append(bytes(view[:3]))
        return min(3, len(view))
    
    popen.stdin.write.side_effect = _partial
    process = DockerImportProcess(popen)
    
    process.write(b"abcdefgh")
    
    assert b"".join(accepted) == b"abcdefgh"


def test_import_process_write_after_close():
    """Test write() on a closed stdin raises BrokenPipeError."""
    popen = MagicMock()
    popen.stdin.closed = True
    
    with pytest.raises(BrokenPipeError):
        DockerImportProcess(popen).write(b"x")


def test_collect_table_stats_parses_batch_output():
    """Test statistics rows are parsed and malformed rows skipped."""
    client = MagicMock()
    client.execute.return_value = MagicMock(
        ok=True,
        exit_status=0,
        output="orders\t1200\t3.50\t1.25\nbroken row\n\nview_x\tNULL\tNULL\tNULL\n",
    )
    
    stats = collect_table_stats(client, "app", SessionPolicy())
    
    assert [s.name for s in stats] == ["orders", "view_x"]
    assert stats[0].rows == 1200
    assert client.execute.call_args.kwargs["batch"] is True


def test_collect_table_stats_failure_is_not_fatal():
    """Test a failing statistics query yields an empty list."""
    client = MagicMock()
    client.execute.return_value = MagicMock(ok=False, exit_status=1, output="ERROR")
    
    assert collect_table_stats(client, "app", SessionPolicy()) == []
