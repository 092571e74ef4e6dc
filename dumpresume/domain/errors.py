"""Domain errors for resumable dump imports."""


class SourceUnreadable(Exception):
    """
    Raised when the dump file cannot be stat'ed or its gzip framing cannot be read.
    
    Attributes:
        path: Path to the dump file
        reason: Why the source could not be read
    """
    
    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Dump source unreadable: {path}: {reason}")


class CheckpointCorrupt(Exception):
    """
    Raised when the resume file does not hold a non-negative decimal integer.
    
    Callers treat this as offset 0 rather than a fatal error.
    
    Attributes:
        path: Path to the resume file
        content: Raw (truncated) content that failed to parse
    """
    
    def __init__(self, path: str, content: str) -> None:
        self.path = path
        self.content = content
        super().__init__(f"Resume checkpoint {path} is corrupt: {content[:40]!r}")


class ClientFailure(Exception):
    """
    Raised when the database client process exits with a non-zero status.
    
    Attributes:
        exit_status: Exit status of the client process, propagated unchanged
        stage: Which client invocation failed (prepare, import, finalize, stats)
    """
    
    def __init__(self, exit_status: int, stage: str) -> None:
        self.exit_status = exit_status
        self.stage = stage
        super().__init__(f"Database client failed during {stage} with status {exit_status}")


class CleanupFailure(Exception):
    """
    Raised when best-effort cleanup (checkpoint removal) fails.
    
    Attributes:
        path: Path that could not be cleaned up
        hint: Actionable hint for resolution
    """
    
    def __init__(self, path: str, hint: str | None = None) -> None:
        self.path = path
        self.hint = hint
        msg = f"Cleanup failed for {path}"
        if hint:
            msg += f". {hint}"
        super().__init__(msg)


class CheckpointWriteError(Exception):
    """Raised when the resume file cannot be replaced."""

    pass
