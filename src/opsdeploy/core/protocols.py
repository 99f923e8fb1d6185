"""Protocol definitions for dependency injection.

This module defines Protocol-based abstractions for the process-level
dependencies of opsdeploy (console output, time, subprocesses, filesystem,
environment, configuration). Any class implementing these methods satisfies
the Protocol without explicit inheritance.

Benefits:
- Easy to mock in tests (just implement the methods)
- No inheritance required (more Pythonic)
- Type-safe with mypy/pyright
- Clear interface contracts
"""

from typing import Protocol, Dict, Any, Optional, List, Union
from pathlib import Path
import subprocess


class Logger(Protocol):
    """Abstraction for user-facing progress output.

    The engine and poller report progress through this interface so that
    tests can assert on what the operator would see.
    """

    def info(self, message: str) -> None:
        """Log informational message."""
        ...

    def warning(self, message: str) -> None:
        """Log warning message."""
        ...

    def error(self, message: str) -> None:
        """Log error message."""
        ...

    def debug(self, message: str) -> None:
        """Log debug message."""
        ...


class FileSystemService(Protocol):
    """Abstraction for filesystem operations used around the settings merge."""

    def read_file(self, path: Union[str, Path]) -> str:
        """Read entire file as string."""
        ...

    def write_file(self, path: Union[str, Path], content: str) -> None:
        """Write string content to file."""
        ...


class ProcessExecutor(Protocol):
    """Abstraction for process execution.

    Wraps subprocess.run so the settings merge can be tested without
    the external merge tool installed.
    """

    def run(
        self,
        cmd: List[str],
        env: Optional[Dict[str, str]] = None,
        cwd: Optional[str] = None
    ) -> subprocess.CompletedProcess:
        """Run command to completion, capturing text stdout/stderr."""
        ...


class TimeProvider(Protocol):
    """Abstraction for time operations.

    Enables deterministic testing of the job poller's interval and deadline
    handling without real sleeps.
    """

    def current_time(self) -> float:
        """Get current time in seconds."""
        ...

    def sleep(self, seconds: float) -> None:
        """Sleep for specified number of seconds."""
        ...


class EnvironmentProvider(Protocol):
    """Abstraction for environment access.

    Credential overrides are read through this interface.
    """

    def get_environ(self) -> Dict[str, str]:
        """Get copy of environment variables."""
        ...


class ToolLocator(Protocol):
    """Abstraction for external tool discovery.

    Wraps shutil.which() to enable testing without requiring
    tools to be installed (spruce).
    """

    def find_tool(self, tool_name: str) -> Optional[str]:
        """Find tool in PATH and return absolute path, or None if not found."""
        ...


class ConfigLoader(Protocol):
    """Abstraction for configuration file loading.

    Wraps YAML loading to enable testing with mock configurations
    without requiring actual config files.
    """

    def load_yaml(self, path: str) -> Dict[str, Any]:
        """Load YAML file and return parsed dictionary."""
        ...
