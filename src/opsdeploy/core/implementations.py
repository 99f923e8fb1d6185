"""Production implementations of dependency injection protocols.

This module provides real implementations that wrap actual external dependencies
(console, filesystem, subprocess, time, etc.). These are used in production code.

For testing, use mocks or test doubles instead of these implementations.
"""

import os
import shutil
import subprocess
import sys
import time
import yaml
from pathlib import Path
from typing import Dict, Any, Optional, List, Union


class ConsoleLogger:
    """Production logger that prints to console (stdout/stderr)."""

    def __init__(self, verbose: bool = False):
        self.verbose = verbose

    def info(self, message: str) -> None:
        """Print info message to stdout."""
        print(message)

    def warning(self, message: str) -> None:
        """Print warning message to stdout."""
        print(f"Warning: {message}")

    def error(self, message: str) -> None:
        """Print error message to stderr."""
        print(f"Error: {message}", file=sys.stderr)

    def debug(self, message: str) -> None:
        """Print debug message to stdout when verbose."""
        if self.verbose:
            print(f"Debug: {message}")


class RealFileSystemService:
    """Production filesystem service using real file I/O."""

    def read_file(self, path: Union[str, Path]) -> str:
        """Read entire file as string."""
        with open(path, 'r') as f:
            return f.read()

    def write_file(self, path: Union[str, Path], content: str) -> None:
        """Write string content to file."""
        with open(path, 'w') as f:
            f.write(content)


class SubprocessExecutor:
    """Production process executor using real subprocess.run."""

    def run(
        self,
        cmd: List[str],
        env: Optional[Dict[str, str]] = None,
        cwd: Optional[str] = None
    ) -> subprocess.CompletedProcess:
        """Run command and capture its output as text."""
        return subprocess.run(
            cmd,
            env=env,
            cwd=cwd,
            capture_output=True,
            text=True,
            check=False
        )


class SystemTimeProvider:
    """Production time provider using real time module."""

    def current_time(self) -> float:
        """Get monotonic time in seconds (immune to wall-clock jumps)."""
        return time.monotonic()

    def sleep(self, seconds: float) -> None:
        """Sleep for specified seconds."""
        time.sleep(seconds)


class SystemEnvironmentProvider:
    """Production environment provider using real os module."""

    def get_environ(self) -> Dict[str, str]:
        """Get copy of environment variables."""
        return dict(os.environ)


class SystemToolLocator:
    """Production tool locator using real shutil.which."""

    def find_tool(self, tool_name: str) -> Optional[str]:
        """Find tool in PATH."""
        return shutil.which(tool_name)


class YamlConfigLoader:
    """Production config loader using real YAML parser."""

    def __init__(self, filesystem: 'RealFileSystemService'):
        """Initialize with filesystem service for reading files."""
        self.fs = filesystem

    def load_yaml(self, path: str) -> Dict[str, Any]:
        """Load YAML file and return parsed dictionary."""
        content = self.fs.read_file(path)
        return yaml.safe_load(content)
