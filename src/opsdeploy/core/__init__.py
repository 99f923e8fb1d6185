"""Core dependency injection infrastructure for opsdeploy.

This module provides Protocol-based abstractions that enable dependency injection
and testability throughout the codebase. Process-level dependencies (console,
filesystem, subprocess, time, environment) are abstracted via Protocols with
production implementations.

Design:
- Protocol-based abstractions (typing.Protocol) for structural typing
- Production implementations for real-world use
- Easy mocking for unit tests
"""

from opsdeploy.core.protocols import (
    Logger,
    FileSystemService,
    ProcessExecutor,
    TimeProvider,
    EnvironmentProvider,
    ToolLocator,
    ConfigLoader,
)

from opsdeploy.core.implementations import (
    ConsoleLogger,
    RealFileSystemService,
    SubprocessExecutor,
    SystemTimeProvider,
    SystemEnvironmentProvider,
    SystemToolLocator,
    YamlConfigLoader,
)

__all__ = [
    # Protocols
    "Logger",
    "FileSystemService",
    "ProcessExecutor",
    "TimeProvider",
    "EnvironmentProvider",
    "ToolLocator",
    "ConfigLoader",
    # Implementations
    "ConsoleLogger",
    "RealFileSystemService",
    "SubprocessExecutor",
    "SystemTimeProvider",
    "SystemEnvironmentProvider",
    "SystemToolLocator",
    "YamlConfigLoader",
]
