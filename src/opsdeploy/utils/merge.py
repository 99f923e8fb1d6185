"""
Installation settings merge via spruce.

``spruce merge base overlay`` deep-merges YAML/JSON documents with the
overlay winning on conflicts. Merge semantics are entirely spruce's; this
module only runs it and hands back the merged document.
"""

import logging

from opsdeploy.core.protocols import EnvironmentProvider, ProcessExecutor, ToolLocator
from opsdeploy.deploy import MergeError

logger = logging.getLogger(__name__)

SPRUCE_BINARY = 'spruce'


class SpruceMerger:
    """SettingsMerger implementation that shells out to spruce."""

    def __init__(
        self,
        process_executor: ProcessExecutor,
        tool_locator: ToolLocator,
        env_provider: EnvironmentProvider,
        binary: str = SPRUCE_BINARY
    ):
        self.process = process_executor
        self.tools = tool_locator
        self.env = env_provider
        self.binary = binary

    def merge(self, base_path: str, overlay_path: str) -> str:
        """
        Merge overlay_path over base_path.

        Returns:
            Merged document (YAML text)

        Raises:
            MergeError: If spruce is not installed or the merge fails
        """
        spruce = self.tools.find_tool(self.binary)
        if spruce is None:
            raise MergeError(
                f"'{self.binary}' not found in PATH\n"
                f"Installation settings are merged with spruce.\n"
                f"Install it from https://github.com/geofffranks/spruce/releases"
            )

        env = self.env.get_environ()
        # spruce prints its debug trace to stdout when DEBUG is set
        env['DEBUG'] = 'false'

        cmd = [spruce, 'merge', base_path, overlay_path]
        logger.debug("Running %s", ' '.join(cmd))
        result = self.process.run(cmd, env=env)

        if result.returncode != 0:
            raise MergeError(
                f"spruce merge failed (exit code {result.returncode})\n"
                f"Command: {' '.join(cmd)}\n"
                f"Error: {(result.stderr or '').strip()}"
            )
        return result.stdout
