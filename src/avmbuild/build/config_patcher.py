"""Idempotent edits of ESP-IDF `KEY="value"` configuration files.

sdkconfig.defaults uses one setting per line:

    CONFIG_PARTITION_TABLE_CUSTOM_FILENAME="partitions-elixir.csv"

ConfigPatcher sets a key to a value without disturbing any other line.
Applying the same setting twice produces byte-identical files.
"""

import logging
import re
from pathlib import Path

logger = logging.getLogger(__name__)


class ConfigPatcher:
    """Sets single keys in sdkconfig-style files."""

    def __init__(self, show_progress: bool = True):
        self.show_progress = show_progress

    @staticmethod
    def format_setting(key: str, value: str) -> str:
        return f'{key}="{value}"'

    @staticmethod
    def patch_content(content: str, key: str, value: str) -> str:
        """Return content with key set to value.

        The first line defining key is rewritten in place and any later
        definitions are dropped. If key is not defined, one line is appended.
        Comment lines mentioning the key are not definitions.

        Args:
            content: Existing file content (may be empty)
            key: Setting name, e.g. CONFIG_PARTITION_TABLE_CUSTOM_FILENAME
            value: Unquoted value

        Returns:
            Patched content
        """
        setting = ConfigPatcher.format_setting(key, value)
        definition = re.compile(rf"^{re.escape(key)}=.*$")

        lines = content.splitlines(keepends=True)
        patched = []
        found = False
        for line in lines:
            body = line.rstrip("\r\n")
            if definition.match(body):
                if found:
                    continue
                found = True
                patched.append(setting + line[len(body):])
            else:
                patched.append(line)

        if found:
            return "".join(patched)

        newline = "\r\n" if "\r\n" in content else "\n"
        if content and not content.endswith("\n"):
            content += newline
        return content + setting + newline

    def apply_setting(self, config_file: Path, key: str, value: str) -> bool:
        """Set key to value in config_file, creating the file if needed.

        Args:
            config_file: Path to sdkconfig.defaults (or similar)
            key: Setting name
            value: Unquoted value

        Returns:
            True if the file content changed
        """
        config_file = Path(config_file)
        content = config_file.read_bytes().decode("utf-8") if config_file.exists() else ""

        patched = self.patch_content(content, key, value)
        if patched == content:
            logger.debug("%s already sets %s", config_file, key)
            return False

        config_file.parent.mkdir(parents=True, exist_ok=True)
        # newline="" keeps existing CRLF line endings
        with open(config_file, "w", encoding="utf-8", newline="") as f:
            f.write(patched)

        if self.show_progress:
            print(f"✓ Set {self.format_setting(key, value)} in {config_file.name}")
        return True
