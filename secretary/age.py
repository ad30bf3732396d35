import logging
import pathlib
import subprocess

import attr

from .utils import ToolError

log = logging.getLogger(__name__)


@attr.s(frozen=True)
class AgeKeygen:
    binary: pathlib.Path = attr.ib()

    def generate(self, key_file: pathlib.Path) -> subprocess.CompletedProcess:
        """Write a new identity to key_file; age-keygen refuses to overwrite it."""
        command = (str(self.binary), '-o', str(key_file))
        log.debug(f"Running {' '.join(command)}")
        try:
            return subprocess.run(
                command,
                encoding='utf-8',
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                check=True)
        except subprocess.CalledProcessError as error:
            for line in error.stderr.splitlines():
                log.error(line)
            raise ToolError(command, error.returncode) from error
