import logging
import pathlib
import typing

import attr
import git

from .age import AgeKeygen
from .config import Config
from .releases import Downloader
from .sops import Sops
from .utils import KeyFileExists, KeyFileMissing, find_git_repository, unignored

log = logging.getLogger(__name__)


@attr.s(frozen=True)
class SecretKeeper:
    config: Config = attr.ib()
    downloader: Downloader = attr.ib(factory=Downloader)
    verbose: bool = attr.ib(default=False)

    def keygen(self) -> pathlib.Path:
        key_file = self.config.key_file
        if key_file.exists():
            log.error(f"AGE key file already exists at {key_file}")
            raise KeyFileExists(f"Refusing to overwrite {key_file}")

        binary = self.downloader.ensure_age_keygen(self.config)

        log.info(f"Generating new AGE key file at {key_file}...")
        key_file.parent.mkdir(parents=True, exist_ok=True)
        result = AgeKeygen(binary).generate(key_file)
        key_file.chmod(0o600)

        # age-keygen reports the public key on stderr.
        for line in result.stderr.splitlines():
            log.info(line)
        log.info(f"AGE key file generated: {key_file}")
        log.info(f"Make sure to back up this key file securely "
                 f"and update {self.config.sops_config}")
        self.check_ignored(key_file)
        return key_file

    def sops(self) -> Sops:
        self.validate_key()
        binary = self.downloader.ensure_sops(self.config)
        return Sops(binary, self.config.key_file, verbose=self.verbose)

    def validate_key(self) -> None:
        if not self.config.key_file.exists():
            log.error(f"AGE key file not found at {self.config.key_file}")
            log.info("Generate a new key file using the 'keygen' command")
            raise KeyFileMissing(f"No key file at {self.config.key_file}")

    def encrypt(self) -> pathlib.Path:
        self.sops().encrypt(self.config.plaintext_file, self.config.encrypted_file)
        log.info(f"Encryption complete: {self.config.encrypted_file}")
        return self.config.encrypted_file

    def decrypt(self) -> pathlib.Path:
        self.sops().decrypt(self.config.encrypted_file, self.config.plaintext_file)
        log.info(f"Decryption complete: {self.config.plaintext_file}")
        self.check_ignored(self.config.plaintext_file)
        return self.config.plaintext_file

    def clean(self) -> bool:
        """Delete the decrypted plaintext file."""
        if not self.config.plaintext_file.exists():
            return False
        log.info(f"Deleting {self.config.plaintext_file}")
        self.config.plaintext_file.unlink()
        return True

    def check_ignored(self, *paths: pathlib.Path) -> typing.Sequence[pathlib.Path]:
        repo = find_git_repository(self.config.root)
        if repo is None or repo.working_tree_dir is None:
            return ()

        try:
            included = unignored(repo, paths)
        except git.exc.GitCommandError as error:
            log.warning(f"Could not check .gitignore: {error}")
            return ()
        for path in included:
            log.warning(f"{path} is not excluded by .gitignore")
        return included
