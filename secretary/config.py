"""
Paths, pinned versions and the detected platform.

Everything is derived from a root directory so that operations never depend
on where the package itself is installed.
"""

import pathlib
import platform as _platform
import typing

import attr

SOPS_VERSION = 'v3.11.0'
AGE_VERSION = 'v1.2.1'
MISE_VERSION = 'v2025.12.0'
MISE_INSTALL_URL = 'https://mise.run'
DEFAULT_COMMAND = ('core',)

# Release assets use Go's architecture names.
ARCHITECTURES = {
    'x86_64': 'amd64',
    'aarch64': 'arm64',
}


def detect_platform() -> str:
    return _platform.system().lower()


def detect_arch() -> str:
    machine = _platform.machine().lower()
    return ARCHITECTURES.get(machine, machine)


@attr.s(frozen=True, kw_only=True)
class Config:
    root: pathlib.Path = attr.ib()
    bin_dir: pathlib.Path = attr.ib()
    key_file: pathlib.Path = attr.ib()
    plaintext_file: pathlib.Path = attr.ib()
    encrypted_file: pathlib.Path = attr.ib()
    platform: str = attr.ib(factory=detect_platform)
    arch: str = attr.ib(factory=detect_arch)
    sops_version: str = attr.ib(default=SOPS_VERSION)
    age_version: str = attr.ib(default=AGE_VERSION)

    @classmethod
    def from_root(
            cls,
            root: pathlib.Path,
            platform: typing.Optional[str] = None,
            arch: typing.Optional[str] = None,
            **kwargs) -> 'Config':
        root = root.resolve()
        return cls(
            root=root,
            bin_dir=root / 'bin',
            key_file=root / '.age' / 'key.txt',
            plaintext_file=root / 'secrets.env',
            encrypted_file=root / 'secrets.env.yaml',
            platform=platform or detect_platform(),
            arch=arch or detect_arch(),
            **kwargs)

    @property
    def sops_binary(self) -> pathlib.Path:
        return self.bin_dir / f'sops-{self.sops_version}.{self.platform}.{self.arch}'

    @property
    def age_keygen_binary(self) -> pathlib.Path:
        return self.bin_dir / f'age-keygen-{self.age_version}.{self.platform}.{self.arch}'

    @property
    def sops_config(self) -> pathlib.Path:
        return self.root / '.sops.yaml'


@attr.s(frozen=True, kw_only=True)
class BootstrapConfig:
    bin_dir: pathlib.Path = attr.ib()
    mise_version: str = attr.ib(default=MISE_VERSION)
    install_url: str = attr.ib(default=MISE_INSTALL_URL)
    default_command: typing.Tuple[str, ...] = attr.ib(
        default=DEFAULT_COMMAND, converter=tuple)

    @classmethod
    def from_root(cls, root: pathlib.Path, **kwargs) -> 'BootstrapConfig':
        return cls(bin_dir=root.resolve() / 'bin', **kwargs)

    @property
    def mise_binary(self) -> pathlib.Path:
        return self.bin_dir / 'mise'
