"""
Release helper for courier.

pyproject.toml holds the released version. The package mirrors it in the
version_major, version_minor and version_patch constants of
courier/__init__.py, which this script keeps in step:

    python release.py                 # copy the pyproject version to courier
    python release.py --bump minor    # bump pyproject, then copy it
    python release.py --check         # exit 1 if the two disagree
"""

import argparse
import re
import sys
from pathlib import Path
from typing import Optional


ROOT = Path(__file__).parent
TOML_PATH = ROOT / "pyproject.toml"
PACKAGE_INIT_PATH = ROOT / "courier" / "__init__.py"

PARTS = ("major", "minor", "patch")

VERSION = tuple[int, int, int]

_TOML_VERSION = re.compile(r'^(version\s*=\s*)"(\d+)\.(\d+)\.(\d+)"', re.M)


def _constant(part: str) -> re.Pattern:
    return re.compile(rf"^version_{part}\s*=\s*(\d+)", re.M)


def read_toml_version(toml_path: Path = TOML_PATH) -> VERSION:
    """The [project] version of pyproject.toml."""
    match = _TOML_VERSION.search(toml_path.read_text(encoding="utf-8"))
    if match is None:
        raise ValueError(f"No version field found in {toml_path}")
    return int(match[2]), int(match[3]), int(match[4])


def read_package_version(init_path: Path = PACKAGE_INIT_PATH) -> VERSION:
    """The version spelled by the package constants."""
    content = init_path.read_text(encoding="utf-8")

    values = []
    for part in PARTS:
        match = _constant(part).search(content)
        if match is None:
            raise ValueError(f"version_{part} is not defined in {init_path}")
        values.append(int(match[1]))

    return values[0], values[1], values[2]


def bump(version: VERSION, part: str) -> VERSION:
    """Increment one part of a version, resetting the parts below it."""
    major, minor, patch = version
    if part == "major":
        return major + 1, 0, 0
    if part == "minor":
        return major, minor + 1, 0
    if part == "patch":
        return major, minor, patch + 1
    raise ValueError(f"Unknown version part: {part}")


def write_toml_version(version: VERSION, toml_path: Path = TOML_PATH) -> None:
    content = toml_path.read_text(encoding="utf-8")
    new_content, count = _TOML_VERSION.subn(
        lambda m: f'{m[1]}"{".".join(map(str, version))}"', content, count=1
    )
    if count == 0:
        raise ValueError(f"No version field found in {toml_path}")
    toml_path.write_text(new_content, encoding="utf-8")


def write_package_version(version: VERSION, init_path: Path = PACKAGE_INIT_PATH) -> None:
    content = init_path.read_text(encoding="utf-8")

    for part, value in zip(PARTS, version):
        content, count = _constant(part).subn(f"version_{part} = {value}", content)
        if count == 0:
            raise ValueError(f"version_{part} is not defined in {init_path}")

    init_path.write_text(content, encoding="utf-8")


def main(
    argv: Optional[list[str]] = None,
    toml_path: Path = TOML_PATH,
    init_path: Path = PACKAGE_INIT_PATH,
) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--bump", choices=PARTS, help="version part to increment")
    group.add_argument(
        "--check", action="store_true", help="only compare the two versions"
    )
    args = parser.parse_args(argv)

    released = read_toml_version(toml_path)

    if args.check:
        package = read_package_version(init_path)
        if package != released:
            print(f"courier is at {package}, pyproject.toml at {released}")
            return 1
        return 0

    if args.bump:
        released = bump(released, args.bump)
        write_toml_version(released, toml_path)

    write_package_version(released, init_path)
    print(f"courier version set to {'.'.join(map(str, released))}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
