"""Name, tag and port derivation for branch deployments.

Every function here is pure: the same branch name always yields the same
stack name, image tag and host port, so repeated CI runs for a branch
address the same remote resources.
"""

import re

from komodo_deploy.models.branch import BranchContext

BASE_PORT = 3000
PORT_RANGE = 1000

_SUFFIX_INVALID = re.compile(r"[^a-zA-Z0-9-]")
_TAG_INVALID = re.compile(r"[^a-z0-9-]")
_EDGE_DASHES = re.compile(r"^-+|-+$")
_DASH_RUNS = re.compile(r"-+")


def _utf16_units(char: str) -> int:
    return 2 if ord(char) > 0xFFFF else 1


def branch_suffix(branch_name: str) -> str:
    """Lowercase the branch and replace anything but letters, digits and dashes.

    Characters outside the BMP count as two UTF-16 units and become two
    dashes, so suffixes match those produced by the JavaScript tooling that
    shares these resources.
    """
    suffix = _SUFFIX_INVALID.sub(lambda m: "-" * _utf16_units(m.group()), branch_name)
    return suffix.lower()


def docker_tag(branch_name: str) -> str:
    """Docker-safe image tag: ``[a-z0-9-]`` only, no edge dashes, no dash runs."""
    tag = _TAG_INVALID.sub("-", branch_name.lower())
    tag = _EDGE_DASHES.sub("", tag)
    return _DASH_RUNS.sub("-", tag)


def string_hash(value: str) -> int:
    """Java-style ``h * 31 + c`` hash over UTF-16 units, as signed 32-bit."""
    acc = 0
    for unit in _utf16_code_units(value):
        acc = ((acc << 5) - acc + unit) & 0xFFFFFFFF
    if acc >= 0x80000000:
        acc -= 0x100000000
    return acc


def _utf16_code_units(value: str) -> list[int]:
    data = value.encode("utf-16-le", "surrogatepass")
    return [int.from_bytes(data[i : i + 2], "little") for i in range(0, len(data), 2)]


def host_port(suffix: str) -> int:
    """Host port in [3000, 3999] for a branch suffix.

    Distinct branches can collide; nothing detects it.
    """
    return BASE_PORT + abs(string_hash(suffix)) % PORT_RANGE


def derive(branch_name: str) -> BranchContext:
    """Derive every branch-specific identifier for a deployment run."""
    suffix = branch_suffix(branch_name)
    return BranchContext(
        branch_name=branch_name,
        branch_suffix=suffix,
        docker_tag=docker_tag(branch_name),
        host_port=host_port(suffix),
    )
