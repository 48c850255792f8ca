"""
Binding Resolver - finds and loads the compiled native module for this host.

Candidate locations are probed by an ordered list of strategies, most specific
first, so a local debug build never shadows a correctly matched prebuilt:

    1. prebuilds/{os}-{arch}-embedded/   (frozen app bundles only)
    2. prebuilt lookup                   (file placed by the prebuilt installer)
    3. prebuilds/{os}-{arch}/            (bundled prebuilds, any ABI)
    4. build/Release, build/Debug        (local compiler output)
"""

from __future__ import annotations

import importlib.machinery
import importlib.util
import platform
import sys
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from types import ModuleType
from typing import Callable, List, Optional

from loguru import logger

from .config import BINDING_NAME, PACKAGE_ROOT, native_extension
from .errors import BindingLoadFailure

STANDARD = "standard"
EMBEDDED = "embedded"

_OS_NAMES = {"darwin": "darwin", "linux": "linux", "win32": "win32", "cygwin": "win32"}
_ARCH_NAMES = {
    "x86_64": "x64",
    "amd64": "x64",
    "arm64": "arm64",
    "aarch64": "arm64",
    "i386": "ia32",
    "i686": "ia32",
    "x86": "ia32",
    "armv7l": "arm",
}


@dataclass(frozen=True)
class RuntimeIdentity:
    """Lookup key used to pick the right artifact."""
    os: str
    arch: str
    host_flavor: str
    abi_version: int

    @property
    def platform_key(self) -> str:
        return f"{self.os}-{self.arch}"

    @property
    def extension(self) -> str:
        return native_extension(self.os)


@dataclass(frozen=True)
class CandidateLocation:
    strategy: str
    path: str


@dataclass
class ProbeResult:
    binding: Optional[ModuleType] = None
    attempted: List[CandidateLocation] = field(default_factory=list)


Loader = Callable[[Path], ModuleType]
PrebuiltLookup = Callable[[Path, RuntimeIdentity], Optional[Path]]


def normalize_os(name: str) -> str:
    for prefix, normalized in _OS_NAMES.items():
        if name.startswith(prefix):
            return normalized
    return name


def normalize_arch(machine: str) -> str:
    machine = machine.lower()
    return _ARCH_NAMES.get(machine, machine)


@lru_cache(maxsize=1)
def identify() -> RuntimeIdentity:
    """
    Derive the identity tuple of the running interpreter.

    Frozen application bundles (PyInstaller, py2app, cx_Freeze) vendor their
    own runtime and get their own artifact variant, even on the same OS/arch.
    """
    flavor = EMBEDDED if getattr(sys, "frozen", False) else STANDARD
    return RuntimeIdentity(
        os=normalize_os(sys.platform),
        arch=normalize_arch(platform.machine()),
        host_flavor=flavor,
        abi_version=sys.version_info.major * 100 + sys.version_info.minor,
    )


def load_extension(path: Path) -> ModuleType:
    """Load a compiled extension module from an explicit file path."""
    loader = importlib.machinery.ExtensionFileLoader(BINDING_NAME, str(path))
    spec = importlib.util.spec_from_file_location(BINDING_NAME, str(path), loader=loader)
    if spec is None:
        raise ImportError(f"Cannot create module spec for {path}")
    module = importlib.util.module_from_spec(spec)
    loader.exec_module(module)
    return module


def default_prebuilt_lookup(root: Path, identity: RuntimeIdentity) -> Optional[Path]:
    """Path of the identity-tagged file the prebuilt installer places."""
    filename = f"{BINDING_NAME}.{identity.host_flavor}.abi{identity.abi_version}{identity.extension}"
    return root / "prebuilds" / identity.platform_key / filename


@dataclass
class ProbeContext:
    root: Path
    loader: Loader
    prebuilt_lookup: PrebuiltLookup


def _try_load(ctx: ProbeContext, path: Path) -> Optional[ModuleType]:
    try:
        return ctx.loader(path)
    except (ImportError, OSError) as e:
        logger.warning(f"Found {path} but could not load it: {e}")
        return None


def _first_artifact(directory: Path, extension: str, exclude: Optional[Path] = None) -> Optional[Path]:
    if not directory.is_dir():
        return None
    for candidate in sorted(directory.glob(f"*{extension}")):
        if candidate.is_file() and candidate != exclude:
            return candidate
    return None


def probe_embedded(identity: RuntimeIdentity, ctx: ProbeContext) -> ProbeResult:
    if identity.host_flavor != EMBEDDED:
        return ProbeResult()

    directory = ctx.root / "prebuilds" / f"{identity.platform_key}-embedded"
    exact = directory / f"{BINDING_NAME}.abi{identity.abi_version}{identity.extension}"
    result = ProbeResult(attempted=[CandidateLocation("embedded", str(exact))])

    if exact.is_file():
        result.binding = _try_load(ctx, exact)
        if result.binding is not None:
            return result

    result.attempted.append(CandidateLocation("embedded", str(directory / f"*{identity.extension}")))
    fallback = _first_artifact(directory, identity.extension, exclude=exact)
    if fallback is not None:
        logger.warning(
            f"No artifact for ABI {identity.abi_version} in {directory}; "
            f"loading {fallback.name}, which may be built for a different ABI"
        )
        result.binding = _try_load(ctx, fallback)
    return result


def probe_prebuilt_lookup(identity: RuntimeIdentity, ctx: ProbeContext) -> ProbeResult:
    try:
        path = ctx.prebuilt_lookup(ctx.root, identity)
    except Exception as e:
        logger.debug(f"Prebuilt lookup failed: {e}")
        return ProbeResult()
    if not path:
        return ProbeResult()

    path = Path(path)
    result = ProbeResult(attempted=[CandidateLocation("prebuilt-lookup", str(path))])
    if path.is_file():
        result.binding = _try_load(ctx, path)
    return result


def probe_bundled(identity: RuntimeIdentity, ctx: ProbeContext) -> ProbeResult:
    directory = ctx.root / "prebuilds" / identity.platform_key
    result = ProbeResult(attempted=[CandidateLocation("bundled", str(directory / f"*{identity.extension}"))])
    artifact = _first_artifact(directory, identity.extension)
    if artifact is not None:
        result.binding = _try_load(ctx, artifact)
    return result


def probe_local_build(identity: RuntimeIdentity, ctx: ProbeContext) -> ProbeResult:
    result = ProbeResult()
    for config in ("Release", "Debug"):
        path = ctx.root / "build" / config / f"{BINDING_NAME}{identity.extension}"
        result.attempted.append(CandidateLocation(f"local-build:{config}", str(path)))
        if path.is_file():
            result.binding = _try_load(ctx, path)
            if result.binding is not None:
                break
    return result


STRATEGIES = (probe_embedded, probe_prebuilt_lookup, probe_bundled, probe_local_build)


def resolve(
    identity: Optional[RuntimeIdentity] = None,
    root: Optional[Path] = None,
    loader: Loader = load_extension,
    prebuilt_lookup: PrebuiltLookup = default_prebuilt_lookup,
) -> ModuleType:
    """
    Load the first matching native module for ``identity``.

    Raises:
        BindingLoadFailure: no candidate yielded a loadable module; the error
            lists every attempted location in probe order.
    """
    identity = identity or identify()
    ctx = ProbeContext(root=Path(root or PACKAGE_ROOT), loader=loader, prebuilt_lookup=prebuilt_lookup)

    attempted: List[CandidateLocation] = []
    for strategy in STRATEGIES:
        result = strategy(identity, ctx)
        attempted.extend(result.attempted)
        if result.binding is not None:
            logger.info(f"Loaded native binding via {result.attempted[-1].strategy} for {identity.platform_key}")
            return result.binding

    raise BindingLoadFailure(identity, attempted)


# Process-scoped binding: resolved once, never reloaded
_binding: Optional[ModuleType] = None


def get_binding() -> ModuleType:
    """Get or resolve the process-wide native binding (singleton)."""
    global _binding
    if _binding is None:
        _binding = resolve()
    return _binding
