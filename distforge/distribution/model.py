"""
Distribution model and registry.

A :class:`Distribution` is one packaged deployment unit built from one
application binary. The :class:`DistributionRegistry` owns the
distributions of a build and moves through three phases:

``CONFIGURING``
    distributions may be registered and edited.
``SYNTHESIZING``
    identities are frozen; the synthesizer extends content trees.
``SEALED``
    everything is read-only; steps are executed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple

from ..artifacts import ResolvedConfiguration
from ..faults import (
    DistributionNotFoundError,
    DuplicateDistributionError,
    MissingBinaryError,
    RegistryFrozenError,
)
from .content import ContentSpec

logger = logging.getLogger("distforge.registry")

DEFAULT_SERVER_MAIN_CLASS = "play.core.server.NettyServer"


@dataclass(frozen=True)
class BinarySpec:
    """
    A compiled application variant that a distribution wraps.

    Attributes:
        name: Project-scoped unique name (becomes the distribution name)
        jar_file: Compiled application jar
        assets_jar_file: Jar holding the public assets
        build_steps: Steps that produce ``jar_file`` / ``assets_jar_file``
        main_class: Server entry point used by the start scripts
        runtime: Runtime configuration; the project default is used when None
    """

    name: str
    jar_file: Path
    assets_jar_file: Path
    build_steps: Tuple[Any, ...] = ()
    main_class: str = DEFAULT_SERVER_MAIN_CLASS
    runtime: Optional[ResolvedConfiguration] = None

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Binary must have a name")
        object.__setattr__(self, "jar_file", Path(self.jar_file))
        object.__setattr__(self, "assets_jar_file", Path(self.assets_jar_file))
        object.__setattr__(self, "build_steps", tuple(self.build_steps))

    def __str__(self) -> str:
        return f"binary '{self.name}'"


class Distribution:
    """A named distribution: identity, base name, binary and content tree."""

    def __init__(
        self,
        name: str,
        binary: Optional[BinarySpec],
        contents: Optional[ContentSpec] = None,
        base_name: Optional[str] = None,
    ) -> None:
        if not name:
            raise ValueError("Distribution must have a name")
        self._name = name
        self._binary = binary
        self._base_name = base_name
        self._contents = contents if contents is not None else ContentSpec()
        self._frozen = False

    @property
    def name(self) -> str:
        return self._name

    @property
    def binary(self) -> Optional[BinarySpec]:
        return self._binary

    @binary.setter
    def binary(self, value: Optional[BinarySpec]) -> None:
        self._check_mutable("binary")
        self._binary = value

    @property
    def base_name(self) -> str:
        """Effective base name; an unset or empty base name means ``name``."""
        return self._base_name or self._name

    @base_name.setter
    def base_name(self, value: Optional[str]) -> None:
        self._check_mutable("base_name")
        self._base_name = value

    @property
    def contents(self) -> ContentSpec:
        return self._contents

    @property
    def is_frozen(self) -> bool:
        return self._frozen

    def require_binary(self) -> BinarySpec:
        """Return the binary or fail with :class:`MissingBinaryError`."""
        if self._binary is None:
            raise MissingBinaryError(self._name)
        return self._binary

    def freeze(self) -> None:
        self._frozen = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self._name,
            "base_name": self.base_name,
            "binary": self._binary.name if self._binary else None,
            "contents": self._contents.to_dict(),
        }

    def _check_mutable(self, attribute: str) -> None:
        if self._frozen:
            raise RegistryFrozenError(f"distribution '{self._name}' {attribute}", "frozen")

    def __repr__(self) -> str:
        return f"Distribution({self._name!r}, base_name={self.base_name!r})"


class RegistryPhase(str, Enum):
    CONFIGURING = "configuring"
    SYNTHESIZING = "synthesizing"
    SEALED = "sealed"


class DistributionRegistry:
    """Ordered, name-unique container of distributions."""

    def __init__(self) -> None:
        self._distributions: Dict[str, Distribution] = {}
        self._phase = RegistryPhase.CONFIGURING

    @property
    def phase(self) -> RegistryPhase:
        return self._phase

    # ── Configuration ────────────────────────────────────────────────

    def register(
        self,
        name: str,
        binary: Optional[BinarySpec],
        *,
        base_name: Optional[str] = None,
    ) -> Distribution:
        """
        Create and add a distribution.

        Raises:
            DuplicateDistributionError: If *name* is taken.
            RegistryFrozenError: If synthesis has started.
        """
        return self.add(Distribution(name, binary, base_name=base_name))

    def add(self, distribution: Distribution) -> Distribution:
        self._check_configuring(f"registry (adding '{distribution.name}')")
        if distribution.name in self._distributions:
            raise DuplicateDistributionError(distribution.name)
        self._distributions[distribution.name] = distribution
        logger.debug("Registered distribution '%s'", distribution.name)
        return distribution

    def register_binaries(self, binaries) -> List[Distribution]:
        """One distribution per binary, named and based-named after it."""
        created = []
        for binary in binaries:
            created.append(self.register(binary.name, binary, base_name=binary.name))
        return created

    # ── Lookup ───────────────────────────────────────────────────────

    def get(self, name: str) -> Distribution:
        try:
            return self._distributions[name]
        except KeyError:
            raise DistributionNotFoundError(name, available=self.names()) from None

    def names(self) -> List[str]:
        return list(self._distributions)

    def __contains__(self, name: object) -> bool:
        return name in self._distributions

    def __iter__(self) -> Iterator[Distribution]:
        return iter(list(self._distributions.values()))

    def __len__(self) -> int:
        return len(self._distributions)

    # ── Phases ───────────────────────────────────────────────────────

    def begin_synthesis(self) -> Tuple[Distribution, ...]:
        """Freeze identities and return the distributions to synthesize."""
        self._check_configuring("registry")
        self._phase = RegistryPhase.SYNTHESIZING
        for distribution in self._distributions.values():
            distribution.freeze()
        return tuple(self._distributions.values())

    def seal(self) -> None:
        """Make every content tree read-only."""
        self._phase = RegistryPhase.SEALED
        for distribution in self._distributions.values():
            distribution.freeze()
            distribution.contents.seal()

    def _check_configuring(self, what: str) -> None:
        if self._phase is not RegistryPhase.CONFIGURING:
            raise RegistryFrozenError(what, self._phase.value)

    def __repr__(self) -> str:
        return f"DistributionRegistry({len(self)} distributions, {self._phase.value})"
