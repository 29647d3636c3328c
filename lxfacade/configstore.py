"""Rules for splitting a flat config map into reserved and free entries."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass


@dataclass(frozen=True)
class ConfigStore:
    """Holds reserved keys and reserved key prefixes of a config map."""

    reserved: tuple[str, ...] = ()
    reserved_prefixes: tuple[str, ...] = ()

    def with_reserved(self, *args: str) -> ConfigStore:
        """Return a new store with the given keys added as reserved."""
        return ConfigStore(
            reserved=self.reserved + tuple(args),
            reserved_prefixes=self.reserved_prefixes,
        )

    def with_reserved_prefixes(self, *args: str) -> ConfigStore:
        """Return a new store with the given key prefixes added as reserved.

        A prefix only matches the key itself or whole namespaces below it,
        i.e. keys starting with the prefix followed by a dot.
        """
        return ConfigStore(
            reserved=self.reserved,
            reserved_prefixes=self.reserved_prefixes + tuple(args),
        )

    def is_reserved(self, key: str) -> bool:
        """Tell whether the key is reserved or has a reserved prefix."""
        if key in self.reserved:
            return True
        return any(
            key == prefix or key.startswith(prefix + ".")
            for prefix in self.reserved_prefixes
        )

    def unreserved_map(self, mapping: Mapping[str, str]) -> dict[str, str]:
        """Return the entries whose keys are not reserved."""
        return {k: v for k, v in mapping.items() if not self.is_reserved(k)}

    def stripped_prefix_map(
        self, mapping: Mapping[str, str], prefix: str
    ) -> dict[str, str]:
        """Return the entries below ``prefix.`` with that prefix removed."""
        namespace = prefix + "."
        return {
            k[len(namespace):]: v
            for k, v in mapping.items()
            if k.startswith(namespace)
        }