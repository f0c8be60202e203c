"""Run configuration for the clustering pipeline.

Settings come from a YAML file merged over defaults, then get frozen into a
ClusteringConfig that is validated once before any edge is consumed.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Mapping
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Optional, Union

import yaml

from pafcluster.admission import DEFAULT_BSR_THRESHOLD, AdmissionPolicy
from pafcluster.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULTS: dict[str, Any] = {
    "clustering": {
        "species_set": [],
        "brh": True,
        "no_filters": False,
        "all_bests": False,
        "bsr_threshold": DEFAULT_BSR_THRESHOLD,
        "min_cluster_size": 2,
        "first_cluster_id": 1,
    },
    "logging": {
        "level": "INFO",
        "file": None,
    },
    "progress": {
        "step_every": 100_000,
    },
}

# Keys accepted in the clustering section, mapped to ClusteringConfig fields
_KEY_ALIASES = {
    "species_set": "species_set",
    "brh": "include_rbh",
    "include_rbh": "include_rbh",
    "no_filters": "no_filters",
    "all_bests": "all_bests",
    "bsr_threshold": "bsr_threshold",
    "min_cluster_size": "min_cluster_size",
    "first_cluster_id": "first_cluster_id",
}


def deep_merge(base: dict[str, Any], update: Mapping[str, Any]) -> dict[str, Any]:
    """Recursively merge ``update`` into ``base`` in place and return it."""
    for key, value in update.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, Mapping):
            deep_merge(base[key], value)
        else:
            base[key] = value
    return base


def load_settings(path: Union[str, Path, None] = None) -> dict[str, Any]:
    """Load settings from a YAML file merged over defaults.

    Args:
        path: Path to settings YAML file; None returns the defaults

    Returns:
        Settings dictionary

    Raises:
        ConfigurationError: If the file is missing or is not a YAML mapping

    """
    settings = copy.deepcopy(DEFAULTS)
    if path is None:
        return settings

    try:
        with open(path, encoding="utf-8") as f:
            user_config = yaml.safe_load(f) or {}
    except FileNotFoundError as e:
        raise ConfigurationError(f"Settings file not found: {path}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Settings file {path} is not valid YAML: {e}") from e

    if not isinstance(user_config, Mapping):
        raise ConfigurationError(f"Settings file {path} must contain a mapping")

    logger.debug(f"Settings loaded from {path}")
    return deep_merge(settings, user_config)


@dataclass(frozen=True)
class ClusteringConfig:
    """Configuration of one clustering run.

    Attributes:
        species_set: Source-group ids to cluster, in processing order
        include_rbh: Run the reciprocal-best-hit pass for each group pair
        no_filters: Admit every threshold candidate (all hits mode)
        all_bests: Admit every rank-1 threshold candidate
        bsr_threshold: Blast score ratio threshold, exclusive
        min_cluster_size: Smallest cluster handed to the sinks
        first_cluster_id: First external cluster id to allocate
        progress_every: Edges between progress log lines
    """

    species_set: tuple[int, ...] = ()
    include_rbh: bool = True
    no_filters: bool = False
    all_bests: bool = False
    bsr_threshold: float = DEFAULT_BSR_THRESHOLD
    min_cluster_size: int = 2
    first_cluster_id: int = 1
    progress_every: int = 100_000

    @classmethod
    def from_dict(cls, params: Mapping[str, Any]) -> ClusteringConfig:
        """Build a config from a flat mapping of clustering parameters.

        Unknown keys are ignored with a warning. ``species_set`` is kept as
        given so that ``validate`` can report bad values.
        """
        kwargs: dict[str, Any] = {}
        for key, value in params.items():
            field_name = _KEY_ALIASES.get(key)
            if field_name is None:
                logger.warning(f"Ignoring unknown clustering parameter: {key}")
                continue
            if value is None:
                continue
            kwargs[field_name] = value

        if "species_set" in kwargs:
            species = kwargs["species_set"]
            if isinstance(species, (list, tuple)):
                kwargs["species_set"] = tuple(species)
        return cls(**kwargs)

    @classmethod
    def from_settings(cls, settings: Mapping[str, Any]) -> ClusteringConfig:
        """Build a config from a full settings dictionary."""
        config = cls.from_dict(settings.get("clustering", {}))
        step_every = settings.get("progress", {}).get("step_every")
        if step_every is not None:
            config = replace(config, progress_every=step_every)
        return config

    def with_overrides(self, **overrides: Any) -> ClusteringConfig:
        """Return a copy with non-None overrides applied."""
        updates = {k: v for k, v in overrides.items() if v is not None}
        if "species_set" in updates:
            updates["species_set"] = tuple(updates["species_set"])
        return replace(self, **updates)

    def validate(self) -> ClusteringConfig:
        """Check the config once before a run.

        Returns:
            self, for chaining

        Raises:
            ConfigurationError: If a required value is missing or invalid

        """
        species = self.species_set
        if not isinstance(species, tuple) or not species:
            raise ConfigurationError("species_set must be a non-empty list of source-group ids")
        for gdb_id in species:
            if isinstance(gdb_id, bool) or not isinstance(gdb_id, int):
                raise ConfigurationError(f"species_set entries must be integers, got {gdb_id!r}")
        if len(set(species)) != len(species):
            raise ConfigurationError(f"species_set contains duplicates: {list(species)}")
        if not isinstance(self.bsr_threshold, (int, float)) or self.bsr_threshold < 0:
            raise ConfigurationError(f"bsr_threshold must be a number >= 0, got {self.bsr_threshold!r}")
        for name, minimum in (("min_cluster_size", 1), ("first_cluster_id", 0), ("progress_every", 1)):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
                raise ConfigurationError(f"{name} must be an integer >= {minimum}, got {value!r}")
        return self

    @property
    def policy(self) -> AdmissionPolicy:
        """Admission policy for threshold passes."""
        return AdmissionPolicy(
            no_filters=bool(self.no_filters),
            all_bests=bool(self.all_bests),
            bsr_threshold=float(self.bsr_threshold),
        )

    def describe(self) -> dict[str, Any]:
        """Parameters as logged at the start of a run."""
        return {
            "species_set": list(self.species_set),
            "brh": self.include_rbh,
            "all_blast_hits": self.no_filters,
            "all_bests": self.all_bests,
            "bsr_threshold": self.bsr_threshold,
        }


def load_config(path: Optional[Union[str, Path]] = None, **overrides: Any) -> ClusteringConfig:
    """Load, override and validate a clustering config in one step."""
    settings = load_settings(path)
    return ClusteringConfig.from_settings(settings).with_overrides(**overrides).validate()
