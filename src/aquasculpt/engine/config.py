"""Frozen dataclass config hierarchy for creature generation.

Loading precedence: defaults -> YAML file -> CLI overrides -> freeze.

The frozen guarantee prevents accidental mutation during generation. The
serialized config is written next to every exported mesh so a creature can be
regenerated exactly (together with its seed).
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

import numpy as np
import yaml

from aquasculpt.anatomy.labels import AnalFinStyle, CaudalStyle, DorsalStyle, EyeStyle

# ---------------------------------------------------------------------------
# Part config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BodyConfig:
    """Torso proportions.

    Attributes:
        length: Body length along +Z.
        height: Peak body height.
        width: Body width factor.
        arch: Downward dip of the spine at the head end.
    """

    length: float = 0.8
    height: float = 0.25
    width: float = 0.3
    arch: float = 0.05


@dataclass(frozen=True)
class HeadConfig:
    """Head, eye and mouth parameters.

    Attributes:
        size: Raw head size (x, y, z); X and Y are flattened when built.
        eye_scale: Uniform eye scale.
        eye_style: One of :class:`~aquasculpt.anatomy.labels.EyeStyle` values.
        mouth_tilt: Vertical offset of the snout.
    """

    size: tuple[float, float, float] = (0.6, 0.4, 0.4)
    eye_scale: float = 0.35
    eye_style: str = EyeStyle.BUBBLY.value
    mouth_tilt: float = 0.0

    def __post_init__(self) -> None:
        size = tuple(float(v) for v in self.size)
        if len(size) != 3:
            raise ValueError(f"head.size needs 3 components, got {self.size!r}")
        object.__setattr__(self, "size", size)
        object.__setattr__(self, "eye_style", EyeStyle(str(self.eye_style).lower()).value)


@dataclass(frozen=True)
class CaudalConfig:
    """Tail fin parameters.

    Attributes:
        length: Tail length.
        width: Tail spread.
        curve: Strength of the S-shaped swish.
        style: One of :class:`~aquasculpt.anatomy.labels.CaudalStyle` values.
    """

    length: float = 0.6
    width: float = 0.4
    curve: float = 0.1
    style: str = CaudalStyle.VBUTT.value

    def __post_init__(self) -> None:
        object.__setattr__(self, "style", CaudalStyle(str(self.style).lower()).value)


@dataclass(frozen=True)
class DorsalConfig:
    """Dorsal fin parameters.

    Attributes:
        length: Fin length as a fraction of the spine.
        width: Fin height at its root.
        shift: Start of the fin along the spine, in [0, 1].
        style: One of :class:`~aquasculpt.anatomy.labels.DorsalStyle` values.
    """

    length: float = 0.4
    width: float = 0.08
    shift: float = 0.3
    style: str = DorsalStyle.SWEPT.value

    def __post_init__(self) -> None:
        object.__setattr__(self, "style", DorsalStyle(str(self.style).lower()).value)


@dataclass(frozen=True)
class PairedFinConfig:
    """Parameters shared by the pectoral and pelvic fin pairs.

    Attributes:
        length: Fin length.
        width: Fin width factor.
        shift: Mount position along the spine, in [0, 1].
        angle: Mount angle around the spine in radians (0 = flank, >0 = up).
    """

    length: float = 0.2
    width: float = 1.0
    shift: float = 0.45
    angle: float = -1.0


@dataclass(frozen=True)
class PelvicConfig(PairedFinConfig):
    """Pelvic fin pair (belly side)."""


@dataclass(frozen=True)
class PectoralConfig(PairedFinConfig):
    """Pectoral fin pair (behind the head)."""

    length: float = 0.25
    shift: float = 0.15
    angle: float = -0.3


@dataclass(frozen=True)
class AnalConfig:
    """Anal fin parameters.

    Attributes:
        length: Fin length as a fraction of the spine.
        width: Fin height at its root.
        shift: Start of the fin along the spine, in [0, 1].
        style: One of :class:`~aquasculpt.anatomy.labels.AnalFinStyle` values.
    """

    length: float = 0.2
    width: float = 0.06
    shift: float = 0.65
    style: str = AnalFinStyle.SPIKY.value

    def __post_init__(self) -> None:
        object.__setattr__(self, "style", AnalFinStyle(str(self.style).lower()).value)


# ---------------------------------------------------------------------------
# Top-level config
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CreatureConfig:
    """Top-level frozen config for one creature.

    Attributes:
        run_id: Unique run identifier (timestamp-based by default).
        output_dir: Directory for exported meshes and reports.
        seed: Seed for the jitter generator; None draws fresh entropy.
        jitter: Relative spread of per-instance size jitter (0 disables it).
        strict: Turn kernel degradations into exceptions.
        stop_after: Name of the last stage to run (None runs all stages).
        body: Torso config.
        head: Head config.
        caudal: Tail fin config.
        dorsal: Dorsal fin config.
        pelvic: Pelvic fin pair config.
        pectoral: Pectoral fin pair config.
        anal: Anal fin config.
    """

    run_id: str = dataclasses.field(default="")
    output_dir: str = dataclasses.field(default="")
    seed: int | None = None
    jitter: float = 0.0
    strict: bool = False
    stop_after: str | None = None
    body: BodyConfig = dataclasses.field(default_factory=BodyConfig)
    head: HeadConfig = dataclasses.field(default_factory=HeadConfig)
    caudal: CaudalConfig = dataclasses.field(default_factory=CaudalConfig)
    dorsal: DorsalConfig = dataclasses.field(default_factory=DorsalConfig)
    pelvic: PelvicConfig = dataclasses.field(default_factory=PelvicConfig)
    pectoral: PectoralConfig = dataclasses.field(default_factory=PectoralConfig)
    anal: AnalConfig = dataclasses.field(default_factory=AnalConfig)

    def __post_init__(self) -> None:
        if self.jitter < 0.0 or self.jitter >= 1.0:
            raise ValueError(f"jitter must be in [0, 1), got {self.jitter}")


_SECTIONS: dict[str, type] = {
    "body": BodyConfig,
    "head": HeadConfig,
    "caudal": CaudalConfig,
    "dorsal": DorsalConfig,
    "pelvic": PelvicConfig,
    "pectoral": PectoralConfig,
    "anal": AnalConfig,
}

# Fields scaled by jitter_config; shift fields are clamped to [0, 1] after.
_JITTER_FIELDS: frozenset[str] = frozenset(
    {"length", "width", "height", "size", "eye_scale", "curve", "shift"}
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _generate_run_id() -> str:
    """Generate a timestamp-based run identifier.

    Returns:
        Run ID string of the form "run_YYYYMMDD_HHMMSS".
    """
    return f"run_{datetime.now():%Y%m%d_%H%M%S}"


def _default_output_dir(run_id: str) -> str:
    return str(Path(f"~/aquasculpt/runs/{run_id}").expanduser())


def _apply_nested_overrides(
    flat: dict[str, Any], nested: dict[str, Any]
) -> dict[str, Any]:
    """Apply nested dict overrides onto a flat key->value mapping.

    Overrides may arrive as dot-notation keys ("body.length") or as nested
    dicts ({"body": {"length": 1.2}}). Nested dicts are flattened to
    dot-notation before merging.

    Args:
        flat: Existing flat override dict (dot-notation keys).
        nested: Override source; may be nested or already flat.

    Returns:
        New flat dict combining both sources, nested taking precedence.
    """
    result = dict(flat)
    for key, value in nested.items():
        if isinstance(value, dict):
            for subkey, subvalue in value.items():
                result[f"{key}.{subkey}"] = subvalue
        else:
            result[key] = value
    return result


def _build_section_dict_from_dotted(
    flat: dict[str, Any],
) -> dict[str, dict[str, Any]]:
    """Convert dot-notation keys to a nested section->field mapping.

    For example, {"body.length": 1.2} becomes {"body": {"length": 1.2}}.
    Top-level keys (no dot) land in a special "__top__" bucket.

    Raises:
        ValueError: If a key names an unknown section.
    """
    nested: dict[str, Any] = {"__top__": {}}
    for key, value in flat.items():
        if "." in key:
            section, _, field_name = key.partition(".")
            if section not in _SECTIONS:
                raise ValueError(
                    f"Unknown config section {section!r} in key {key!r}. "
                    f"Valid sections: {sorted(_SECTIONS)}"
                )
            nested.setdefault(section, {})[field_name] = value
        else:
            nested["__top__"][key] = value
    return nested


def _coerce(value: Any, default: Any) -> Any:
    """Convert a (possibly string) override value to the type of *default*.

    Strings are parsed as YAML scalars/sequences first, so ``"1.5"``,
    ``"true"``, ``"null"`` and ``"[0.5, 0.4, 0.4]"`` all work on the command
    line.
    """
    if isinstance(value, str) and not isinstance(default, str):
        value = yaml.safe_load(value)
    if value is None:
        return None
    if isinstance(default, bool):
        return bool(value)
    if isinstance(default, float) and isinstance(value, int | float):
        return float(value)
    if isinstance(default, tuple) and isinstance(value, list | tuple):
        return tuple(value)
    return value


def _coerce_fields(cls: type, kwargs: dict[str, Any], instance: Any) -> dict[str, Any]:
    """Coerce *kwargs* against the defaults held by *instance* (of *cls*).

    Raises:
        ValueError: If a key is not a field of *cls*.
    """
    names = {f.name for f in dataclasses.fields(cls)}
    coerced: dict[str, Any] = {}
    for key, value in kwargs.items():
        if key not in names:
            raise ValueError(
                f"Unknown field {key!r} for {cls.__name__}. Valid fields: {sorted(names)}"
            )
        coerced[key] = _coerce(value, getattr(instance, key))
    return coerced


# ---------------------------------------------------------------------------
# Public factory
# ---------------------------------------------------------------------------


def load_config(
    yaml_path: str | Path | None = None,
    *,
    cli_overrides: dict[str, Any] | None = None,
    run_id: str | None = None,
) -> CreatureConfig:
    """Construct a frozen :class:`CreatureConfig` using layered overrides.

    Loading precedence (lowest -> highest priority):

    1. Dataclass field defaults
    2. YAML file (*yaml_path*)
    3. CLI overrides (*cli_overrides*)
    4. Freeze

    CLI overrides may use dot-notation keys ("body.length") or nested dicts
    ({"body": {"length": 1.2}}). String values are coerced to each field's
    type.

    Args:
        yaml_path: Optional path to a YAML config file.
        cli_overrides: Optional dict of CLI overrides (highest precedence).
        run_id: Explicit run identifier. Auto-generated if not provided.

    Returns:
        Frozen :class:`CreatureConfig` with all overrides applied.

    Raises:
        ValueError: On unknown sections/fields or invalid style names.
    """
    # --- layer 1: defaults ------------------------------------------------
    section_kwargs: dict[str, dict[str, Any]] = {name: {} for name in _SECTIONS}
    top_kwargs: dict[str, Any] = {}

    layers: list[dict[str, Any]] = []

    # --- layer 2: YAML overrides ------------------------------------------
    if yaml_path is not None:
        yaml_path = Path(yaml_path)
        with yaml_path.open() as fh:
            raw: dict[str, Any] = yaml.safe_load(fh) or {}
        layers.append(raw)

    # --- layer 3: CLI overrides -------------------------------------------
    if cli_overrides is not None:
        layers.append(cli_overrides)

    for layer in layers:
        flat = _apply_nested_overrides({}, layer)
        nested = _build_section_dict_from_dotted(flat)
        for name in _SECTIONS:
            section_kwargs[name].update(nested.get(name, {}))
        top_kwargs.update(nested["__top__"])

    # --- layer 4: resolve run_id and output_dir ---------------------------
    resolved_run_id = run_id or top_kwargs.pop("run_id", None) or _generate_run_id()
    resolved_output_dir = top_kwargs.pop(
        "output_dir", None
    ) or _default_output_dir(resolved_run_id)

    # --- construct & freeze -----------------------------------------------
    sections = {
        name: cls(**_coerce_fields(cls, section_kwargs[name], cls()))
        for name, cls in _SECTIONS.items()
    }
    top = _coerce_fields(CreatureConfig, top_kwargs, CreatureConfig())
    for name in _SECTIONS:
        top.pop(name, None)
    return CreatureConfig(
        run_id=str(resolved_run_id),
        output_dir=str(resolved_output_dir),
        **sections,
        **top,
    )


# ---------------------------------------------------------------------------
# Per-instance variation
# ---------------------------------------------------------------------------


def _jitter_section(section: Any, spread: float, rng: np.random.Generator) -> Any:
    changes: dict[str, Any] = {}
    for f in dataclasses.fields(section):
        if f.name not in _JITTER_FIELDS:
            continue
        value = getattr(section, f.name)
        if isinstance(value, tuple):
            factors = 1.0 + rng.uniform(-spread, spread, size=len(value))
            changes[f.name] = tuple(
                float(v * k) for v, k in zip(value, factors, strict=True)
            )
        else:
            jittered = float(value) * (1.0 + rng.uniform(-spread, spread))
            if f.name == "shift":
                jittered = min(max(jittered, 0.0), 1.0)
            changes[f.name] = jittered
    return dataclasses.replace(section, **changes)


def jitter_config(config: CreatureConfig, rng: np.random.Generator) -> CreatureConfig:
    """Return a copy of *config* with sizes varied by ``1 + U(-jitter, jitter)``.

    Every length, width, height, size, eye scale, curve and attachment
    fraction is multiplied by its own factor; attachment fractions are then
    clamped to [0, 1]. Angles, arch and mouth tilt are left alone. With
    ``config.jitter == 0`` the config is returned unchanged and *rng* is not
    advanced.

    Args:
        config: Base config.
        rng: Random generator supplying the factors.

    Returns:
        Jittered frozen config.
    """
    if config.jitter <= 0.0:
        return config
    changes = {
        name: _jitter_section(getattr(config, name), config.jitter, rng)
        for name in _SECTIONS
    }
    return dataclasses.replace(config, **changes)


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------


def _plain(obj: Any) -> Any:
    """Replace tuples with lists so the YAML stays loadable by ``safe_load``."""
    if isinstance(obj, dict):
        return {k: _plain(v) for k, v in obj.items()}
    if isinstance(obj, list | tuple):
        return [_plain(v) for v in obj]
    return obj


def serialize_config(config: CreatureConfig) -> str:
    """Serialize *config* to a YAML string.

    Uses :func:`dataclasses.asdict` to convert the frozen hierarchy to a
    plain dict, then :func:`yaml.dump` to produce a human-readable YAML
    string that :func:`load_config` reads back.

    Args:
        config: Frozen creature config to serialize.

    Returns:
        YAML string representation of the config.
    """
    return yaml.dump(
        _plain(dataclasses.asdict(config)), default_flow_style=False, sort_keys=True
    )


__all__ = [
    "AnalConfig",
    "BodyConfig",
    "CaudalConfig",
    "CreatureConfig",
    "DorsalConfig",
    "HeadConfig",
    "PairedFinConfig",
    "PectoralConfig",
    "PelvicConfig",
    "jitter_config",
    "load_config",
    "serialize_config",
]
