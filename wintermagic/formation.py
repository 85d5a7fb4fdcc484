"""
Procedural generation of the particle cloud.

Every particle gets two places to be: a slot on a cone spiral (the tree) and
a fixed offset on a spherical shell (the exploded cloud). The exploded cloud
slowly swirls around the vertical axis, so its targets depend on time.
"""
import logging
import math
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from .config import Cfg
from .types import EntityConfig, FormationState, ParticleKind

logger = logging.getLogger(__name__)

GLYPHS = ("🎁", "🎄", "🎅", "🔔", "👔", "🧦", "❄️", "🦌")

BOX_COLOR = "#ff3333"
CONE_COLOR = "#228822"
GOLD = "#ffd700"
WHITE = "#ffffff"

# Lower bounds of the uniform roll for each kind, checked in order
KIND_BANDS = (
    (0.6, ParticleKind.GLYPH),
    (0.4, ParticleKind.BOX),
    (0.2, ParticleKind.CONE),
)


def tree_position(t: float, height: float, base_radius: float,
                  turns: float) -> Tuple[float, float, float]:
    """
    Point on the cone spiral for parameter t in [0, 1].

    t = 0 is the bottom of the tree at full radius, t = 1 the tip.
    """
    angle = t * 2 * math.pi * turns
    y = t * height - height / 2
    r = base_radius * (1 - t)
    return (math.cos(angle) * r, y, math.sin(angle) * r)


def swirl(offsets: np.ndarray, elapsed: float, speed: float) -> np.ndarray:
    """Rotate offsets (..., 3) about the vertical axis by elapsed * speed."""
    angle = elapsed * speed
    c, s = math.cos(angle), math.sin(angle)
    x = offsets[..., 0]
    z = offsets[..., 2]
    out = np.array(offsets, dtype=float, copy=True)
    out[..., 0] = x * c - z * s
    out[..., 2] = x * s + z * c
    return out


@dataclass(frozen=True)
class FormationTable:
    """Immutable particle table plus array views for per-frame lookups."""
    entities: Tuple[EntityConfig, ...]
    tree_positions: np.ndarray    # (N, 3)
    exploded_offsets: np.ndarray  # (N, 3)
    initial_positions: np.ndarray # (N, 3)
    scales: np.ndarray            # (N,)
    spins: np.ndarray             # (N, 3)
    swirl_speed: float

    def __len__(self) -> int:
        return len(self.entities)

    def __getitem__(self, entity_id: int) -> EntityConfig:
        return self.entities[entity_id]

    def exploded_targets(self, elapsed: float) -> np.ndarray:
        return swirl(self.exploded_offsets, elapsed, self.swirl_speed)

    def targets(self, formation: FormationState, elapsed: float) -> np.ndarray:
        """Target positions (N, 3) of every particle for this frame."""
        if formation == FormationState.TREE:
            return self.tree_positions
        return self.exploded_targets(elapsed)


class ParticleFormationGenerator:
    """Builds the particle table once per session."""

    def __init__(self, cfg: Cfg, seed: Optional[int] = None):
        self.cfg = cfg.formation
        self.seed = self.cfg.seed if seed is None else seed

    def generate(self) -> FormationTable:
        cfg = self.cfg
        rng = np.random.default_rng(self.seed)
        count = cfg.particle_count

        entities = []
        for i in range(count):
            tree_pos = tree_position(i / count, cfg.tree_height, cfg.tree_base_radius, cfg.tree_turns)
            kind, glyph, color = self._roll_kind(rng)
            initial = (rng.random(3) - 0.5) * cfg.spawn_extent
            entities.append(EntityConfig(
                id=i,
                kind=kind,
                glyph=glyph,
                color=color,
                initial_pos=tuple(float(v) for v in initial),
                tree_pos=tree_pos,
                exploded_offset=self._shell_offset(rng),
                scale=float(0.3 + rng.random() * 0.4),
                spin=tuple(float(v) for v in rng.random(3)),
            ))

        logger.info("🎄 Generated %d particles (seed=%s)", count, self.seed)
        return FormationTable(
            entities=tuple(entities),
            tree_positions=_frozen([e.tree_pos for e in entities]),
            exploded_offsets=_frozen([e.exploded_offset for e in entities]),
            initial_positions=_frozen([e.initial_pos for e in entities]),
            scales=_frozen([e.scale for e in entities]),
            spins=_frozen([e.spin for e in entities]),
            swirl_speed=cfg.swirl_speed,
        )

    def _shell_offset(self, rng: np.random.Generator) -> Tuple[float, float, float]:
        # Uniform direction on the sphere via inverse transform sampling
        theta = rng.random() * 2 * math.pi
        phi = math.acos(rng.random() * 2 - 1)
        inner, outer = self.cfg.explode_inner_radius, self.cfg.explode_outer_radius
        r = inner + rng.random() * (outer - inner)
        return (
            r * math.sin(phi) * math.cos(theta),
            r * math.sin(phi) * math.sin(theta),
            r * math.cos(phi),
        )

    @staticmethod
    def _roll_kind(rng: np.random.Generator) -> Tuple[ParticleKind, Optional[str], str]:
        roll = rng.random()
        for lower, kind in KIND_BANDS:
            if roll > lower:
                break
        else:
            kind = ParticleKind.SPHERE

        if kind == ParticleKind.GLYPH:
            return kind, GLYPHS[int(rng.integers(len(GLYPHS)))], WHITE
        if kind == ParticleKind.BOX:
            return kind, None, BOX_COLOR
        if kind == ParticleKind.CONE:
            return kind, None, CONE_COLOR
        return kind, None, GOLD if rng.random() > 0.5 else WHITE


def _frozen(values) -> np.ndarray:
    array = np.array(values, dtype=float)
    array.setflags(write=False)
    return array
