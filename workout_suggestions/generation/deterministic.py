"""Local deterministic workout generator.

Builds a warm-up / main / cool-down session from a small movement library.
All choices come from a random.Random seeded by the seed token, so the same
token and inputs always produce the same workout. Used as the legacy
fallback strategy.
"""

import random
from dataclasses import dataclass
from typing import Any, Dict, List, Tuple

from ..domain import MAX_INTENSITY, MIN_INTENSITY, clamp


@dataclass(frozen=True)
class Movement:
    id: str
    name: str
    equipment: Tuple[str, ...]
    tags: Tuple[str, ...]


MOVEMENTS: List[Movement] = [
    Movement("jumping-jacks", "Jumping Jacks", ("bodyweight",), ("warmup", "conditioning")),
    Movement("worlds-greatest", "World's Greatest Stretch", ("bodyweight",), ("warmup", "mobility")),
    Movement("cat-cow", "Cat-Cow", ("bodyweight",), ("mobility", "cooldown")),
    Movement("dead-bug", "Dead Bug", ("bodyweight",), ("core", "warmup")),
    Movement("plank", "Plank Hold", ("bodyweight",), ("core", "cooldown")),
    Movement("air-squat", "Air Squat", ("bodyweight",), ("squat", "lower", "conditioning")),
    Movement("push-up", "Push-up", ("bodyweight",), ("push", "full")),
    Movement("burpee", "Burpee", ("bodyweight",), ("conditioning", "full")),
    Movement("goblet-squat", "Goblet Squat", ("dumbbell", "kettlebell"), ("squat", "lower")),
    Movement("db-rdl", "Dumbbell Romanian Deadlift", ("dumbbell",), ("hinge", "lower")),
    Movement("db-press", "Dumbbell Bench Press", ("dumbbell",), ("push",)),
    Movement("db-row", "Single-arm Dumbbell Row", ("dumbbell",), ("pull",)),
    Movement("kb-swing", "Kettlebell Swing", ("kettlebell",), ("hinge", "conditioning", "full")),
    Movement("back-squat", "Back Squat", ("barbell",), ("squat", "lower")),
    Movement("deadlift", "Deadlift", ("barbell",), ("hinge", "lower")),
    Movement("pull-up", "Pull-up", ("pullup-bar",), ("pull",)),
    Movement("row-erg", "Row Erg", ("rower",), ("mono", "conditioning")),
    Movement("run", "Run", ("bodyweight",), ("mono", "lower")),
]

EQUIPMENT_ALIASES = {
    "dumbbells": "dumbbell",
    "kettlebells": "kettlebell",
    "barbells": "barbell",
    "pull_up_bar": "pullup-bar",
    "pullup_bar": "pullup-bar",
}


def normalize_equipment(equipment: List[str]) -> List[str]:
    """Canonical equipment names; bodyweight is always available."""
    normalized = []
    for item in equipment:
        if not item:
            continue
        name = EQUIPMENT_ALIASES.get(item.lower(), item.lower())
        if name not in normalized:
            normalized.append(name)
    if "bodyweight" not in normalized:
        normalized.append("bodyweight")
    return normalized


def dose_strength(intensity: int) -> Dict[str, Any]:
    if intensity >= 8:
        return {"sets": 5, "reps": 3, "restSec": 150, "load": "RPE 9"}
    if intensity >= 6:
        return {"sets": 5, "reps": 5, "restSec": 120, "load": "RPE 8"}
    if intensity >= 4:
        return {"sets": 4, "reps": 8, "restSec": 90, "load": "RPE 7"}
    return {"sets": 3, "reps": 10, "restSec": 60, "load": "RPE 6"}


def dose_conditioning(intensity: int) -> Dict[str, Any]:
    work = 45 if intensity >= 8 else 40 if intensity >= 6 else 30
    rest = 15 if intensity >= 8 else 20 if intensity >= 6 else 30
    return {"sets": 10, "seconds": work, "restSec": rest}


class DeterministicGenerator:
    """Seeded, dependency-free generator callable as a generation strategy."""

    def __init__(self, movements: List[Movement] = None):
        self.movements = movements or MOVEMENTS

    def __call__(self, seed: Any, options: Dict[str, Any]) -> Dict[str, Any]:
        return self.generate(seed, options)

    def generate(self, seed: Any, options: Dict[str, Any]) -> Dict[str, Any]:
        """Generate a workout from a seed envelope ({"inputs": ..., "rngSeed": ...}) or bare inputs."""
        envelope = seed if isinstance(seed, dict) else {}
        inputs = envelope.get("inputs", envelope)
        if not isinstance(inputs, dict) or not inputs.get("minutes"):
            raise ValueError("Generator inputs must include minutes")

        archetype = inputs.get("archetype", "mixed")
        minutes = int(inputs["minutes"])
        intensity = int(clamp(int(inputs.get("targetIntensity", 6)), MIN_INTENSITY, MAX_INTENSITY))
        equipment = normalize_equipment(list(inputs.get("equipment") or []))

        token = envelope.get("rngSeed") or options.get("seed") or \
            f"{archetype}:{minutes}:{intensity}:{','.join(equipment)}"
        rng = random.Random(str(token))
        pool = [m for m in self.movements if set(m.equipment) & set(equipment)]

        total_sec = minutes * 60
        warm_sec = max(300, round(total_sec * 0.2))
        main_sec = max(600, round(total_sec * 0.7))
        cool_sec = max(180, total_sec - warm_sec - main_sec)

        warmup = self._choose(pool, ("warmup", "mobility", "core"), rng, 2)
        blocks = [{
            "key": "warmup",
            "title": "Warm-up",
            "targetSeconds": warm_sec,
            "style": "interval",
            "items": [self._timed(m, 1, round(warm_sec / len(warmup)), 0, "bodyweight") for m in warmup],
        }]
        blocks.append(self._main_block(archetype, pool, rng, intensity, main_sec))
        cooldown = self._choose(pool, ("cooldown", "mobility", "core"), rng, 1)
        blocks.append({
            "key": "cooldown",
            "title": "Cool-down",
            "targetSeconds": cool_sec,
            "style": "interval",
            "items": [self._timed(m, 1, cool_sec, 0, "easy") for m in cooldown],
        })

        return {
            "name": f"{archetype.title()} Session",
            "duration": minutes,
            "intensity": intensity,
            "equipment": equipment,
            "blocks": blocks,
            "totalSeconds": warm_sec + main_sec + cool_sec,
            "summary": f"{archetype} session • {minutes}min • intensity {intensity}/10",
            "meta": {"rngSeed": str(token)},
        }

    def _main_block(self, archetype: str, pool: List[Movement], rng: random.Random,
                    intensity: int, main_sec: int) -> Dict[str, Any]:
        if archetype == "strength":
            dose = dose_strength(intensity)
            picks = self._choose(pool, ("squat", "hinge", "push", "pull"), rng, 2)
            return {
                "key": "main", "title": "Main Strength", "targetSeconds": main_sec, "style": "straight-sets",
                "items": [self._reps(m, dose) for m in picks],
            }
        if archetype == "conditioning":
            dose = dose_conditioning(intensity)
            picks = self._choose(pool, ("conditioning", "full", "squat", "hinge"), rng, 4)
            return {
                "key": "main", "title": "MetCon", "targetSeconds": main_sec, "style": "amrap",
                "items": [self._timed(m, dose["sets"], dose["seconds"], dose["restSec"], "moderate") for m in picks],
            }
        if archetype == "endurance":
            picks = self._choose(pool, ("mono", "conditioning", "lower"), rng, 1)
            return {
                "key": "main", "title": "Intervals", "targetSeconds": main_sec, "style": "interval",
                "items": [self._timed(m, 8, 60, 30, "sustainable") for m in picks],
            }

        strength_dose = dose_strength(intensity)
        conditioning_dose = dose_conditioning(intensity)
        strength = self._choose(pool, ("squat", "hinge", "push", "pull"), rng, 1)
        conditioning = self._choose(pool, ("conditioning", "full"), rng, 2)
        return {
            "key": "main", "title": "Mixed", "targetSeconds": main_sec, "style": "circuit",
            "items": [self._reps(m, strength_dose) for m in strength] + [
                self._timed(m, conditioning_dose["sets"], conditioning_dose["seconds"],
                            conditioning_dose["restSec"], "moderate")
                for m in conditioning
            ],
        }

    def _choose(self, pool: List[Movement], tags: Tuple[str, ...], rng: random.Random, n: int) -> List[Movement]:
        candidates = [m for m in pool if set(tags) & set(m.tags)]
        picked = []
        for _ in range(min(n, len(candidates))):
            picked.append(candidates.pop(rng.randrange(len(candidates))))
        if picked:
            return picked
        source = pool or self.movements
        return source[:max(1, n)]

    @staticmethod
    def _reps(movement: Movement, dose: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "movementId": movement.id,
            "name": movement.name,
            "prescription": {"type": "reps", **dose},
        }

    @staticmethod
    def _timed(movement: Movement, sets: int, seconds: int, rest: int, load: str) -> Dict[str, Any]:
        return {
            "movementId": movement.id,
            "name": movement.name,
            "prescription": {"type": "time", "sets": sets, "seconds": seconds, "restSec": rest, "load": load},
        }
