"""
Legacy shot_type parsing.

Gallery entries only carry a free-text ``shot_type`` label ("front-left",
"scene_action", "50c_3qleft_cu_thoughtful_v1", ...). This module maps any such
label onto a structured ``ShotSpec``. The mapping is total: every input,
including None and garbage, yields a ShotSpec whose unmatched facts are UNKNOWN.

Rule, applied in order:
  1. Normalize: lower-case, ``-`` / space / ``/`` become ``_``.
  2. Exact catalog slug -> the template's lens, crop, angle, mode, expression.
  3. Otherwise resolve angle, crop, lens, mode from the alias tables, longest
     alias first, matched on ``_`` token boundaries. A matched alias is removed
     before the next facet is resolved so "3q_left" is not also read as a
     3q crop.
  4. Unknown mode falls back to the crop's mode, then the lens's mode.
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import TYPE_CHECKING, Iterable

from refsearch.config import loaders
from refsearch.core.shot_types import Angle, Crop, Lens, ShotMode, ShotSpec

if TYPE_CHECKING:
    from refsearch.services.candidates import CharacterImage

_SEPARATORS = re.compile(r"[\s\-/]+")
_REPEATED_UNDERSCORES = re.compile(r"_+")


def normalize_shot_label(value: object) -> str:
    if value is None:
        return ""
    text = _SEPARATORS.sub("_", str(value).strip().lower())
    return _REPEATED_UNDERSCORES.sub("_", text).strip("_")


def _alias_table(entries: dict, parse) -> tuple[tuple[str, object], ...]:
    """Flatten {member: [aliases]} into (alias, member) pairs, longest alias first."""
    pairs: list[tuple[str, object]] = []
    for key, aliases in entries.items():
        member = parse(key)
        if not member.known:
            continue
        for alias in aliases:
            normalized = normalize_shot_label(alias)
            if normalized:
                pairs.append((normalized, member))
    # Stable sort keeps file order among equal-length aliases.
    pairs.sort(key=lambda pair: -len(pair[0]))
    return tuple(pairs)


@lru_cache(maxsize=4)
def _alias_tables(config_version: int) -> dict[str, tuple[tuple[str, object], ...]]:
    aliases = loaders.load_shot_aliases_v1()
    return {
        "angle": _alias_table(aliases.angle, Angle.parse),
        "crop": _alias_table(aliases.crop, Crop.parse),
        "lens": _alias_table(aliases.lens, Lens.parse),
        "mode": _alias_table(aliases.mode, ShotMode.parse),
    }


def _take(label: str, table: Iterable[tuple[str, object]]) -> tuple[object | None, str]:
    """Find the first alias present as a whole token run; return it and the label without it."""
    padded = f"_{label}_"
    for alias, member in table:
        needle = f"_{alias}_"
        index = padded.find(needle)
        if index >= 0:
            remainder = padded[:index] + "_" + padded[index + len(needle):]
            return member, remainder.strip("_")
    return None, label


def _fallback_mode(crop: Crop, lens: Lens) -> ShotMode:
    aliases = loaders.load_shot_aliases_v1()
    if crop.known and crop in aliases.crop_modes:
        return aliases.crop_modes[crop]
    if lens.known:
        return aliases.lens_modes.get(str(lens.value), ShotMode.UNKNOWN)
    return ShotMode.UNKNOWN


def parse_shot_type(shot_type: object) -> ShotSpec:
    """Map a legacy shot_type label to structured shot facts. Never raises."""
    return _parse(shot_type, infer_mode=True)


def _parse(shot_type: object, *, infer_mode: bool) -> ShotSpec:
    label = normalize_shot_label(shot_type)
    if not label:
        return ShotSpec()

    template = loaders.find_shot_template(label)
    if template is not None:
        return ShotSpec(
            lens=template.lens_mm,
            crop=template.crop,
            angle=template.angle,
            mode=template.mode,
            expression=template.expression,
            template_slug=template.slug,
        )

    tables = _alias_tables(loaders.get_config_version())
    angle, label = _take(label, tables["angle"])
    crop, label = _take(label, tables["crop"])
    lens, label = _take(label, tables["lens"])
    mode, _ = _take(label, tables["mode"])

    crop = crop or Crop.UNKNOWN
    lens = lens or Lens.UNKNOWN
    return ShotSpec(
        lens=lens,
        crop=crop,
        angle=angle or Angle.UNKNOWN,
        mode=mode or (_fallback_mode(crop, lens) if infer_mode else ShotMode.UNKNOWN),
    )


def resolve_candidate_shot(image: "CharacterImage") -> ShotSpec:
    """Combine explicit image metadata with facts parsed from its shot_type and tags.

    Explicit fields always win; parsed facts only fill gaps.
    """
    explicit = ShotSpec(
        lens=Lens.parse(image.lens_mm),
        crop=Crop.parse(image.crop),
        angle=Angle.parse(image.angle),
        mode=ShotMode.parse(image.mode),
        expression=(image.expression or None),
    )
    parsed = _parse(image.shot_type, infer_mode=False)
    for tag in image.tags:
        parsed = parsed.merged_over(_parse(tag, infer_mode=False))
    merged = explicit.merged_over(parsed)
    if not merged.mode.known:
        merged = ShotSpec(
            lens=merged.lens,
            crop=merged.crop,
            angle=merged.angle,
            mode=_fallback_mode(merged.crop, merged.lens),
            expression=merged.expression,
            template_slug=merged.template_slug,
        )
    return merged
