"""
Closed shot vocabularies shared by the catalog, the parser and the scorer.

Every enumeration carries an ``UNKNOWN`` member. ``parse()`` never raises:
legacy or malformed values collapse to ``UNKNOWN`` so the scoring factor that
depends on them degrades to zero instead of failing the request.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


def _normalize(value: object) -> str:
    return str(value).strip().lower().replace("-", "_").replace(" ", "_").replace("/", "_")


class Lens(int, Enum):
    """Focal lengths used by the reference shot packs."""

    UNKNOWN = 0
    MM_35 = 35
    MM_50 = 50
    MM_85 = 85

    @classmethod
    def parse(cls, value: object) -> "Lens":
        if value is None or isinstance(value, bool):
            return cls.UNKNOWN
        if isinstance(value, Enum):
            value = value.value
        text = str(value).strip().lower().removesuffix("mm").strip()
        try:
            mm = int(float(text))
        except (ValueError, OverflowError):
            return cls.UNKNOWN
        for member in cls:
            if member.value == mm and member is not cls.UNKNOWN:
                return member
        return cls.UNKNOWN

    @property
    def known(self) -> bool:
        return self is not Lens.UNKNOWN


class _LabelEnum(str, Enum):
    @classmethod
    def parse(cls, value: object):
        if value is None:
            return cls.UNKNOWN
        if isinstance(value, cls):
            return value
        if isinstance(value, Enum):
            value = value.value
        normalized = _normalize(value)
        for member in cls:
            if _normalize(member.value) == normalized:
                return member
        return cls.UNKNOWN

    @property
    def known(self) -> bool:
        return self.value != "unknown"


class ShotMode(_LabelEnum):
    """Photographic intent of a reference shot."""

    ACTION_BODY = "Action/Body"
    CONVERSATION = "Conversation"
    EMOTION = "Emotion"
    HANDS = "Hands"
    UNKNOWN = "unknown"


class Angle(_LabelEnum):
    """Camera position around the character."""

    FRONT = "front"
    BACK = "back"
    LEFT = "left"
    RIGHT = "right"
    THREE_Q_LEFT = "3q_left"
    THREE_Q_RIGHT = "3q_right"
    PROFILE_LEFT = "profile_left"
    PROFILE_RIGHT = "profile_right"
    UNKNOWN = "unknown"


class Crop(_LabelEnum):
    """Framing of the subject."""

    FULL = "full"
    THREE_Q = "3q"  # mid-thigh
    CU = "cu"  # chest up
    MCU = "mcu"  # shoulders up
    HANDS = "hands"
    UNKNOWN = "unknown"


class Pack(_LabelEnum):
    CORE = "core"
    ADDON = "addon"
    UNKNOWN = "unknown"


class SceneType(str, Enum):
    """Narrative scene categories recognised by the analyzer."""

    DIALOGUE = "dialogue"
    ACTION = "action"
    EMOTIONAL = "emotional"
    ESTABLISHING = "establishing"
    TRANSITION = "transition"


class EmotionalTone(str, Enum):
    NEUTRAL = "neutral"
    TENSE = "tense"
    INTIMATE = "intimate"
    DRAMATIC = "dramatic"
    CONTEMPLATIVE = "contemplative"


@dataclass(frozen=True)
class ShotSpec:
    """Structured camera facts for one image, each possibly unknown."""

    lens: Lens = Lens.UNKNOWN
    crop: Crop = Crop.UNKNOWN
    angle: Angle = Angle.UNKNOWN
    mode: ShotMode = ShotMode.UNKNOWN
    expression: str | None = None
    template_slug: str | None = None

    def merged_over(self, base: "ShotSpec") -> "ShotSpec":
        """Return a ShotSpec where known facts of ``self`` win over ``base``."""
        return ShotSpec(
            lens=self.lens if self.lens.known else base.lens,
            crop=self.crop if self.crop.known else base.crop,
            angle=self.angle if self.angle.known else base.angle,
            mode=self.mode if self.mode.known else base.mode,
            expression=self.expression or base.expression,
            template_slug=self.template_slug or base.template_slug,
        )
