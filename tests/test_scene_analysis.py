import pytest
from hypothesis import given, settings, strategies as st

from refsearch.core.exceptions import ValidationError
from refsearch.core.shot_types import Crop, EmotionalTone, Lens, SceneType
from refsearch.services.scene_analysis import analyze_scene


def test_intimate_revelation_scene():
    analysis = analyze_scene("Intimate dialogue between two characters, emotional revelation")
    assert analysis.scene_type in (SceneType.DIALOGUE, SceneType.EMOTIONAL)
    assert analysis.emotional_tone == EmotionalTone.INTIMATE
    assert analysis.camera_preferences.intimacy_level >= 7


def test_classification_counts_keywords_and_orders_them():
    analysis = analyze_scene("Intimate dialogue between two characters, emotional revelation")
    # "emotional" and "revelation" outvote the single dialogue keyword.
    assert analysis.scene_type == SceneType.EMOTIONAL
    assert analysis.keywords == ("intimate", "dialogue", "emotional", "revelation")
    # four of the seven words are triggers
    assert analysis.confidence == pytest.approx(4 / 7, abs=1e-4)
    assert analysis.required_shots.preferred_lens == (Lens.MM_85, Lens.MM_50)
    assert analysis.required_shots.preferred_crop == (Crop.MCU, Crop.CU)
    assert analysis.camera_preferences.intimacy_level == 10
    assert analysis.camera_preferences.dynamism_level == 0
    assert analysis.camera_preferences.emotional_intensity == 9


def test_action_scene():
    analysis = analyze_scene("A brutal fight and chase across the rooftops")
    assert analysis.scene_type == SceneType.ACTION
    assert analysis.emotional_tone == EmotionalTone.NEUTRAL
    assert analysis.required_shots.preferred_lens[0] == Lens.MM_35
    assert analysis.composition_needs.full_body_needed is True
    assert analysis.confidence == pytest.approx(2 / 8)


def test_emotion_words_do_not_vote_for_action():
    analysis = analyze_scene("She hides her emotions while listening to him")
    assert analysis.scene_type == SceneType.DIALOGUE
    assert analysis.keywords == ()
    assert analysis.confidence == 0.0
    assert analysis.required_shots.preferred_lens[0] != Lens.MM_35


def test_emotional_description_is_not_action():
    analysis = analyze_scene("An emotional goodbye at the station")
    assert analysis.scene_type == SceneType.EMOTIONAL
    assert "motion" not in analysis.keywords
    assert analysis.composition_needs.full_body_needed is False


def test_confidence_is_share_of_matched_words():
    sparse = analyze_scene("After a long and uneventful morning at the office, the two of them finally start talking")
    dense = analyze_scene("Talking, whispering, tender")
    assert sparse.scene_type == dense.scene_type == SceneType.DIALOGUE
    assert sparse.confidence < dense.confidence
    assert dense.confidence == 1.0


def test_ties_follow_priority_order():
    # one dialogue keyword and one action keyword: dialogue has priority
    analysis = analyze_scene("conversation during combat")
    assert analysis.scene_type == SceneType.DIALOGUE


def test_no_keywords_defaults():
    analysis = analyze_scene("The weather report")
    assert analysis.scene_type == SceneType.DIALOGUE
    assert analysis.emotional_tone == EmotionalTone.NEUTRAL
    assert analysis.confidence == 0.0
    assert analysis.keywords == ()


def test_scene_type_override_bypasses_classification():
    analysis = analyze_scene("A brutal fight and chase", scene_type="establishing")
    assert analysis.scene_type == SceneType.ESTABLISHING
    assert analysis.confidence == 1.0
    assert analysis.required_shots.preferred_lens == (Lens.MM_35,)
    assert "(provided)" in analysis.reasoning


def test_unknown_scene_type_override_is_rejected():
    with pytest.raises(ValidationError):
        analyze_scene("A quiet talk", scene_type="montage")


def test_intensity_hint_overrides_table():
    analysis = analyze_scene("Intimate dialogue, emotional revelation", emotional_intensity=3)
    assert analysis.camera_preferences.emotional_intensity == 3


@pytest.mark.parametrize("intensity", [0, 11, -1, 5.5, "7", True])
def test_invalid_intensity_rejected(intensity):
    with pytest.raises(ValidationError):
        analyze_scene("A quiet talk", emotional_intensity=intensity)


@pytest.mark.parametrize("description", ["", "   ", "\n\t", None])
def test_blank_description_rejected(description):
    with pytest.raises(ValidationError):
        analyze_scene(description)


def test_composition_refinements_append_preferences():
    analysis = analyze_scene("She stares at her hands, a close-up of her face")
    assert analysis.scene_type == SceneType.DIALOGUE
    assert analysis.composition_needs.hands_important is True
    assert analysis.composition_needs.eye_contact is True
    crops = analysis.required_shots.preferred_crop
    assert crops[:2] == (Crop.CU, Crop.MCU)
    assert crops[-1] == Crop.HANDS
    assert len(crops) == len(set(crops))


def test_contemplative_tone_wants_profile_work():
    analysis = analyze_scene("He sits alone, thoughtful, pondering the past")
    assert analysis.emotional_tone == EmotionalTone.CONTEMPLATIVE
    assert analysis.composition_needs.profile_work is True


@pytest.mark.property
class TestSceneAnalysisProperties:
    @given(description=st.text(min_size=1, max_size=200).filter(lambda s: s.strip()))
    @settings(max_examples=100, deadline=None)
    def test_confidence_and_type_are_bounded(self, description):
        analysis = analyze_scene(description)
        assert 0.0 <= analysis.confidence <= 1.0
        assert analysis.scene_type in set(SceneType)
        assert analysis.emotional_tone in set(EmotionalTone)
        prefs = analysis.camera_preferences
        for level in (prefs.intimacy_level, prefs.dynamism_level, prefs.emotional_intensity):
            assert 0 <= level <= 10

    @given(
        words=st.lists(
            st.sampled_from(
                ["talking", "fight", "tears", "landscape", "walking", "whisper", "tense",
                 "dramatic", "thinking", "hands", "profile", "the", "quietly", "door"]
            ),
            min_size=1,
            max_size=12,
        )
    )
    @settings(max_examples=100, deadline=None)
    def test_analysis_is_idempotent(self, words):
        description = " ".join(words)
        assert analyze_scene(description) == analyze_scene(description)
