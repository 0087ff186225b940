import uuid

import pytest


GALLERY = [
    {"media_id": "body", "shot_type": "35a_front_full_a_pose_v1", "is_core_reference": True, "quality_score": 90},
    {"media_id": "talk", "shot_type": "50c_front_cu_neutral_v1", "is_core_reference": True, "quality_score": 88},
    {"media_id": "feel", "shot_type": "85e_3qright_mcu_vulnerable_v1", "quality_score": 84},
    {"media_id": "blurry", "shot_type": "50c_3qleft_cu_thoughtful_v1", "quality_score": 40},
]


def _path(character_id: str) -> str:
    return f"/v1/characters/{character_id}/find-reference-for-scene"


@pytest.mark.anyio
async def test_find_reference_for_scene(client, seed_character):
    character_id = seed_character(gallery=[dict(entry) for entry in GALLERY])
    resp = await client.post(_path(character_id), json={"sceneDescription": "Two friends talking over coffee"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["selectedImage"]["mediaId"] == "talk"
    assert body["selectedImage"]["imageUrl"].startswith("https://cdn.test/")
    assert body["reasoning"].startswith("Perfect match for dialogue scenes")
    assert [alt["mediaId"] for alt in body["alternatives"]] == ["feel", "body"]
    assert body["sceneAnalysis"]["sceneType"] == "dialogue"
    assert body["sceneAnalysis"]["requiredShots"]["preferredLens"] == [50, 85]
    assert body["sceneAnalysis"]["cameraPreferences"]["intimacyLevel"] == 7
    metrics = body["searchMetrics"]
    assert metrics["totalImagesEvaluated"] == 4
    assert 0 <= metrics["selectionConfidence"] <= 1
    assert metrics["processingTimeMs"] >= 0
    assert "error" not in body
    assert resp.headers["x-request-id"]


@pytest.mark.anyio
async def test_optional_sections_are_omitted(client, seed_character):
    character_id = seed_character(gallery=[dict(entry) for entry in GALLERY])
    resp = await client.post(
        _path(character_id),
        json={
            "sceneDescription": "Two friends talking over coffee",
            "includeAlternatives": False,
            "detailedAnalysis": False,
        },
    )
    body = resp.json()
    assert body["success"] is True
    assert "alternatives" not in body
    assert "sceneAnalysis" not in body


@pytest.mark.anyio
async def test_scene_type_override_and_intensity(client, seed_character):
    character_id = seed_character(gallery=[dict(entry) for entry in GALLERY])
    resp = await client.post(
        _path(character_id),
        json={"sceneDescription": "Two friends talking", "sceneType": "action", "emotionalIntensity": 2},
    )
    body = resp.json()
    assert body["selectedImage"]["mediaId"] == "body"
    assert body["sceneAnalysis"]["sceneType"] == "action"
    assert body["sceneAnalysis"]["confidence"] == 1.0
    assert body["sceneAnalysis"]["cameraPreferences"]["emotionalIntensity"] == 2


@pytest.mark.anyio
async def test_no_images_returns_soft_failure(client, seed_character):
    character_id = seed_character()
    resp = await client.post(_path(character_id), json={"sceneDescription": "A quiet talk"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is False
    assert body["error"] == "no images available"
    assert body["searchMetrics"]["totalImagesEvaluated"] == 0
    assert "selectedImage" not in body


@pytest.mark.anyio
async def test_quality_threshold_failure(client, seed_character):
    character_id = seed_character(gallery=[{"media_id": "x", "quality_score": 60}])
    resp = await client.post(_path(character_id), json={"sceneDescription": "A quiet talk", "minQualityScore": 70})
    body = resp.json()
    assert body["success"] is False
    assert "quality threshold" in body["error"]


@pytest.mark.anyio
async def test_unknown_character_is_404(client):
    resp = await client.post(_path(str(uuid.uuid4())), json={"sceneDescription": "A quiet talk"})
    assert resp.status_code == 404
    assert resp.json()["success"] is False


@pytest.mark.anyio
async def test_malformed_character_id_is_404(client):
    resp = await client.post(_path("not-a-uuid"), json={"sceneDescription": "A quiet talk"})
    assert resp.status_code == 404


@pytest.mark.anyio
async def test_blank_description_is_400(client, seed_character):
    character_id = seed_character()
    resp = await client.post(_path(character_id), json={"sceneDescription": "   "})
    assert resp.status_code == 400
    body = resp.json()
    assert body["success"] is False
    assert "scene description" in body["error"]


@pytest.mark.anyio
async def test_out_of_range_intensity_is_400(client, seed_character):
    character_id = seed_character()
    resp = await client.post(_path(character_id), json={"sceneDescription": "A talk", "emotionalIntensity": 11})
    assert resp.status_code == 400


@pytest.mark.anyio
async def test_missing_description_is_400(client, seed_character):
    character_id = seed_character()
    resp = await client.post(_path(character_id), json={})
    assert resp.status_code == 400
    body = resp.json()
    assert body["success"] is False
    assert "scene description" in body["error"]


@pytest.mark.anyio
async def test_alternative_scores_are_whole_numbers(client, seed_character):
    character_id = seed_character(gallery=[dict(entry) for entry in GALLERY])
    resp = await client.post(_path(character_id), json={"sceneDescription": "Two friends talking over coffee"})
    for alt in resp.json()["alternatives"]:
        assert isinstance(alt["score"], int)
        assert alt["reasoning"].endswith(f"Score: {alt['score']}/100")


@pytest.mark.anyio
async def test_search_capabilities(client, seed_character):
    character_id = seed_character(
        master={"media_id": "master"},
        gallery=[dict(entry) for entry in GALLERY],
    )
    resp = await client.get(_path(character_id))
    assert resp.status_code == 200
    body = resp.json()
    assert body["characterId"] == character_id
    assert body["availableReferences"] == 5
    assert body["coreReferences"] == 3
    assert body["sceneTypes"] == ["dialogue", "action", "emotional", "establishing", "transition"]
    assert "neutral" in body["emotionalTones"]
    assert body["scoringFactors"]["sceneTypeMatch"] == 25
    assert sum(body["scoringFactors"].values()) == 100
    assert body["defaults"]["minQualityScore"] == 70


@pytest.mark.anyio
async def test_metrics_count_searches(client, seed_character):
    character_id = seed_character(gallery=[dict(entry) for entry in GALLERY])
    await client.post(_path(character_id), json={"sceneDescription": "Two friends talking over coffee"})
    resp = await client.get("/metrics")
    assert resp.status_code == 200
    assert 'refsearch_reference_searches_total{outcome="selected"}' in resp.text
    assert "refsearch_scene_types_detected_total" in resp.text
