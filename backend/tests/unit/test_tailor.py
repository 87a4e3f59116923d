"""Unit tests for the bullet tailoring pipeline with a fake model client."""

import pytest

from jobpilot.schemas.profile import WorkExperience
from jobpilot.services.exceptions import ModelServiceFailure, NoExperiencesSelected, ValidationFailed
from jobpilot.services.tailor import (
    TAILOR_SYSTEM_PROMPT,
    build_tailor_prompt,
    reconcile_results,
    select_experiences,
    tailor_experiences,
)

JD = "We want leadership, Kubernetes and mentoring experience."


def _experience(exp_id, description, **kwargs):
    return WorkExperience(id=exp_id, company="Acme", title="Engineer", start_date="2020", description=description, **kwargs)


@pytest.fixture
def experiences():
    return [
        _experience(1, "Built X\nShipped Y\nMentored Z"),
        _experience("b", "• Ran ops\n• Cut costs\n• Hired team\n• Wrote docs", end_date="2022"),
        _experience(3, "• Did A\n• Did B"),
    ]


# --- End-to-end scenarios ---


@pytest.mark.unit
async def test_three_line_experience_keeps_three_bullets(fake_llm, experiences):
    fake_llm.queue({"results": [{"id": "1", "bullets": ["Led X with leadership", "Shipped Y"]}]})

    response = await tailor_experiences(fake_llm, JD, experiences, experience_ids=["1"])

    assert len(response.results) == 1
    assert response.results[0].id == "1"
    assert len(response.results[0].bullets) == 3


@pytest.mark.unit
async def test_single_bullet_padded_to_original_count(fake_llm, experiences):
    fake_llm.queue({"results": [{"id": "b", "bullets": ["Drove leadership across ops and hiring"]}]})

    response = await tailor_experiences(fake_llm, JD, experiences, experience_ids=["b"])

    assert response.results[0].bullets == ["Drove leadership across ops and hiring"] * 4


@pytest.mark.unit
async def test_extra_bullets_truncated(fake_llm, experiences):
    fake_llm.queue({"results": [{"id": 3, "bullets": ["1", "2", "3", "4", "5", "6"]}]})

    response = await tailor_experiences(fake_llm, JD, experiences, experience_ids=["3"])

    assert response.results[0].bullets == ["1", "2"]


@pytest.mark.unit
async def test_every_returned_experience_matches_original_count(fake_llm, experiences):
    fake_llm.queue({
        "results": [
            {"id": "1", "bullets": "• A\n• B\n• C\n• D"},
            {"id": "b", "bullets": ["One. Two. Three. Four. Five."]},
            {"id": "3", "bullets": []},
        ]
    })

    response = await tailor_experiences(fake_llm, JD, experiences)

    counts = {r.id: len(r.bullets) for r in response.results}
    assert counts == {"1": 3, "b": 4, "3": 2}
    assert response.results[1].bullets == ["One.", "Two.", "Three.", "Four."]
    # Unusable bullets fall back to the original text
    assert response.results[2].bullets == ["Did A", "Did B"]


@pytest.mark.unit
async def test_results_follow_input_order_and_drop_unknown_ids(fake_llm, experiences):
    fake_llm.queue({
        "results": [
            {"id": "3", "bullets": ["x", "y"]},
            {"id": "999", "bullets": ["ghost"]},
            {"id": "1", "bullets": ["a", "b", "c"]},
        ]
    })

    response = await tailor_experiences(fake_llm, JD, experiences)

    assert [r.id for r in response.results] == ["1", "3"]


@pytest.mark.unit
@pytest.mark.parametrize("raw", ["definitely not json", '{"results": "nope"}', "[]", ""])
async def test_malformed_output_yields_empty_results(fake_llm, experiences, raw):
    fake_llm.queue(raw)

    response = await tailor_experiences(fake_llm, JD, experiences)

    assert response.model_dump() == {"results": []}


# --- Validation and failures ---


@pytest.mark.unit
@pytest.mark.parametrize("job_description", ["", "   "])
async def test_missing_job_description_rejected(fake_llm, experiences, job_description):
    with pytest.raises(ValidationFailed, match="Job description is required"):
        await tailor_experiences(fake_llm, job_description, experiences)
    assert fake_llm.calls == []


@pytest.mark.unit
async def test_no_experiences_rejected(fake_llm):
    with pytest.raises(NoExperiencesSelected):
        await tailor_experiences(fake_llm, JD, [])


@pytest.mark.unit
async def test_selection_matching_nothing_rejected(fake_llm, experiences):
    with pytest.raises(NoExperiencesSelected):
        await tailor_experiences(fake_llm, JD, experiences, experience_ids=["nope"])


@pytest.mark.unit
async def test_model_failure_propagates(fake_llm, experiences):
    fake_llm.error = ModelServiceFailure("boom")
    with pytest.raises(ModelServiceFailure):
        await tailor_experiences(fake_llm, JD, experiences)


# --- Prompt assembly ---


@pytest.mark.unit
async def test_tailor_call_uses_json_mode(fake_llm, experiences):
    await tailor_experiences(fake_llm, JD, experiences, company="Globex", temperature=0.4)

    call = fake_llm.calls[0]
    assert call["system_prompt"] == TAILOR_SYSTEM_PROMPT
    assert call["json_mode"] is True
    assert call["temperature"] == 0.4
    assert "Company: Globex" in call["user_prompt"]


@pytest.mark.unit
def test_prompt_lists_experiences_with_bullet_counts(experiences):
    prompt = build_tailor_prompt(JD, experiences)

    assert "Company: N/A" in prompt
    assert JD in prompt
    assert "Experience 1 (id: 1, keep bullet count 3)" in prompt
    assert "Experience 2 (id: b, keep bullet count 4)" in prompt
    assert "Dates: 2020 - Present" in prompt
    assert "Dates: 2020 - 2022" in prompt
    assert "Shipped Y\nMentored Z" in prompt
    assert '{ "results": [ { "id": "<experienceId>", "bullets": ["..."] } ] }' in prompt
    assert prompt.index("Experience 1") < prompt.index("Experience 2") < prompt.index("Experience 3")


@pytest.mark.unit
def test_prompt_count_floor_for_empty_description():
    prompt = build_tailor_prompt(JD, [_experience(9, "")])
    assert "keep bullet count 1" in prompt


@pytest.mark.unit
def test_select_all_when_no_ids(experiences):
    assert select_experiences(experiences, []) == experiences
    assert select_experiences(experiences, None) == experiences


@pytest.mark.unit
def test_select_by_string_ids_keeps_profile_order(experiences):
    selected = select_experiences(experiences, ["3", "1"])
    assert [e.id for e in selected] == [1, 3]


@pytest.mark.unit
def test_reconcile_results_ignores_non_object_entries(experiences):
    results = reconcile_results(["junk", None, {"id": "1", "bullets": ["a"]}], experiences)
    assert [(r.id, r.bullets) for r in results] == [("1", ["a", "a", "a"])]
