"""Tests for the ShowSet, discussion and request models."""

from __future__ import annotations

import re

import pytest
from pydantic import ValidationError as PydanticValidationError

from showsync.models.discussion import TranslationJob
from showsync.models.requests import LinksUpdateInput, ShowSetCreateInput, ShowSetUpdateInput
from showsync.models.showset import (
    Language,
    LocalizedString,
    StageName,
    downstream_of,
    stages_between,
    utc_now,
)


class TestLocalizedString:
    def test_traditional_chinese_alias(self):
        value = LocalizedString.model_validate({"en": "Gate", "zh-TW": "閘門"})
        assert value.zh_tw == "閘門"
        assert value.model_dump(by_alias=True)["zh-TW"] == "閘門"

    def test_single_fills_one_language(self):
        value = LocalizedString.single("Rework", "en")
        assert (value.en, value.zh, value.zh_tw) == ("Rework", "", "")
        assert value.get(Language.EN) == "Rework"


def test_utc_now_millisecond_z_format():
    assert re.fullmatch(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z", utc_now())


def test_stage_ranges():
    assert downstream_of(StageName.INTEGRATED) == [StageName.IN_BIM360, StageName.DRAWING_2D]
    assert downstream_of(StageName.DRAWING_2D) == []
    assert stages_between(StageName.SCREEN, StageName.INTEGRATED) == [StageName.SCREEN, StageName.STRUCTURE]


def test_translation_job_message():
    job = TranslationJob(
        note_id="n1", show_set_id="SS-07-01", original_lang=Language.ZH_TW,
        original_content="請修改", target_languages=[Language.EN, Language.ZH],
    )
    assert job.to_message() == {
        "noteId": "n1",
        "showSetId": "SS-07-01",
        "originalLang": "zh-TW",
        "originalContent": "請修改",
        "targetLanguages": ["en", "zh"],
    }


class TestRequests:
    @pytest.mark.parametrize("show_set_id", ["SS-7-01", "SS-07-1", "ss-07-01", "SS-07AB-01"])
    def test_show_set_id_pattern(self, show_set_id):
        with pytest.raises(PydanticValidationError):
            ShowSetCreateInput(show_set_id=show_set_id, area="311", scene="SC01", description={"en": "x"})

    def test_suffixed_show_set_id_accepted(self):
        data = ShowSetCreateInput(show_set_id="SS-12A-01", area="312", scene="SC12", description={"en": "x"})
        assert data.show_set_id == "SS-12A-01"

    def test_update_is_empty(self):
        assert ShowSetUpdateInput().is_empty()
        assert not ShowSetUpdateInput(scene="SC02").is_empty()

    def test_links_changes(self):
        data = LinksUpdateInput(model_url="https://acc.example.com/model/1", clear=["drawings_url", "model_url"])
        assert data.changes() == {"model_url": "https://acc.example.com/model/1", "drawings_url": None}
