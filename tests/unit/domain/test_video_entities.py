"""Tests for video domain entities."""

from __future__ import annotations

import dataclasses

import pytest

from jptv.domain.entities import SessionMode, SolverState, VideoHost
from jptv.domain.entities.video import VideoPost, VideoQuality, VideoStreamInfo


class TestVideoPost:
    def test_translation_fields_start_empty(self) -> None:
        post = VideoPost(
            id="abc",
            thumbnail_url="https://img.example/1.jpg",
            original_title="タイトル",
            page_url="https://9tsu.cc/douga/abc/",
        )
        assert post.romanji_title == ""
        assert post.localized_title == ""
        assert post.video_url is None
        assert post.published_date is None

    def test_is_immutable(self) -> None:
        post = VideoPost(id="a", thumbnail_url="", original_title="t", page_url="u")
        with pytest.raises(dataclasses.FrozenInstanceError):
            post.original_title = "changed"  # type: ignore[misc]

    def test_with_translations_returns_copy(self) -> None:
        post = VideoPost(id="a", thumbnail_url="", original_title="t", page_url="u")
        translated = post.with_translations("taitoru", "Title")
        assert translated.romanji_title == "taitoru"
        assert translated.localized_title == "Title"
        assert post.romanji_title == ""


class TestVideoStreamInfo:
    def test_passthrough_mirrors_url(self) -> None:
        info = VideoStreamInfo.passthrough("https://unknown.example/e/1", "unknown.example")
        assert info.direct_url == info.iframe_url
        assert info.error is None
        assert not info.is_resolved

    def test_passthrough_with_error(self) -> None:
        info = VideoStreamInfo.passthrough("https://x.example/", error="boom")
        assert info.error == "boom"
        assert info.host == ""

    def test_is_resolved(self) -> None:
        info = VideoStreamInfo(
            iframe_url="https://ok.ru/videoembed/1",
            direct_url="https://cdn.example/v.mp4",
            host="ok.ru",
            available_qualities=(VideoQuality("hd", "https://cdn.example/v.mp4"),),
        )
        assert info.is_resolved

    def test_headers_only_when_referer_required(self) -> None:
        plain = VideoStreamInfo(iframe_url="a", direct_url="b", referer="https://r/")
        assert plain.headers == {}
        dood = VideoStreamInfo(
            iframe_url="a", direct_url="b", requires_referer=True, referer="https://r/"
        )
        assert dood.headers == {"Referer": "https://r/"}


class TestEnums:
    def test_host_values(self) -> None:
        assert VideoHost.OK_RU.value == "ok.ru"
        assert VideoHost.DOODSTREAM.value == "doodstream"
        assert len(VideoHost) == 7

    def test_state_enums_are_strings(self) -> None:
        assert SolverState.AVAILABLE == "available"
        assert SessionMode.DEGRADED == "degraded"
