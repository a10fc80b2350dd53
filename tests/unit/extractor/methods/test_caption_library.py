"""
Unit tests for the youtube-transcript-api method.
"""

import threading

import pytest
from youtube_transcript_api import TranscriptsDisabled, VideoUnavailable

from khozo.exceptions import CaptionsUnavailable, MethodFailure
from khozo.extractor.methods.caption_library import CaptionLibraryMethod, library_languages

VIDEO_ID = "dQw4w9WgXcQ"


def _fetch_returning(entries, calls=None):
    def fetch(video_id, languages):
        if calls is not None:
            calls.append((video_id, list(languages), threading.current_thread()))
        return entries

    return fetch


def _fetch_raising(error):
    def fetch(video_id, languages):
        raise error

    return fetch


@pytest.mark.unit
class TestCaptionLibraryMethod:
    @pytest.mark.asyncio
    async def test_runs_in_worker_thread_with_language_list(self, video_target):
        calls = []
        method = CaptionLibraryMethod(_fetch_returning([{"text": "Hello", "start": 1.25, "duration": 2.0}], calls))

        raw = await method.attempt(video_target)

        assert calls[0][:2] == (VIDEO_ID, ["en", "hi"])
        assert calls[0][2] is not threading.main_thread()
        assert [(s.start_offset_seconds, s.text) for s in raw.segments] == [(1.25, "Hello")]

    @pytest.mark.asyncio
    async def test_millisecond_offsets(self, video_target):
        method = CaptionLibraryMethod(_fetch_returning([{"text": "Hello", "offset": 65000}]), offset_unit="ms")
        raw = await method.attempt(video_target)
        assert raw.segments[0].start_offset_seconds == 65.0

    @pytest.mark.asyncio
    async def test_empty_entries_are_stripped(self, video_target):
        entries = [{"text": " ", "start": 0}, {"text": "[Music]\nplaying", "start": 3}]
        raw = await CaptionLibraryMethod(_fetch_returning(entries)).attempt(video_target)
        assert [s.text for s in raw.segments] == ["[Music] playing"]

    @pytest.mark.asyncio
    async def test_no_entries_fails(self, video_target):
        with pytest.raises(CaptionsUnavailable):
            await CaptionLibraryMethod(_fetch_returning([])).attempt(video_target)

    @pytest.mark.asyncio
    async def test_disabled_transcripts_are_content_level(self, video_target):
        method = CaptionLibraryMethod(_fetch_raising(TranscriptsDisabled(VIDEO_ID)))
        with pytest.raises(CaptionsUnavailable, match="TranscriptsDisabled"):
            await method.attempt(video_target)

    @pytest.mark.asyncio
    async def test_other_library_errors(self, video_target):
        method = CaptionLibraryMethod(_fetch_raising(VideoUnavailable(VIDEO_ID)))
        with pytest.raises(MethodFailure, match="VideoUnavailable") as exc_info:
            await method.attempt(video_target)
        assert not exc_info.value.content_level

    @pytest.mark.asyncio
    async def test_article_targets_are_rejected(self, article_target):
        with pytest.raises(MethodFailure):
            await CaptionLibraryMethod(_fetch_returning([])).attempt(article_target)

    def test_invalid_offset_unit(self):
        with pytest.raises(ValueError):
            CaptionLibraryMethod(offset_unit="minutes")


@pytest.mark.unit
def test_library_languages_deduplicated():
    assert library_languages("hi") == ["hi", "en"]
    assert library_languages("ta") == ["ta", "en", "hi"]
