"""
Unit tests for the resource locator.
"""

from unittest.mock import AsyncMock

import pytest
from aioresponses import aioresponses

from khozo.exceptions import InvalidTarget, TargetResolutionFailure
from khozo.extractor.models import OrganizationQuery, TargetKind
from khozo.locator import HttpPointerReader, ResourceLocator, extract_video_id, match_organization, normalize_article_url

VIDEO_ID = "dQw4w9WgXcQ"


@pytest.mark.unit
class TestVideoUrlFamilies:
    @pytest.mark.parametrize(
        "url",
        [
            f"https://www.youtube.com/watch?v={VIDEO_ID}",
            f"https://youtube.com/watch?feature=share&v={VIDEO_ID}&t=42",
            f"https://m.youtube.com/watch?v={VIDEO_ID}#comments",
            f"https://youtu.be/{VIDEO_ID}",
            f"https://youtu.be/{VIDEO_ID}?si=abcdef",
            f"https://www.youtube.com/embed/{VIDEO_ID}",
            f"https://www.youtube-nocookie.com/embed/{VIDEO_ID}?start=10",
            f"https://www.youtube.com/v/{VIDEO_ID}",
            f"https://www.youtube.com/shorts/{VIDEO_ID}",
            f"https://www.youtube.com/live/{VIDEO_ID}?feature=share",
            f"https://www.youtube.com/attribution_link?a=x&v={VIDEO_ID}",
        ],
    )
    def test_every_family_yields_the_same_id(self, url):
        assert extract_video_id(url) == VIDEO_ID

    def test_ids_of_wrong_length_do_not_match(self):
        assert extract_video_id("https://www.youtube.com/watch?v=short") is None
        assert extract_video_id("https://www.youtube.com/watch?v=waytoolongvideoid") is None

    @pytest.mark.parametrize(
        "url",
        [
            "https://www.youtube.com/c/GKTodayLive",
            "https://www.youtube.com/user/StudyIQedu1",
            "https://www.youtube.com/channel/UCabcdefghij",
            "https://www.youtube.com/results?search_query=ssccgl2024x",
            "https://www.youtube.com/@examprephub",
        ],
    )
    def test_channel_and_search_pages_have_no_id(self, url):
        assert extract_video_id(url) is None

    def test_non_youtube_url_has_no_id(self):
        assert extract_video_id("https://ssc.gov.in/notice/12345678901") is None


@pytest.mark.unit
class TestOrganizationQueries:
    @pytest.mark.parametrize(
        "query,organization",
        [
            ("SSC", "SSC"),
            ("  upsc ", "UPSC"),
            ("RRB jobs", "RRB"),
            ("IBPS recruitment", "IBPS"),
            ("bpsc exam notification", "BPSC"),
            ("Indian   Army", "INDIAN ARMY"),
        ],
    )
    def test_bare_organization_is_ambiguous(self, query, organization):
        signal = match_organization(query)
        assert signal == OrganizationQuery(organization=organization, query=query.strip())

    @pytest.mark.parametrize("query", ["SSC CGL 2024", "UPSC prelims answer key", "sscx", "SBI PO result"])
    def test_specific_programs_are_not_ambiguous(self, query):
        assert match_organization(query) is None


@pytest.mark.unit
class TestArticleNormalization:
    def test_tracking_parameters_and_fragment_removed(self):
        url = "HTTPS://News.Example.COM/jobs/ssc?id=7&utm_source=x&fbclid=abc&gclid=1&si=2#top"
        assert normalize_article_url(url) == "https://news.example.com/jobs/ssc?id=7"

    def test_rejects_non_http_scheme(self):
        with pytest.raises(InvalidTarget):
            normalize_article_url("ftp://example.com/file")


@pytest.mark.unit
class TestResourceLocator:
    @pytest.mark.asyncio
    async def test_video_url_resolves_to_video_target(self):
        target = await ResourceLocator().resolve(f"https://youtu.be/{VIDEO_ID}", language="hi")

        assert target.kind is TargetKind.VIDEO
        assert target.identifier == VIDEO_ID
        assert target.language == "hi"

    @pytest.mark.asyncio
    async def test_default_language_applies(self):
        target = await ResourceLocator(default_language="en").resolve(f"https://youtu.be/{VIDEO_ID}")
        assert target.language == "en"

    @pytest.mark.asyncio
    async def test_article_url_resolves_to_article_target(self):
        target = await ResourceLocator().resolve("https://upsc.gov.in/exams?utm_medium=feed")

        assert target.kind is TargetKind.ARTICLE
        assert target.identifier == "https://upsc.gov.in/exams"

    @pytest.mark.asyncio
    async def test_organization_check_runs_first(self):
        result = await ResourceLocator().resolve("SSC")
        assert isinstance(result, OrganizationQuery)
        assert result.organization == "SSC"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("raw", ["", "   ", "latest government jobs in bihar"])
    async def test_unresolvable_input_raises(self, raw):
        with pytest.raises(TargetResolutionFailure):
            await ResourceLocator().resolve(raw)

    @pytest.mark.asyncio
    async def test_youtube_url_without_id_raises(self):
        with pytest.raises(InvalidTarget, match="could not extract video ID"):
            await ResourceLocator().resolve("https://www.youtube.com/feed/trending")

    @pytest.mark.asyncio
    async def test_channel_url_is_not_a_video(self):
        with pytest.raises(InvalidTarget, match="could not extract video ID"):
            await ResourceLocator().resolve("https://www.youtube.com/c/GKTodayLive")

    @pytest.mark.asyncio
    async def test_storage_pointer_is_dereferenced_once(self):
        reader = AsyncMock()
        reader.read_pointer.return_value = f"  https://www.youtube.com/watch?v={VIDEO_ID}\n"
        pointer = "https://project.supabase.co/storage/v1/object/public/links/abc.txt"

        target = await ResourceLocator(reader).resolve(pointer)

        reader.read_pointer.assert_awaited_once_with(pointer)
        assert target.identifier == VIDEO_ID
        assert target.source_url == f"https://www.youtube.com/watch?v={VIDEO_ID}"

    @pytest.mark.asyncio
    async def test_pointer_to_another_pointer_is_not_followed(self):
        reader = AsyncMock()
        reader.read_pointer.return_value = "https://project.supabase.co/storage/v1/object/public/links/next.txt"
        pointer = "https://project.supabase.co/storage/v1/object/public/links/abc.txt"

        target = await ResourceLocator(reader).resolve(pointer)

        assert reader.read_pointer.await_count == 1
        assert target.kind is TargetKind.ARTICLE

    @pytest.mark.asyncio
    async def test_pointer_with_junk_content_raises(self):
        reader = AsyncMock()
        reader.read_pointer.return_value = "<Error>AccessDenied</Error>"

        with pytest.raises(InvalidTarget, match="does not look like a resource URL"):
            await ResourceLocator(reader).resolve("https://x.supabase.co/storage/v1/object/public/a.txt")

    @pytest.mark.asyncio
    async def test_pointer_without_reader_raises(self):
        with pytest.raises(InvalidTarget, match="no pointer reader"):
            await ResourceLocator().resolve("https://x.supabase.co/storage/v1/object/public/a.txt")


@pytest.mark.unit
class TestHttpPointerReader:
    POINTER = "https://project.supabase.co/storage/v1/object/public/links/abc.txt"

    @pytest.mark.asyncio
    async def test_reads_body_through_the_fetcher(self, http_client):
        with aioresponses() as m:
            m.get(self.POINTER, status=200, body=f"https://youtu.be/{VIDEO_ID}\n")

            target = await ResourceLocator(HttpPointerReader(http_client)).resolve(self.POINTER)

        assert target.identifier == VIDEO_ID

    @pytest.mark.asyncio
    async def test_storage_error_is_invalid_target(self, http_client):
        with aioresponses() as m:
            m.get(self.POINTER, status=404, body="")

            with pytest.raises(InvalidTarget, match="HTTP 404"):
                await HttpPointerReader(http_client).read_pointer(self.POINTER)
