import asyncio

import httpx
import pytest
from pydantic import ValidationError

from poster_core.config_manager import ConfigManager
from poster_core.ingestion.models import PageMetadata, VideoReference, extract_bvid
from poster_core.ingestion.resolver import MetadataResolver, extract_page_metadata
from poster_core.packaging.models import GenerationTask
from poster_core.packaging.prompt_builder import build_prompt


@pytest.fixture
def config_manager(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    return ConfigManager()


def make_resolver(config_manager, handler):
    return MetadataResolver(config_manager, transport=httpx.MockTransport(handler))


def resolve(resolver, url):
    return asyncio.run(resolver.resolve(VideoReference.from_url(url)))


class TestVideoReference:
    def test_extracts_bvid(self):
        ref = VideoReference.from_url("https://www.bilibili.com/video/BV1xx411c7mD/?spm=333")
        assert ref.platform_id == "BV1xx411c7mD"

    def test_no_bvid_for_other_sites(self):
        assert VideoReference.from_url("https://example.com/watch?id=abc").platform_id is None
        assert extract_bvid("https://youtube.com/watch?v=dQw4w9WgXcQ") is None

    def test_is_frozen(self):
        ref = VideoReference.from_url("https://example.com")
        with pytest.raises(ValidationError):
            ref.url = "https://other.example.com"


class TestExtractPageMetadata:
    def test_title_and_description(self):
        html = (
            '<html><head><title lang="en"> Piper &amp; Friends </title>'
            '<meta name="description" content="A sandpiper learns to swim."></head></html>'
        )
        meta = extract_page_metadata(html)
        assert meta.title == "Piper & Friends"
        assert meta.description == "A sandpiper learns to swim."

    def test_missing_fields_are_none(self):
        meta = extract_page_metadata("<html><body>nothing here</body></html>")
        assert meta.title is None
        assert meta.description is None

    def test_first_title_wins(self):
        meta = extract_page_metadata("<title>First</title><svg><title>Second</title></svg>")
        assert meta.title == "First"


def test_generic_page_title_feeds_prompt(config_manager):
    """A reachable page with only a <title> anchors the poster prompt."""
    seen = []

    def handler(request):
        seen.append(str(request.url))
        return httpx.Response(200, html="<html><head><title>Piper — Short Film</title></head></html>")

    resolver = make_resolver(config_manager, handler)
    video = VideoReference.from_url("https://example.com/watch?id=abc")
    meta = asyncio.run(resolver.resolve(video))

    assert meta == PageMetadata(title="Piper — Short Film", description=None)
    assert seen == ["https://example.com/watch?id=abc"]

    prompt = build_prompt(GenerationTask.ANALYZE_POSTER, meta, video=video)
    assert "Piper — Short Film" in prompt
    assert "【视频简介】" not in prompt


def test_bilibili_api_takes_precedence(config_manager):
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(
            200, json={"code": 0, "data": {"title": "鹬 Piper", "desc": "", "dynamic": "小鸟学游泳"}}
        )

    resolver = make_resolver(config_manager, handler)
    meta = resolve(resolver, "https://www.bilibili.com/video/BV1GJ411x7h7")

    assert meta.title == "鹬 Piper"
    assert meta.description == "小鸟学游泳"
    assert len(requests) == 1
    assert requests[0].url.params["bvid"] == "BV1GJ411x7h7"
    assert requests[0].headers["Referer"] == "https://www.bilibili.com"


def test_bilibili_failure_falls_back_to_page(config_manager):
    def handler(request):
        if request.url.host == "api.bilibili.com":
            return httpx.Response(200, json={"code": -404, "message": "啥都木有"})
        return httpx.Response(200, html="<title>Fallback Title</title>")

    resolver = make_resolver(config_manager, handler)
    meta = resolve(resolver, "https://www.bilibili.com/video/BV1GJ411x7h7")
    assert meta.title == "Fallback Title"


def test_bilibili_empty_description_is_none(config_manager):
    def handler(request):
        return httpx.Response(200, json={"code": 0, "data": {"title": "Title", "desc": "", "dynamic": ""}})

    resolver = make_resolver(config_manager, handler)
    meta = resolve(resolver, "https://b23.tv/BV1GJ411x7h7")
    assert meta.title == "Title"
    assert meta.description is None


def test_non_success_status_yields_empty(config_manager):
    resolver = make_resolver(config_manager, lambda request: httpx.Response(403, text="forbidden"))
    assert resolve(resolver, "https://example.com/private") == PageMetadata()


def test_network_error_yields_empty(config_manager):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    resolver = make_resolver(config_manager, handler)
    assert resolve(resolver, "https://example.com/video") == PageMetadata()


def test_slow_page_is_cancelled(config_manager):
    config_manager.resolver.timeout_seconds = 0.05

    async def handler(request):
        await asyncio.sleep(1)
        return httpx.Response(200, html="<title>Too Late</title>")

    resolver = make_resolver(config_manager, handler)
    assert resolve(resolver, "https://example.com/slow") == PageMetadata()


def test_invalid_json_from_platform_falls_back(config_manager):
    def handler(request):
        if request.url.host == "api.bilibili.com":
            return httpx.Response(200, text="<html>not json</html>")
        return httpx.Response(500)

    resolver = make_resolver(config_manager, handler)
    assert resolve(resolver, "https://www.bilibili.com/video/BV1GJ411x7h7") == PageMetadata()
