import httpx
import pytest

from reel_recipes.app.core.errors import BadRequest, UpstreamTimeout
from reel_recipes.app.services.instagram import page_scraper


def html_response(html: str, status: int = 200) -> httpx.Response:
    return httpx.Response(status, headers={"content-type": "text/html"}, text=html)


@pytest.mark.asyncio
async def test_get_video_info_maps_json_ld(mock_http, instagram_page, post_json):
    requests = mock_http(lambda request: html_response(instagram_page(post_json(caption="  Pancakes  "))))

    video = await page_scraper.get_video_info("C1a2B3c4D5e")

    assert str(requests[0].url) == "https://www.instagram.com/p/C1a2B3c4D5e/"
    assert "Mozilla" in requests[0].headers["user-agent"]
    assert video is not None
    assert video.username == "chef.test"
    assert video.width == "720"
    assert video.height == "1280"
    assert video.caption == "Pancakes"
    assert video.download_url == "https://cdn.test/video.mp4"
    assert video.thumbnail_url == "https://cdn.test/thumb.jpg"


@pytest.mark.asyncio
async def test_missing_caption_is_not_an_error(mock_http, instagram_page, post_json):
    mock_http(lambda request: html_response(instagram_page(post_json(caption=None))))

    video = await page_scraper.fetch_from_page("https://www.instagram.com/p/abc/")

    assert video is not None
    assert video.caption is None


@pytest.mark.asyncio
async def test_empty_video_list_raises_bad_request(mock_http, instagram_page, post_json):
    mock_http(lambda request: html_response(instagram_page(post_json(videos=[]))))

    with pytest.raises(BadRequest) as exc_info:
        await page_scraper.fetch_from_page("https://www.instagram.com/p/abc/")

    assert exc_info.value.message == "This post does not contain a video"
    assert exc_info.value.status_code == 400


@pytest.mark.asyncio
async def test_404_raises_page_not_available(mock_http):
    mock_http(lambda request: html_response("<html></html>", status=404))

    with pytest.raises(BadRequest) as exc_info:
        await page_scraper.fetch_from_page("https://www.instagram.com/p/gone/")

    assert exc_info.value.message == "This post page isn't available."


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [403, 429, 500])
async def test_other_error_statuses_return_none(mock_http, status):
    mock_http(lambda request: html_response("<html></html>", status=status))

    assert await page_scraper.fetch_from_page("https://www.instagram.com/p/abc/") is None


@pytest.mark.asyncio
async def test_missing_json_ld_returns_none(mock_http):
    mock_http(lambda request: html_response("<html><body><p>Login to continue</p></body></html>"))

    assert await page_scraper.fetch_from_page("https://www.instagram.com/p/abc/") is None


@pytest.mark.asyncio
async def test_malformed_json_ld_returns_none(mock_http, instagram_page):
    mock_http(lambda request: html_response(instagram_page('{"video": [')))

    assert await page_scraper.fetch_from_page("https://www.instagram.com/p/abc/") is None


@pytest.mark.asyncio
async def test_json_ld_without_video_fields_returns_none(mock_http, instagram_page):
    mock_http(lambda request: html_response(instagram_page({"@type": "WebPage", "name": "Instagram"})))

    assert await page_scraper.fetch_from_page("https://www.instagram.com/p/abc/") is None


@pytest.mark.asyncio
async def test_network_error_returns_none(mock_http):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    mock_http(handler)

    assert await page_scraper.fetch_from_page("https://www.instagram.com/p/abc/") is None


@pytest.mark.asyncio
async def test_timeout_raises_upstream_timeout(mock_http):
    def handler(request):
        raise httpx.ReadTimeout("too slow", request=request)

    mock_http(handler)

    with pytest.raises(UpstreamTimeout) as exc_info:
        await page_scraper.fetch_from_page("https://www.instagram.com/p/abc/")

    assert exc_info.value.status_code == 504
    assert exc_info.value.service == "post page"


def test_extract_video_accepts_json_ld_list(instagram_page, post_json):
    video = page_scraper.extract_video_from_html(instagram_page([post_json()]))
    assert video is not None
    assert video.username == "chef.test"


@pytest.mark.asyncio
async def test_scraper_cookies_are_sent_as_cookie_header(mock_http, monkeypatch, instagram_page, post_json):
    monkeypatch.setenv("SCRAPER_COOKIES", "sessionid=abc; csrftoken=def")
    page_scraper.get_settings.cache_clear()
    requests = mock_http(lambda request: html_response(instagram_page(post_json())))

    await page_scraper.fetch_from_page("https://www.instagram.com/p/abc/")

    assert requests[0].headers["cookie"] == "sessionid=abc; csrftoken=def"
