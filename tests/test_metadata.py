import httpx

from snipgraph.metadata import FALLBACK_DOMAIN, MetadataFetcher, fallback_meta
from snipgraph.repository import SnippetRepository, build_snippet


def make_fetcher(handler) -> MetadataFetcher:
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return MetadataFetcher(endpoint="https://meta.test", client=client)


def test_fetch_success() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["url"] == "https://24kitchen.nl/brownies"
        return httpx.Response(200, json={
            "status": "success",
            "data": {
                "title": "Brownies",
                "description": "Smeuïg",
                "image": {"url": "https://img.test/b.jpg"},
                "publisher": "24Kitchen",
            },
        })

    meta = make_fetcher(handler).fetch("https://24kitchen.nl/brownies")

    assert meta.title == "Brownies"
    assert meta.description == "Smeuïg"
    assert meta.image == "https://img.test/b.jpg"
    assert meta.domain == "24Kitchen"


def test_fetch_uses_hostname_without_publisher() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"status": "success", "data": {"title": "AH"}})

    meta = make_fetcher(handler).fetch("https://www.ah.nl/bonus")

    assert meta.domain == "www.ah.nl"
    assert meta.image is None


def test_fetch_falls_back_on_error_status() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"status": "fail"})

    meta = make_fetcher(handler).fetch("https://ah.nl/x")

    assert meta == fallback_meta("https://ah.nl/x")
    assert meta.title == "ah.nl"
    assert meta.domain == FALLBACK_DOMAIN


def test_fetch_falls_back_on_http_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503)

    assert make_fetcher(handler).fetch("https://ah.nl/x").domain == FALLBACK_DOMAIN


def test_fetch_falls_back_on_bad_json() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"<html>")

    assert make_fetcher(handler).fetch("https://ah.nl/x").domain == FALLBACK_DOMAIN


def test_enrich_stores_meta(repository: SnippetRepository) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"status": "success", "data": {"title": "Bonus"}})

    saved = repository.save(build_snippet("https://ah.nl/bonus #bonus"))
    meta = make_fetcher(handler).enrich(repository, saved)

    assert meta.title == "Bonus"
    assert repository.get(saved.id).meta.title == "Bonus"


def test_enrich_without_link(repository: SnippetRepository) -> None:
    saved = repository.save(build_snippet("geen link #soep"))

    assert make_fetcher(lambda r: httpx.Response(500)).enrich(repository, saved) is None
    assert repository.get(saved.id).meta is None


def test_from_config() -> None:
    fetcher = MetadataFetcher.from_config({"metadata": {"endpoint": "https://meta.test", "timeout": 2.5}})
    assert fetcher.endpoint == "https://meta.test"
    assert fetcher.timeout == 2.5


def test_fetch_falls_back_on_non_object_payload() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=[1, 2])

    assert make_fetcher(handler).fetch("https://ah.nl/x").domain == FALLBACK_DOMAIN


def test_fetch_falls_back_on_non_object_data() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"status": "success", "data": "x"})

    assert make_fetcher(handler).fetch("https://ah.nl/x").domain == FALLBACK_DOMAIN
