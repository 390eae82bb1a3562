import pytest

from sitehost.domain.errors import NotFoundError
from sitehost.features.public.service import CACHE_CONTROL, PublicResolver, inject_base_tag
from sitehost.features.sites.service import UploadedFile
from sitehost.infra.repo_users import UserRepo

PAGE = b"<!doctype html><html><head><link rel=stylesheet href=css/a.css></head><body>hi</body></html>"


def _f(path: str, data: bytes) -> UploadedFile:
    return UploadedFile(filename=path.rsplit("/", 1)[-1], data=data, relative_path=path)


@pytest.fixture
def resolver(conn, store) -> PublicResolver:
    return PublicResolver(conn=conn, store=store)


@pytest.fixture
def demo(service, alice):
    return service.create_site_with_files(
        owner_id=alice.id,
        name="Demo",
        slug="demo",
        description=None,
        files=[
            _f("index.html", PAGE),
            _f("css/a.css", b"body { color: red }"),
            _f("nohead.html", b"<p>bare fragment</p>"),
            _f("img/logo.png", b"\x89PNG\r\n\x1a\n"),
        ],
    )


def test_inject_after_first_head_only() -> None:
    html = "<html><head><title>t</title></head><body><head></head></body></html>"
    out = inject_base_tag(html, "/s/alice/demo/")
    assert out.count("<base ") == 1
    assert out.startswith('<html><head>\n    <base href="/s/alice/demo/"><title>')


def test_inject_is_case_insensitive_and_keeps_attributes() -> None:
    out = inject_base_tag('<HTML><HEAD lang="en"></HEAD></HTML>', "/s/a/b/")
    assert out == '<HTML><HEAD lang="en">\n    <base href="/s/a/b/"></HEAD></HTML>'


def test_inject_after_self_closing_head() -> None:
    out = inject_base_tag("<html><head/><body>x</body></html>", "/s/a/b/")
    assert out == '<html><head/>\n    <base href="/s/a/b/"><body>x</body></html>'


def test_inject_without_head_is_unchanged() -> None:
    html = "<html><header>nav</header><body>x</body></html>"
    assert inject_base_tag(html, "/s/a/b/") == html


def test_html_gets_one_base_tag(resolver, demo) -> None:
    asset = resolver.resolve("alice", "demo", ["index.html"])

    text = asset.body.decode("utf-8")
    assert text.count('<base href="/s/alice/demo/">') == 1
    assert text.index("<head>") < text.index("<base ") < text.index("<link")
    assert asset.content_type.startswith("text/html")
    assert asset.cache_control == CACHE_CONTROL == "public, max-age=3600"


def test_empty_path_serves_index(resolver, demo) -> None:
    assert resolver.resolve("alice", "demo", []).body == resolver.resolve("alice", "demo", ["index.html"]).body
    assert resolver.resolve("alice", "demo", None).content_type.startswith("text/html")
    assert resolver.resolve("alice", "demo", [""]).content_type.startswith("text/html")


def test_traversal_segments_are_dropped(resolver, demo) -> None:
    asset = resolver.resolve("alice", "demo", ["..", "..", "css", ".", "a.css"])
    assert asset.body == b"body { color: red }"


def test_non_html_is_returned_raw(resolver, demo) -> None:
    css = resolver.resolve("alice", "demo", ["css", "a.css"])
    assert css.content_type == "text/css"
    assert css.body == b"body { color: red }"

    png = resolver.resolve("alice", "demo", ["img", "logo.png"])
    assert png.content_type == "image/png"
    assert png.body == b"\x89PNG\r\n\x1a\n"


def test_html_without_head_is_served_untouched(resolver, demo) -> None:
    asset = resolver.resolve("alice", "demo", ["nohead.html"])
    assert asset.body == b"<p>bare fragment</p>"


@pytest.mark.parametrize(
    "handle,slug,path",
    [
        ("nobody", "demo", ["index.html"]),
        ("alice", "missing-site", ["index.html"]),
        ("alice", "demo", ["missing.js"]),
        ("alice", "demo", ["css"]),
    ],
)
def test_not_found_is_opaque(resolver, demo, handle, slug, path) -> None:
    with pytest.raises(NotFoundError) as ei:
        resolver.resolve(handle, slug, path)
    assert ei.value.message == "not found"


def test_handle_falls_back_to_id_prefix(conn, service, resolver) -> None:
    anon = UserRepo(conn).create(email=None, user_id="1234abcd" + "0" * 24)
    service.create_site_with_files(
        owner_id=anon.id, name="Anon", slug="site", description=None, files=[_f("index.html", PAGE)]
    )

    asset = resolver.resolve("1234abcd", "site", [])
    assert '<base href="/s/1234abcd/site/">' in asset.body.decode("utf-8")


def test_colliding_handles_pick_the_oldest_account(conn, service, resolver) -> None:
    repo = UserRepo(conn)
    first = repo.create(email="sam@one.example", user_id="0" * 32)
    second = repo.create(email="sam@two.example", user_id="f" * 32)
    for owner, body in ((first, b"<html><head></head>first</html>"), (second, b"<html><head></head>second</html>")):
        service.create_site_with_files(
            owner_id=owner.id, name="S", slug="page", description=None, files=[_f("index.html", body)]
        )

    assert b"first" in resolver.resolve("sam", "page", []).body
