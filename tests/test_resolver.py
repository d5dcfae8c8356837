import pytest

from folio.content import MemoryContentStore, RenderedContent
from folio.errors import NotFound, RenderFailure, StoreUnavailable
from folio.renderers import MarkdownRenderer
from folio.resolver import ContentResolver

POSTS = {
    "hello": "---\ntitle: Hello\ndate: '2020-01-01'\n---\n# Hello\n\nFirst post.",
    "second": "---\ntitle: Second\ndate: '2020-02-01'\n---\nAnother post.",
}


class FlakyStore(MemoryContentStore):
    """Raises StoreUnavailable for the first ``failures`` lookups."""

    def __init__(self, records, failures):
        super().__init__(records)
        self.failures = failures
        self.calls = 0

    def get_by_id(self, content_id):
        self.calls += 1
        if self.calls <= self.failures:
            raise StoreUnavailable("flaky")
        return super().get_by_id(content_id)


class CountingStore(MemoryContentStore):
    def __init__(self, records):
        super().__init__(records)
        self.calls = 0

    def get_by_id(self, content_id):
        self.calls += 1
        return super().get_by_id(content_id)


class FailingRenderer:
    def render(self, content):
        raise ValueError("cannot parse")


def test_resolve_renders_item():
    resolver = ContentResolver(MemoryContentStore(POSTS))
    rendered = resolver.resolve("hello")
    assert isinstance(rendered, RenderedContent)
    assert rendered.id == "hello"
    assert rendered.title == "Hello"
    assert rendered.date == "2020-01-01"
    assert "<p>First post.</p>" in rendered.html
    assert rendered.toc[0].id == "hello"


def test_resolve_is_idempotent():
    resolver = ContentResolver(MemoryContentStore(POSTS))
    assert resolver.resolve("hello").html == resolver.resolve("hello").html
    assert resolver.resolve("hello") == resolver.resolve("hello")


def test_resolve_propagates_not_found_without_retry():
    store = CountingStore(POSTS)
    resolver = ContentResolver(store, retry_attempts=5, retry_wait=0)
    with pytest.raises(NotFound):
        resolver.resolve("missing")
    assert store.calls == 1


def test_resolve_wraps_transform_errors():
    resolver = ContentResolver(MemoryContentStore(POSTS), renderer=FailingRenderer())
    with pytest.raises(RenderFailure) as excinfo:
        resolver.resolve("hello")
    assert excinfo.value.content_id == "hello"
    assert isinstance(excinfo.value.original_error, ValueError)
    assert "cannot parse" in excinfo.value.message


def test_resolve_retries_transient_store_failures():
    store = FlakyStore(POSTS, failures=2)
    resolver = ContentResolver(store, retry_attempts=3, retry_wait=0)
    assert resolver.resolve("second").title == "Second"
    assert store.calls == 3


def test_resolve_gives_up_after_retry_attempts():
    store = FlakyStore(POSTS, failures=10)
    resolver = ContentResolver(store, retry_attempts=2, retry_wait=0)
    with pytest.raises(StoreUnavailable):
        resolver.resolve("second")
    assert store.calls == 2


def test_resolver_passes_sanitize_through_renderer():
    store = MemoryContentStore({"raw": "---\ndate: 2020-01-01\n---\n<script>x</script>\n"})
    resolver = ContentResolver(store, renderer=MarkdownRenderer(sanitize=True))
    assert "<script>" not in resolver.resolve("raw").html
