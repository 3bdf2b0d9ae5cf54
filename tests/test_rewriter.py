"""Tests for the content and metadata image rewriters."""

from __future__ import annotations

import pytest
from ghostdraft.errors import PathResolutionError, UploadError
from ghostdraft.rewriter import ImageRewriter, rewrite_feature_image, rewrite_images


class FakeUploader:
    """Records upload calls and hands out predictable URLs."""

    def __init__(self, fail_on: set[str] | None = None, urls: dict[str, str] | None = None):
        self.calls: list[str] = []
        self._fail_on = fail_on or set()
        self._urls = urls or {}

    def upload(self, path: str) -> str:
        self.calls.append(path)
        if path in self._fail_on:
            raise UploadError(path)
        if path in self._urls:
            return self._urls[path]
        return f"https://cdn.test/{len(self.calls)}/{path.rsplit('/', 1)[-1]}"


class GhostStyleUploader(FakeUploader):
    """Returns URLs ending in the image basename, as Ghost does."""

    def upload(self, path: str) -> str:
        self.calls.append(path)
        return f"https://ghost.test/content/images/2024/{path.rsplit('/', 1)[-1]}"


class TestRewriteImages:
    def test_single_local_image(self):
        uploader = FakeUploader(urls={"posts/my-post/img/a.png": "https://cdn/a.png"})
        result = rewrite_images("![cover](./img/a.png)", "posts/my-post", uploader)
        assert result == "![cover](https://cdn/a.png)"
        assert uploader.calls == ["posts/my-post/img/a.png"]

    def test_parent_relative_uploads_resolved_path(self):
        uploader = FakeUploader()
        rewrite_images("![x](../shared/b.png)", "posts/my-post", uploader)
        assert uploader.calls == ["posts/shared/b.png"]

    def test_remote_images_untouched(self):
        uploader = FakeUploader()
        md = "![r](https://example.com/r.png)"
        assert rewrite_images(md, "posts", uploader) == md
        assert uploader.calls == []

    def test_no_images(self):
        uploader = FakeUploader()
        assert rewrite_images("plain text", "posts", uploader) == "plain text"
        assert uploader.calls == []

    def test_duplicates_uploaded_per_occurrence(self):
        uploader = FakeUploader()
        result = rewrite_images("![a](x.png) and ![b](x.png)", "p", uploader)
        assert uploader.calls == ["p/x.png", "p/x.png"]
        assert result == "![a](https://cdn.test/1/x.png) and ![b](https://cdn.test/2/x.png)"

    def test_repeated_basename_with_ghost_style_urls(self):
        uploader = GhostStyleUploader()
        result = rewrite_images("![a](x.png) ![b](x.png)", "p", uploader)
        assert uploader.calls == ["p/x.png", "p/x.png"]
        assert result == (
            "![a](https://ghost.test/content/images/2024/x.png) "
            "![b](https://ghost.test/content/images/2024/x.png)"
        )

    def test_prose_mention_left_alone(self):
        uploader = FakeUploader()
        md = "See diagram.png below.\n\n![d](diagram.png)"
        result = rewrite_images(md, "p", uploader)
        assert result == "See diagram.png below.\n\n![d](https://cdn.test/1/diagram.png)"

    def test_alt_text_matching_target_untouched(self):
        uploader = FakeUploader()
        result = rewrite_images("![a.png](a.png)", "p", uploader)
        assert result == "![a.png](https://cdn.test/1/a.png)"

    def test_mixed_document(self):
        uploader = FakeUploader()
        md = (
            "# Post\n\n"
            "![local](a.png)\n"
            "![remote](https://other.example/b.png)\n"
            "![root](/assets/c.png)\n"
        )
        result = rewrite_images(md, "posts/p", uploader)
        assert uploader.calls == ["posts/p/a.png", "assets/c.png"]
        assert "](a.png)" not in result
        assert "](/assets/c.png)" not in result
        assert "https://other.example/b.png" in result

    def test_failure_on_second_image_propagates(self):
        uploader = FakeUploader(fail_on={"p/two.png"})
        md = "![1](one.png) ![2](two.png)"
        with pytest.raises(UploadError) as exc_info:
            rewrite_images(md, "p", uploader)
        assert exc_info.value.path == "p/two.png"
        assert uploader.calls == ["p/one.png", "p/two.png"]
        assert md == "![1](one.png) ![2](two.png)"

    def test_resolution_error_propagates_before_upload(self):
        uploader = FakeUploader()
        with pytest.raises(PathResolutionError):
            rewrite_images("![x](../../x.png)", "posts", uploader)
        assert uploader.calls == []


class TestDedupe:
    def test_one_upload_replaces_all(self):
        uploader = FakeUploader()
        rewriter = ImageRewriter(uploader, dedupe=True)
        result = rewriter.rewrite_images("![a](x.png) ![b](x.png) ![c](y.png)", "p")
        assert uploader.calls == ["p/x.png", "p/y.png"]
        assert result == (
            "![a](https://cdn.test/1/x.png) ![b](https://cdn.test/1/x.png) "
            "![c](https://cdn.test/2/y.png)"
        )

    def test_overlapping_references_kept_apart(self):
        uploader = FakeUploader(
            urls={"p/img/a.png": "https://cdn/img-a.png", "p/a.png": "https://cdn/a.png"}
        )
        rewriter = ImageRewriter(uploader, dedupe=True)
        result = rewriter.rewrite_images("![a](img/a.png) ![b](a.png)", "p")
        assert uploader.calls == ["p/img/a.png", "p/a.png"]
        assert result == "![a](https://cdn/img-a.png) ![b](https://cdn/a.png)"

    def test_prose_mention_left_alone(self):
        uploader = FakeUploader()
        rewriter = ImageRewriter(uploader, dedupe=True)
        result = rewriter.rewrite_images("x.png: ![a](x.png) ![b](x.png)", "p")
        assert result == "x.png: ![a](https://cdn.test/1/x.png) ![b](https://cdn.test/1/x.png)"

    def test_upload_log(self):
        uploader = FakeUploader()
        rewriter = ImageRewriter(uploader, dedupe=True)
        rewriter.rewrite_images("![a](x.png) ![b](x.png)", "p")
        assert len(rewriter.uploads) == 1
        assert rewriter.uploads[0].reference == "x.png"
        assert rewriter.uploads[0].resolved_path == "p/x.png"


class TestRewriteFeatureImage:
    def test_root_relative_feature_image(self):
        uploader = FakeUploader(urls={"assets/hero.png": "https://cdn/hero.png"})
        result = rewrite_feature_image({"feature_image": "/assets/hero.png"}, "posts/p", uploader)
        assert result == {"feature_image": "https://cdn/hero.png"}

    def test_absent_field_passes_through(self):
        uploader = FakeUploader()
        meta = {"title": "Hello"}
        assert rewrite_feature_image(meta, "posts", uploader) == {"title": "Hello"}
        assert uploader.calls == []

    def test_null_field_passes_through(self):
        uploader = FakeUploader()
        meta = {"title": "Hello", "feature_image": None}
        assert rewrite_feature_image(meta, "posts", uploader) == meta
        assert uploader.calls == []

    def test_remote_feature_image_untouched(self):
        uploader = FakeUploader()
        meta = {"feature_image": "https://cdn/already.png"}
        assert rewrite_feature_image(meta, "posts", uploader) == meta
        assert uploader.calls == []

    def test_input_not_mutated(self):
        uploader = FakeUploader()
        meta = {"feature_image": "hero.png", "tags": [{"name": "a"}]}
        result = rewrite_feature_image(meta, "posts", uploader)
        assert meta["feature_image"] == "hero.png"
        assert result["feature_image"].startswith("https://cdn.test/")
        assert result["tags"] is not meta["tags"]

    def test_failure_propagates(self):
        uploader = FakeUploader(fail_on={"posts/hero.png"})
        with pytest.raises(UploadError):
            rewrite_feature_image({"feature_image": "hero.png"}, "posts", uploader)

    def test_custom_field(self):
        uploader = FakeUploader()
        rewriter = ImageRewriter(uploader, feature_image_field="og_image")
        result = rewriter.rewrite_feature_image({"og_image": "og.png"}, "p")
        assert result["og_image"] == "https://cdn.test/1/og.png"
