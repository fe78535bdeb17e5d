"""Tests for binary file detection."""

from mrlens_core.utils.code import is_binary_change, is_binary_diff, is_binary_path


class TestIsBinaryPath:
    def test_image_is_binary(self):
        assert is_binary_path("assets/logo.png") is True

    def test_font_is_binary(self):
        assert is_binary_path("static/fonts/Inter.woff2") is True

    def test_archive_is_binary(self):
        assert is_binary_path("dist/bundle.tar.gz") is True

    def test_source_is_not_binary(self):
        assert is_binary_path("app/services/user.py") is False

    def test_case_insensitive(self):
        assert is_binary_path("image.PNG") is True


class TestIsBinaryDiff:
    def test_git_binary_marker(self):
        assert is_binary_diff("Binary files a/x.bin and b/x.bin differ") is True

    def test_git_binary_patch(self):
        assert is_binary_diff("GIT binary patch\nliteral 12\n") is True

    def test_nul_byte(self):
        assert is_binary_diff("@@ -1 +1 @@\n+abc\x00def") is True

    def test_text_patch(self):
        assert is_binary_diff("@@ -1 +1 @@\n+x = 1") is False

    def test_marker_after_first_lines_is_ignored(self):
        diff = "\n".join(["@@ -1,12 +1,12 @@"] + ["+line"] * 12 + ["Binary files a and b differ"])
        assert is_binary_diff(diff) is False


def test_is_binary_change_uses_path_or_content():
    assert is_binary_change("logo.png", "@@ -1 +1 @@\n+x") is True
    assert is_binary_change("data.txt", "Binary files a/data.txt and b/data.txt differ") is True
    assert is_binary_change("app.py", "@@ -1 +1 @@\n+x") is False
