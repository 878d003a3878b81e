"""
文件发布测试：username 校验 / 写入与读取 / slugify
"""

import json

import pytest

from src.publish import ProfilePublisher, is_valid_username, slugify


@pytest.fixture
def publisher(tmp_path):
    return ProfilePublisher(tmp_path / "users")


class TestUsername:
    @pytest.mark.parametrize("name", ["ann", "ann-lee", "a1-b2", "0"])
    def test_valid(self, name):
        assert is_valid_username(name)

    @pytest.mark.parametrize("name", ["", "Ann", "ann_lee", "ann lee", "../etc", "ann.json"])
    def test_invalid(self, name):
        assert not is_valid_username(name)


class TestSlugify:
    def test_basic(self):
        assert slugify("  Ann   Lee ") == "ann-lee"

    def test_strips_punctuation(self):
        assert slugify("Dr. Ann O'Neil!") == "dr-ann-oneil"

    def test_collapses_hyphens(self):
        assert slugify("a -- b") == "a-b"

    def test_drops_underscores(self):
        assert slugify("ann_lee") == "annlee"

    def test_empty_falls_back(self):
        assert slugify("!!!") == "your-name"

    def test_result_is_publishable(self):
        assert is_valid_username(slugify("Zoë Ünal 2024"))


class TestPublish:
    def test_publish_and_load(self, publisher, sample_profile_json):
        result = publisher.publish("ann-lee", sample_profile_json)
        assert result.success
        assert (publisher.users_dir / "ann-lee.json").read_text(encoding="utf-8") == sample_profile_json
        assert publisher.load("ann-lee")["name"] == "Ann Lee"

    def test_invalid_username_rejected_before_write(self, publisher):
        result = publisher.publish("Ann_Lee", "{}")
        assert not result.success
        assert "Invalid username" in result.message
        assert not publisher.users_dir.exists()

    def test_invalid_json_rejected(self, publisher):
        result = publisher.publish("ann", "{not json")
        assert not result.success
        assert not (publisher.users_dir / "ann.json").exists()

    def test_republish_overwrites(self, publisher):
        publisher.publish("ann", json.dumps({"name": "A"}))
        publisher.publish("ann", json.dumps({"name": "B"}))
        assert publisher.load("ann") == {"name": "B"}
        assert [p.name for p in publisher.users_dir.iterdir()] == ["ann.json"]

    def test_load_missing(self, publisher):
        assert publisher.load("nobody") is None

    def test_load_invalid_name(self, publisher):
        assert publisher.load("../secret") is None

    def test_load_corrupt_file(self, publisher):
        publisher.users_dir.mkdir(parents=True)
        (publisher.users_dir / "bad.json").write_text("{oops", encoding="utf-8")
        assert publisher.load("bad") is None
