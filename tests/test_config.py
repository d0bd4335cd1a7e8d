"""Tests for site_migrator.config."""

import json
import os

import pytest

from site_migrator.config import (
    ClassificationConfig,
    MigrationConfig,
    config_from_dict,
    load_classification_selectors,
    load_config,
    load_link_rewrites,
)
from site_migrator.models import ContentType


class TestDefaults:
    def test_directories(self):
        config = MigrationConfig(output_dir="run")
        assert config.raw_dir == os.path.join("run", "raw")
        assert config.clean_dir == os.path.join("run", "clean")
        assert config.image_dir == os.path.join("run", "images")
        assert config.export_path == os.path.join("run", "export", "wordpress-import.csv")

    def test_export_path_override(self):
        config = config_from_dict({"export": {"outputPath": "out.csv"}})
        assert config.export_path == "out.csv"

    def test_stage_defaults(self):
        config = MigrationConfig()
        assert config.assets.max_concurrent == 5
        assert config.assets.auto_convert is True
        assert config.export.status == "publish"
        assert config.export.post_category == "Imported Content"
        assert config.export.page_category == ""
        assert config.sanitize.spacing == "20pt"

    def test_frozen(self):
        config = MigrationConfig()
        with pytest.raises(Exception):
            config.output_dir = "elsewhere"


class TestConfigFromDict:
    def test_camel_case_keys(self):
        config = config_from_dict({
            "fetch": {"timeout": 30000, "maxRetries": 4},
            "assets": {"maxConcurrent": 2, "autoConvert": False},
        })
        assert config.fetch.timeout == 30000
        assert config.fetch.max_retries == 4
        assert config.assets.max_concurrent == 2
        assert config.assets.auto_convert is False

    def test_snake_case_keys(self):
        config = config_from_dict({"fetch": {"max_retries": 5}, "output_dir": "elsewhere"})
        assert config.fetch.max_retries == 5
        assert config.output_dir == "elsewhere"

    def test_disabled_assets_remove_images(self):
        config = config_from_dict({"assets": {"enabled": False}})
        assert config.sanitize.remove_images is True

    def test_classification_and_rewrites(self):
        config = config_from_dict({
            "classification": {"post": "blog-post", "manual": {"a.html": "page"}},
            "sanitize": {"linkRewrites": {"old-page": "/new-page/"}, "removeSelectors": ".ads"},
        })
        assert config.classification.post_selector == "blog-post"
        assert config.classification.manual_mapping == {"a.html": ContentType.PAGE}
        assert config.sanitize.link_rewrites == (("old-page", "/new-page/"),)
        assert config.sanitize.removal_selectors == (".ads",)


class TestClassificationConfig:
    def test_with_manual_types_merges(self):
        base = ClassificationConfig(manual_types=(("a.html", "post"),))
        merged = base.with_manual_types({"b.html": ContentType.PAGE})
        assert merged.manual_mapping == {"a.html": ContentType.POST, "b.html": ContentType.PAGE}
        assert base.manual_mapping == {"a.html": ContentType.POST}

    def test_invalid_manual_type_ignored(self):
        config = ClassificationConfig(manual_types=(("a.html", "article"),))
        assert config.manual_mapping == {}


class TestLoaders:
    def test_load_config_without_path(self):
        assert load_config() == MigrationConfig()

    def test_load_config_file(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"fetch": {"delay": 0.5}}), encoding="utf-8")
        assert load_config(str(path)).fetch.delay == 0.5

    def test_classification_selectors_file(self, tmp_path):
        path = tmp_path / "selectors.json"
        path.write_text(json.dumps({"post": ".blog-post", "page": ""}), encoding="utf-8")
        config = load_classification_selectors(str(path))
        assert config.post_selector == ".blog-post"
        assert config.page_selector is None

    def test_link_rewrites_file(self, tmp_path):
        path = tmp_path / "links.json"
        path.write_text(json.dumps({"used-trucks": "/inventory/used/"}), encoding="utf-8")
        assert load_link_rewrites(str(path)) == (("used-trucks", "/inventory/used/"),)
