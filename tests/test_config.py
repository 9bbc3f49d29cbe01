import dataclasses
import logging
from pathlib import Path

import pytest

from noctule.config import CollectionConfig, Config, load_config
from noctule.errors import ConfigError

CONFIG = """\
sourceDir: content
output_dir: public
renderers:
  md: markdown
  .txt: passthrough
locale: de
title: My Site
variables:
  author: Ada
collections:
  posts:
    filter:
      source: "posts/*"
    sortFields: ["-date", title]
    pageSize: 10
    layout: list
  tags:
    group_by: tags
    url: /topics/
messages:
  de:
    greeting: Hallo {name}
"""


def write_config(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "noctule.yaml"
    path.write_text(text, encoding="utf-8")
    return path


def test_load_config_merges_over_defaults(tmp_path):
    config = load_config(write_config(tmp_path, CONFIG))

    assert config.source_dir == tmp_path / "content"
    assert config.output_dir == tmp_path / "public"
    assert config.layouts_dir == tmp_path / "layouts"
    assert dict(config.renderers) == {"md": "markdown", "txt": "passthrough"}
    assert config.locale == "de"
    assert config.variables["title"] == "My Site"
    assert config.variables["author"] == "Ada"
    assert config.messages["de"]["greeting"] == "Hallo {name}"
    assert config.fail_fast is False
    assert config.config_path == tmp_path / "noctule.yaml"


def test_collections_accept_camel_and_snake_case(tmp_path):
    config = load_config(write_config(tmp_path, CONFIG))
    posts, tags = config.collections

    assert posts.name == "posts"
    assert dict(posts.filter) == {"source": "posts/*"}
    assert posts.sort_fields == ("-date", "title")
    assert posts.page_size == 10
    assert posts.layout == "list"
    assert posts.url == "posts"

    assert tags.group_by == "tags"
    assert tags.url == "topics"
    assert tags.page_size is None
    assert tags.layout is None


def test_config_is_immutable(tmp_path):
    config = load_config(write_config(tmp_path, CONFIG))
    with pytest.raises(dataclasses.FrozenInstanceError):
        config.locale = "en"
    with pytest.raises(TypeError):
        config.variables["title"] = "Changed"


def test_missing_file_falls_back_to_defaults(tmp_path, caplog):
    with caplog.at_level(logging.ERROR, logger="noctule.config"):
        config = load_config(tmp_path / "nope.yaml")
    assert config.source_dir == tmp_path / "source"
    assert config.output_dir == tmp_path / "output"
    assert config.collections == ()
    assert dict(config.renderers)["md"] == "markdown"
    assert "continuing with default configuration" in caplog.text


def test_malformed_yaml_is_lenient_unless_strict(tmp_path, caplog):
    path = write_config(tmp_path, "title: [unclosed\n")
    with caplog.at_level(logging.ERROR, logger="noctule.config"):
        config = load_config(path)
    assert config.variables == {}
    assert "Cannot parse YAML" in caplog.text

    with pytest.raises(ConfigError) as excinfo:
        load_config(path, strict=True)
    assert excinfo.value.path == path


def test_non_mapping_document(tmp_path):
    path = write_config(tmp_path, "- a\n- b\n")
    assert load_config(path).collections == ()
    with pytest.raises(ConfigError):
        load_config(path, strict=True)


def test_empty_file_uses_defaults(tmp_path):
    config = load_config(write_config(tmp_path, ""), strict=True)
    assert config.source_dir == tmp_path / "source"


@pytest.mark.parametrize(
    "entry",
    [
        {"page_size": 0},
        {"page_size": "ten"},
        {"filter": ["posts"]},
        {"sort_fields": [1]},
    ],
)
def test_invalid_collection_entries(entry):
    with pytest.raises(ConfigError):
        CollectionConfig.from_mapping("posts", entry)


def test_invalid_collection_falls_back_to_defaults(tmp_path):
    path = write_config(tmp_path, "collections:\n  posts:\n    pageSize: -1\n")
    assert load_config(path).collections == ()
    with pytest.raises(ConfigError):
        load_config(path, strict=True)


def test_from_mapping_resolves_absolute_paths(tmp_path):
    config = Config.from_mapping({"output_dir": str(tmp_path / "out")}, base_dir=Path("/site"))
    assert config.output_dir == tmp_path / "out"
    assert config.source_dir == Path("/site/source")
