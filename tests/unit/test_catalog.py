"""
Unit tests for background catalog loading and validation.
"""
import json

import pytest

from docsynth.modules.catalog import (
    BackgroundCatalog,
    BackgroundDefinition,
    CatalogError,
    TransparentBoundary,
)

BOUNDARY = {"left": 0.1, "top": 0.2, "width": 0.5, "height": 0.3}


def write_catalog(tmp_path, records):
    path = tmp_path / "background-meta.json"
    path.write_text(json.dumps(records), encoding="utf-8")
    return path


@pytest.mark.unit
class TestBackgroundDefinition:

    def test_center_entry(self):
        entry = BackgroundDefinition.from_dict(0, {"filename": "desk.jpg", "composite": "center"})

        assert entry.index == 0
        assert entry.key == "0"
        assert entry.filename == "desk.jpg"
        assert entry.orientation is None
        assert entry.transparent_boundary is None

    def test_embedded_entry(self):
        entry = BackgroundDefinition.from_dict(3, {
            "filename": "wallet.png",
            "composite": "embedded",
            "orientation": "portrait",
            "transparentBoundary": BOUNDARY,
        })

        assert entry.key == "3"
        assert entry.orientation == "portrait"
        assert entry.transparent_boundary == TransparentBoundary(0.1, 0.2, 0.5, 0.3)

    @pytest.mark.parametrize("record, message", [
        ({"composite": "center"}, "filename"),
        ({"filename": "a.png", "composite": "tiled"}, "unknown composite mode"),
        ({"filename": "a.png"}, "unknown composite mode"),
        ({"filename": "a.png", "composite": "embedded", "transparentBoundary": BOUNDARY}, "orientation"),
        ({"filename": "a.png", "composite": "embedded", "orientation": "square",
          "transparentBoundary": BOUNDARY}, "orientation"),
        ({"filename": "a.png", "composite": "embedded", "orientation": "landscape"}, "transparentBoundary"),
    ])
    def test_invalid_entries(self, record, message):
        with pytest.raises(CatalogError, match=message):
            BackgroundDefinition.from_dict(0, record)

    @pytest.mark.parametrize("boundary", [
        {"left": -0.1, "top": 0.0, "width": 0.5, "height": 0.5},
        {"left": 0.6, "top": 0.0, "width": 0.5, "height": 0.5},
        {"left": 0.0, "top": 0.7, "width": 0.5, "height": 0.5},
        {"left": 0.0, "top": 0.0, "width": 0.0, "height": 0.5},
        {"left": 0.0, "top": 0.0, "width": 0.5},
        {"left": "0", "top": 0.0, "width": 0.5, "height": 0.5},
    ])
    def test_invalid_boundaries(self, boundary):
        with pytest.raises(CatalogError):
            BackgroundDefinition.from_dict(0, {
                "filename": "a.png",
                "composite": "embedded",
                "orientation": "landscape",
                "transparentBoundary": boundary,
            })

    def test_full_background_boundary_is_valid(self):
        boundary = TransparentBoundary.from_dict({"left": 0, "top": 0, "width": 1, "height": 1})

        assert boundary.width == 1.0


@pytest.mark.unit
class TestBackgroundCatalog:

    def test_load_preserves_order(self, tmp_path):
        path = write_catalog(tmp_path, [
            {"filename": "c.png", "composite": "center"},
            {"filename": "a.png", "composite": "center"},
            {"filename": "b.png", "composite": "embedded", "orientation": "landscape",
             "transparentBoundary": BOUNDARY},
        ])

        catalog = BackgroundCatalog.load(path)

        assert len(catalog) == 3
        assert [entry.filename for entry in catalog] == ["c.png", "a.png", "b.png"]
        assert [entry.key for entry in catalog] == ["0", "1", "2"]

    def test_paths_resolve_against_background_dir(self, tmp_path):
        path = write_catalog(tmp_path, [{"filename": "a.png", "composite": "center"}])
        other_dir = tmp_path / "textures"

        catalog = BackgroundCatalog.load(path, other_dir)

        assert list(catalog.items()) == [(catalog[0], other_dir / "a.png")]

    def test_default_background_dir_is_catalog_dir(self, tmp_path):
        path = write_catalog(tmp_path, [{"filename": "a.png", "composite": "center"}])

        catalog = BackgroundCatalog.load(path)

        assert catalog.path_for(catalog[0]) == tmp_path / "a.png"
        assert catalog.missing_files() == [tmp_path / "a.png"]

    def test_missing_file(self, tmp_path):
        with pytest.raises(CatalogError, match="not found"):
            BackgroundCatalog.load(tmp_path / "missing.json")

    def test_malformed_json(self, tmp_path):
        path = tmp_path / "background-meta.json"
        path.write_text("[{", encoding="utf-8")

        with pytest.raises(CatalogError, match="Malformed"):
            BackgroundCatalog.load(path)

    def test_object_catalog_rejected(self, tmp_path):
        path = write_catalog(tmp_path, {"0": {"filename": "a.png", "composite": "center"}})

        with pytest.raises(CatalogError, match="list"):
            BackgroundCatalog.load(path)

    def test_one_bad_entry_fails_whole_catalog(self, tmp_path):
        path = write_catalog(tmp_path, [
            {"filename": "a.png", "composite": "center"},
            {"filename": "b.png", "composite": "embedded"},
        ])

        with pytest.raises(CatalogError, match="Entry 1"):
            BackgroundCatalog.load(path)

    def test_catalog_error_is_value_error(self):
        assert issubclass(CatalogError, ValueError)
