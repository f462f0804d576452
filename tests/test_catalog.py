import pytest

from opsmap.catalog import (
    CatalogEntry,
    GeometryKind,
    LayerCatalog,
    LogicalLayer,
    SurfaceLayerSpec,
    default_catalog,
)
from opsmap.errors import UnknownLayerError


def test_declared_order_is_paint_order(catalog):
    assert catalog.logical_layers() == (
        LogicalLayer.DEPARTMENTS,
        LogicalLayer.COMMUNES,
        LogicalLayer.SECTIONS,
    )


def test_surface_layers_fill_before_outline(catalog):
    assert catalog.layer_ids("departments") == ("departments-fill", "departments-outline")
    assert catalog.layer_ids(LogicalLayer.COMMUNES) == ("communes-outline",)
    assert catalog.layer_ids("sections") == ("sections-fill", "sections-outline")


def test_static_paint(catalog):
    fill, outline = catalog.layers_for("departments")
    assert fill.kind is GeometryKind.FILL
    assert dict(fill.paint) == {"fill-color": "#1f2937", "fill-opacity": 0.12}
    assert dict(outline.paint) == {"line-color": "#f59e0b", "line-width": 1.4}

    (communes,) = catalog.layers_for("communes")
    assert communes.paint["line-dasharray"] == [2, 2]
    assert communes.paint["line-color"] == "#2563eb"

    sections_fill, sections_outline = catalog.layers_for("sections")
    assert sections_fill.paint["fill-color"] == "#a78bfa"
    assert sections_fill.paint["fill-opacity"] == 0.14
    assert sections_outline.paint["line-width"] == 0.8


def test_descriptor_binds_source(catalog):
    fill, outline = catalog.layers_for("sections")

    assert fill.descriptor("sections") == {
        "id": "sections-fill",
        "type": "fill",
        "source": "sections",
        "paint": {"fill-color": "#a78bfa", "fill-opacity": 0.14},
    }
    assert outline.descriptor("sections")["type"] == "line"


def test_descriptor_paint_is_independent(catalog):
    (outline,) = catalog.layers_for("communes")

    first = outline.descriptor("communes")
    second = outline.descriptor("communes")
    first["paint"]["line-dasharray"].append(4)

    assert second["paint"]["line-dasharray"] == [2, 2]
    assert outline.paint["line-dasharray"] == [2, 2]
    assert first["paint"]["line-dasharray"] is not outline.paint["line-dasharray"]


def test_priorities_and_hover_targets(catalog):
    assert catalog.priority_of("sections") > catalog.priority_of("communes") > catalog.priority_of("departments")
    assert catalog.hover_layer_ids() == ("sections-fill", "departments-fill")


def test_owner_of(catalog):
    assert catalog.owner_of("communes-outline") is LogicalLayer.COMMUNES
    assert catalog.owner_of("roads") is None


def test_unknown_layer_rejected(catalog):
    with pytest.raises(UnknownLayerError):
        catalog.entry("roads")
    with pytest.raises(UnknownLayerError):
        catalog.priority_of("roads")


def _entries():
    return list(default_catalog().entry(layer) for layer in LogicalLayer)


def test_duplicate_entry_rejected():
    entries = _entries()
    entries.append(entries[0])

    with pytest.raises(ValueError, match="Duplicate"):
        LayerCatalog(entries)


def test_duplicate_surface_id_rejected():
    entries = _entries()
    entries[1] = CatalogEntry(
        LogicalLayer.COMMUNES,
        "/data/c.geojson",
        (SurfaceLayerSpec("departments-fill", GeometryKind.FILL),),
        priority=20,
    )

    with pytest.raises(ValueError, match="declared twice"):
        LayerCatalog(entries)


def test_incomplete_catalog_rejected():
    with pytest.raises(ValueError, match="sections"):
        LayerCatalog(_entries()[:2])
