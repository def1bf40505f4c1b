import dataclasses

import pytest

from plyloader.datatypes import ScalarType
from plyloader.errors import MalformedHeaderError, UnknownTypeError
from plyloader.header import Attribute, parse_header

XYZ_PROPS = [("float", "x"), ("float", "y"), ("float", "z")]


def test_parse_header_reads_counts_and_schema(triangle_ply):
    header = parse_header(triangle_ply)

    assert header.is_ascii
    assert not header.is_little_endian
    assert header.format == "ascii"
    assert header.version == "1.0"
    assert header.comments == ("made by hand",)
    assert header.vertex_count == 3
    assert header.face_count == 1
    assert header.end_header_index == 9
    assert [s.attribute for s in header.element_lut] == [Attribute.POSITION] * 3
    assert header.index_count_accessor.scalar_type is ScalarType.UCHAR
    assert header.index_accessor.scalar_type is ScalarType.INT


def test_missing_end_header_is_malformed():
    with pytest.raises(MalformedHeaderError):
        parse_header("ply\nformat ascii 1.0\n")


def test_attribute_classification(make_ply):
    props = [
        ("float", "x"), ("float", "y"), ("float", "z"),
        ("float", "nx"), ("float", "ny"), ("float", "nz"),
        ("float", "s"), ("float", "t"),
        ("uchar", "red"), ("uchar", "green"), ("uchar", "blue"),
    ]
    header = parse_header(make_ply(props, [], []))

    attributes = [s.attribute for s in header.element_lut]
    assert attributes == (
        [Attribute.POSITION] * 3 + [Attribute.NORMAL] * 3 + [Attribute.TEXCOORD] * 2 + [Attribute.COLOR] * 3
    )
    normalized = [s.converter.normalize for s in header.element_lut]
    assert normalized == [False] * 8 + [True] * 3


def test_unrecognised_vertex_property_is_kept_as_untagged_slot(make_ply):
    # Lenient on purpose: unknown names do not fail, they just store nothing.
    header = parse_header(make_ply([("float", "x"), ("float", "confidence"), ("float", "y")], [], []))

    assert len(header.element_lut) == 3
    assert header.element_lut[1].name == "confidence"
    assert header.element_lut[1].attribute is None


def test_unknown_type_fails(make_ply):
    with pytest.raises(UnknownTypeError):
        parse_header(make_ply([("quux", "x")], [], []))


def test_list_property_on_vertex_is_rejected(make_ply):
    with pytest.raises(MalformedHeaderError):
        parse_header(make_ply([("list uchar int", "x")], [], []))


def test_bad_element_count_is_malformed():
    with pytest.raises(MalformedHeaderError):
        parse_header("ply\nformat ascii 1.0\nelement vertex many\nend_header\n")


def test_other_element_properties_are_ignored():
    text = (
        "ply\n"
        "format ascii 1.0\n"
        "element vertex 2\n"
        "property float x\n"
        "element material 1\n"
        "property uchar ambient_red\n"
        "property list uchar int bogus\n"
        "element face 0\n"
        "property list uchar uint vertex_indices\n"
        "element edge 1\n"
        "property int vertex1\n"
        "property list uchar uchar other_list\n"
        "end_header\n"
    )
    header = parse_header(text)

    assert [s.name for s in header.element_lut] == ["x"]
    assert header.index_accessor.scalar_type is ScalarType.UINT
    assert header.index_count_accessor.scalar_type is ScalarType.UCHAR


def test_binary_format_flags(make_ply):
    text = make_ply([("float", "x")], [], []).replace("format ascii", "format binary_little_endian")
    header = parse_header(text)
    assert not header.is_ascii
    assert header.is_little_endian
    assert header.element_lut[0].converter.little_endian

    big = parse_header(text.replace("little", "big"))
    assert not big.is_little_endian


def test_crlf_header_lines():
    text = "ply\r\nformat ascii 1.0\r\nelement vertex 1\r\nproperty float x\r\nend_header\r\n1\r\n"
    header = parse_header(text)
    assert header.vertex_count == 1
    assert header.end_header_index == 4


def test_header_is_immutable(triangle_ply):
    header = parse_header(triangle_ply)
    with pytest.raises(dataclasses.FrozenInstanceError):
        header.vertex_count = 10


def test_summary_is_json_friendly(triangle_ply):
    summary = parse_header(triangle_ply).summary()
    assert summary["vertexCount"] == 3
    assert summary["vertexProperties"][0] == {"name": "x", "type": "float", "attribute": "positions"}


def test_short_attribute_aliases_are_untagged(make_ply):
    header = parse_header(make_ply([("float", "u"), ("float", "v"), ("uchar", "r"), ("uchar", "g")], [], []))
    assert [s.attribute for s in header.element_lut] == [None] * 4


def test_obj_info_lines_are_collected(make_ply):
    text = make_ply(XYZ_PROPS, [], [])
    text = text.replace("format ascii 1.0\n", "format ascii 1.0\nobj_info scanner  v2\nobj_info num_cols 640\n")
    header = parse_header(text)
    assert header.obj_info == ("scanner v2", "num_cols 640")
    assert header.comments == ()
