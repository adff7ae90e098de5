"""
Message classes for the tests, built at runtime from FileDescriptorProtos
in a private pool (no protoc, no generated *_pb2 modules).
"""
from __future__ import annotations

from types import SimpleNamespace

import pytest
from google.protobuf import descriptor_pb2, descriptor_pool, message_factory

from prism_projector.settings import default_settings

FD = descriptor_pb2.FieldDescriptorProto

SCALAR_TYPES = [
    ("f_double", FD.TYPE_DOUBLE),
    ("f_float", FD.TYPE_FLOAT),
    ("f_int32", FD.TYPE_INT32),
    ("f_int64", FD.TYPE_INT64),
    ("f_uint32", FD.TYPE_UINT32),
    ("f_uint64", FD.TYPE_UINT64),
    ("f_sint32", FD.TYPE_SINT32),
    ("f_sint64", FD.TYPE_SINT64),
    ("f_fixed32", FD.TYPE_FIXED32),
    ("f_fixed64", FD.TYPE_FIXED64),
    ("f_sfixed32", FD.TYPE_SFIXED32),
    ("f_sfixed64", FD.TYPE_SFIXED64),
    ("f_bool", FD.TYPE_BOOL),
    ("f_string", FD.TYPE_STRING),
    ("f_bytes", FD.TYPE_BYTES),
]


def _field(name, number, ftype, *, label=FD.LABEL_OPTIONAL, type_name=None, oneof_index=None):
    f = FD(name=name, number=number, type=ftype, label=label)
    if type_name:
        f.type_name = type_name
    if oneof_index is not None:
        f.oneof_index = oneof_index
    return f


def _enum(name, *values):
    return descriptor_pb2.EnumDescriptorProto(
        name=name,
        value=[descriptor_pb2.EnumValueDescriptorProto(name=v, number=i) for i, v in enumerate(values)],
    )


def proto2_file() -> descriptor_pb2.FileDescriptorProto:
    """package prism.test, proto2: explicit presence for every singular field."""
    fields = [_field(name, i + 1, t) for i, (name, t) in enumerate(SCALAR_TYPES)]
    n = len(fields)
    fields += [
        _field("f_color", n + 1, FD.TYPE_ENUM, type_name=".prism.test.Color"),
        _field("r_int32", n + 2, FD.TYPE_INT32, label=FD.LABEL_REPEATED),
        _field("r_int64", n + 3, FD.TYPE_INT64, label=FD.LABEL_REPEATED),
        _field("r_uint64", n + 4, FD.TYPE_UINT64, label=FD.LABEL_REPEATED),
        _field("r_double", n + 5, FD.TYPE_DOUBLE, label=FD.LABEL_REPEATED),
        _field("r_bool", n + 6, FD.TYPE_BOOL, label=FD.LABEL_REPEATED),
        _field("r_string", n + 7, FD.TYPE_STRING, label=FD.LABEL_REPEATED),
        _field("r_bytes", n + 8, FD.TYPE_BYTES, label=FD.LABEL_REPEATED),
        _field("r_color", n + 9, FD.TYPE_ENUM, label=FD.LABEL_REPEATED, type_name=".prism.test.Color"),
    ]
    scalars = descriptor_pb2.DescriptorProto(name="Scalars", field=fields)

    inner = descriptor_pb2.DescriptorProto(
        name="Inner",
        field=[_field("a", 1, FD.TYPE_INT32), _field("b", 2, FD.TYPE_INT32)],
    )

    counters_entry = descriptor_pb2.DescriptorProto(
        name="CountersEntry",
        field=[_field("key", 1, FD.TYPE_STRING), _field("value", 2, FD.TYPE_INT64)],
        options=descriptor_pb2.MessageOptions(map_entry=True),
    )
    children_entry = descriptor_pb2.DescriptorProto(
        name="ChildrenEntry",
        field=[
            _field("key", 1, FD.TYPE_INT32),
            _field("value", 2, FD.TYPE_MESSAGE, type_name=".prism.test.Inner"),
        ],
        options=descriptor_pb2.MessageOptions(map_entry=True),
    )
    outer = descriptor_pb2.DescriptorProto(
        name="Outer",
        field=[
            _field("name", 1, FD.TYPE_STRING),
            _field("inner", 2, FD.TYPE_MESSAGE, type_name=".prism.test.Inner"),
            _field("items", 3, FD.TYPE_MESSAGE, label=FD.LABEL_REPEATED, type_name=".prism.test.Inner"),
            _field("colors", 4, FD.TYPE_ENUM, label=FD.LABEL_REPEATED, type_name=".prism.test.Color"),
            _field("counters", 5, FD.TYPE_MESSAGE, label=FD.LABEL_REPEATED,
                   type_name=".prism.test.Outer.CountersEntry"),
            _field("children", 6, FD.TYPE_MESSAGE, label=FD.LABEL_REPEATED,
                   type_name=".prism.test.Outer.ChildrenEntry"),
        ],
        nested_type=[counters_entry, children_entry],
    )

    node = descriptor_pb2.DescriptorProto(
        name="Node",
        field=[
            _field("value", 1, FD.TYPE_INT32),
            _field("child", 2, FD.TYPE_MESSAGE, type_name=".prism.test.Node"),
        ],
    )

    # proto2 group, never populated by the tests
    legacy = descriptor_pb2.DescriptorProto(
        name="Legacy",
        field=[
            _field("id", 1, FD.TYPE_INT32),
            _field("result", 2, FD.TYPE_GROUP, type_name=".prism.test.Legacy.Result"),
        ],
        nested_type=[descriptor_pb2.DescriptorProto(name="Result", field=[_field("url", 3, FD.TYPE_STRING)])],
    )
    archive = descriptor_pb2.DescriptorProto(
        name="Archive",
        field=[
            _field("name", 1, FD.TYPE_STRING),
            _field("legacy", 2, FD.TYPE_MESSAGE, type_name=".prism.test.Legacy"),
        ],
    )

    return descriptor_pb2.FileDescriptorProto(
        name="prism/test/scalars.proto",
        package="prism.test",
        syntax="proto2",
        enum_type=[_enum("Color", "COLOR_UNSPECIFIED", "RED", "GREEN", "BLUE")],
        message_type=[scalars, inner, outer, node, legacy, archive],
    )


def proto3_file() -> descriptor_pb2.FileDescriptorProto:
    """package prism.table, proto3: implicit presence, a Bigtable-shaped request."""
    set_cell = descriptor_pb2.DescriptorProto(
        name="SetCell",
        field=[
            _field("family_name", 1, FD.TYPE_STRING),
            _field("column_qualifier", 2, FD.TYPE_BYTES),
            _field("timestamp_micros", 3, FD.TYPE_INT64),
            _field("value", 4, FD.TYPE_BYTES),
        ],
    )
    delete_from_row = descriptor_pb2.DescriptorProto(name="DeleteFromRow")
    mutation = descriptor_pb2.DescriptorProto(
        name="Mutation",
        field=[
            _field("set_cell", 1, FD.TYPE_MESSAGE, type_name=".prism.table.Mutation.SetCell", oneof_index=0),
            _field("delete_from_row", 3, FD.TYPE_MESSAGE,
                   type_name=".prism.table.Mutation.DeleteFromRow", oneof_index=0),
        ],
        nested_type=[set_cell, delete_from_row],
        oneof_decl=[descriptor_pb2.OneofDescriptorProto(name="mutation")],
    )
    mutate_row = descriptor_pb2.DescriptorProto(
        name="MutateRowRequest",
        field=[
            _field("table_name", 1, FD.TYPE_STRING),
            _field("row_key", 2, FD.TYPE_BYTES),
            _field("mutations", 3, FD.TYPE_MESSAGE, label=FD.LABEL_REPEATED,
                   type_name=".prism.table.Mutation"),
        ],
    )
    read_rows = descriptor_pb2.DescriptorProto(
        name="ReadRowsRequest",
        field=[
            _field("table_name", 1, FD.TYPE_STRING),
            _field("rows_limit", 4, FD.TYPE_INT64),
            _field("mode", 5, FD.TYPE_ENUM, type_name=".prism.table.Mode"),
            _field("row_keys", 6, FD.TYPE_BYTES, label=FD.LABEL_REPEATED),
            _field("reversed", 7, FD.TYPE_BOOL),
            _field("sample_ratio", 8, FD.TYPE_DOUBLE),
        ],
    )
    return descriptor_pb2.FileDescriptorProto(
        name="prism/table/table.proto",
        package="prism.table",
        syntax="proto3",
        enum_type=[_enum("Mode", "MODE_UNSPECIFIED", "FAST", "CONSISTENT")],
        message_type=[mutation, mutate_row, read_rows],
    )


def build_types() -> SimpleNamespace:
    pool = descriptor_pool.DescriptorPool()
    files = [proto2_file(), proto3_file()]
    for f in files:
        pool.Add(f)

    def cls(full_name):
        return message_factory.GetMessageClass(pool.FindMessageTypeByName(full_name))

    return SimpleNamespace(
        pool=pool,
        files=files,
        Scalars=cls("prism.test.Scalars"),
        Inner=cls("prism.test.Inner"),
        Outer=cls("prism.test.Outer"),
        Node=cls("prism.test.Node"),
        Legacy=cls("prism.test.Legacy"),
        Archive=cls("prism.test.Archive"),
        Mutation=cls("prism.table.Mutation"),
        MutateRowRequest=cls("prism.table.MutateRowRequest"),
        ReadRowsRequest=cls("prism.table.ReadRowsRequest"),
    )


@pytest.fixture(scope="session")
def pb() -> SimpleNamespace:
    return build_types()


@pytest.fixture(autouse=True)
def _fresh_settings():
    default_settings.cache_clear()
    yield
    default_settings.cache_clear()
