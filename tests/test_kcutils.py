from __future__ import annotations

from dataclasses import dataclass, field

import pytest

from kubesel.kcutils import (
    decode_extension,
    encode_extension,
    extensions_from,
    find_auth_info,
    find_cluster,
    find_context,
    find_extension,
    find_extension_from,
    find_extensions_by_kind,
    find_extensions_by_kind_from,
)
from kubesel.kubeconfig import (
    AuthInfo,
    Cluster,
    Config,
    Context,
    Extension,
    KubeconfigTypeError,
    NamedAuthInfo,
    NamedCluster,
    NamedContext,
    NamedExtension,
    Preferences,
)


@dataclass
class SimpleStruct:
    name: str = ""


@dataclass
class SimpleStructWithTag:
    name: str = field(default="", metadata={"json": "the-name"})


@dataclass
class EmbeddingStruct(SimpleStruct):
    pass


@dataclass
class InlineStructField:
    inner: SimpleStruct = field(
        default_factory=SimpleStruct, metadata={"json": ",inline"}
    )


@dataclass
class OwnerInfo:
    pid: int = field(default=0, metadata={"json": "pid"})
    epoch: int = field(default=0, metadata={"json": "epoch"})


@dataclass
class Wrapper:
    owner: OwnerInfo
    tags: list[str] = field(default_factory=list)


def _expected_extensions():
    return [
        NamedExtension(
            name="foo",
            extension=Extension(api_version="com.example/v1", kind="foo"),
        )
    ]


@pytest.mark.parametrize("cls", [Config, Cluster, Context, AuthInfo, Preferences])
def test_extensions_from(cls):
    expected = _expected_extensions()
    assert extensions_from(cls(extensions=expected)) == expected


def test_extensions_from_unsupported_type():
    with pytest.raises(TypeError):
        extensions_from(NamedExtension(name="foo"))


def test_decode_works():
    actual = decode_extension(Extension(remaining={"name": "foo"}), SimpleStruct)
    assert actual == SimpleStruct(name="foo")


def test_decode_is_case_insensitive():
    actual = decode_extension(Extension(remaining={"NAME": "foo"}), SimpleStruct)
    assert actual == SimpleStruct(name="foo")


def test_decode_uses_json_tag():
    actual = decode_extension(
        Extension(remaining={"the-name": "foo"}), SimpleStructWithTag
    )
    assert actual == SimpleStructWithTag(name="foo")


def test_decode_inlines_embedded_structs():
    actual = decode_extension(Extension(remaining={"name": "foo"}), EmbeddingStruct)
    assert actual == EmbeddingStruct(name="foo")


def test_decode_inlines_structs_tagged_with_inline():
    actual = decode_extension(Extension(remaining={"name": "foo"}), InlineStructField)
    assert actual == InlineStructField(inner=SimpleStruct(name="foo"))


def test_decode_wrong_type_raises():
    with pytest.raises(KubeconfigTypeError):
        decode_extension(Extension(remaining={"name": 5}), SimpleStruct)


def test_decode_missing_required_field_uses_zero_value():
    actual = decode_extension(Extension(remaining={}), Wrapper)
    assert actual == Wrapper(owner=OwnerInfo(pid=0, epoch=0), tags=[])


def test_decode_into_non_dataclass_raises():
    with pytest.raises(TypeError):
        decode_extension(Extension(remaining={}), dict)


def test_encode_works():
    actual = Extension()
    encode_extension(SimpleStruct(name="foo"), actual)
    assert actual == Extension(remaining={"name": "foo"})


def test_encode_uses_json_tag():
    actual = Extension()
    encode_extension(SimpleStructWithTag(name="foo"), actual)
    assert actual == Extension(remaining={"the-name": "foo"})


def test_encode_inlines_embedded_structs():
    actual = Extension()
    encode_extension(EmbeddingStruct(name="foo"), actual)
    assert actual == Extension(remaining={"name": "foo"})


def test_encode_inlines_structs_tagged_with_inline():
    actual = Extension()
    encode_extension(InlineStructField(inner=SimpleStruct(name="foo")), actual)
    assert actual == Extension(remaining={"name": "foo"})


def test_encode_keeps_api_version_and_kind_and_replaces_remaining():
    target = Extension(api_version="a/v1", kind="K", remaining={"old": 1})
    encode_extension(SimpleStruct(name="foo"), target)
    assert target == Extension(api_version="a/v1", kind="K", remaining={"name": "foo"})


def test_encode_decode_round_trip_nested():
    value = Wrapper(owner=OwnerInfo(pid=1234, epoch=98765), tags=["a", "b"])
    ext = Extension()
    encode_extension(value, ext)
    assert ext.remaining == {"owner": {"pid": 1234, "epoch": 98765}, "tags": ["a", "b"]}
    assert decode_extension(ext, Wrapper) == value


def test_find_context_returns_none_if_missing():
    config = Config(
        contexts=[NamedContext(name="localhost", context=Context(cluster="localhost"))]
    )
    assert find_context("foo", config) is None


def test_find_context_returns_first_found():
    config = Config(
        contexts=[
            NamedContext(name="localhost", context=Context(cluster="localhost")),
            NamedContext(name="localhost", context=Context(cluster="not-localhost")),
        ]
    )
    assert find_context("localhost", config) == Context(cluster="localhost")


def test_find_cluster_returns_none_if_missing():
    config = Config(
        clusters=[NamedCluster(name="localhost", cluster=Cluster(server="localhost"))]
    )
    assert find_cluster("foo", config) is None


def test_find_cluster_returns_first_found():
    config = Config(
        clusters=[
            NamedCluster(name="localhost", cluster=Cluster(server="localhost")),
            NamedCluster(name="localhost", cluster=Cluster(server="not-localhost")),
        ]
    )
    assert find_cluster("localhost", config) == Cluster(server="localhost")


def test_find_auth_info_returns_none_if_missing():
    config = Config(
        clusters=[NamedCluster(name="localhost", cluster=Cluster(server="localhost"))]
    )
    assert find_auth_info("foo", config) is None


def test_find_auth_info_returns_first_found():
    config = Config(
        auth_infos=[
            NamedAuthInfo(name="localhost", user=AuthInfo(username="localhost")),
            NamedAuthInfo(name="localhost", user=AuthInfo(username="not-localhost")),
        ]
    )
    assert find_auth_info("localhost", config) == AuthInfo(username="localhost")


def test_find_extension_returns_none_if_missing():
    extensions = [
        NamedExtension(
            name="test", extension=Extension(api_version="com.example/v1", kind="Foo")
        )
    ]
    assert find_extension("foo", extensions) is None


def test_find_extension_returns_first_found():
    extensions = [
        NamedExtension(
            name="test", extension=Extension(api_version="com.example/v1", kind="Foo")
        ),
        NamedExtension(
            name="test", extension=Extension(api_version="com.example/v1", kind="Bar")
        ),
    ]
    assert find_extension("test", extensions) == Extension(
        api_version="com.example/v1", kind="Foo"
    )


def test_find_extensions_by_kind_returns_empty_if_none_match():
    extensions = [
        NamedExtension(
            name="test", extension=Extension(api_version="com.example/v1", kind="Foo")
        )
    ]
    assert find_extensions_by_kind("com.other", "Bar", extensions) == []


def test_find_extensions_by_kind_returns_all_found():
    extensions = [
        NamedExtension(
            name="test",
            extension=Extension(
                api_version="com.example/v1", kind="Foo", remaining={"position": 1}
            ),
        ),
        NamedExtension(
            name="test",
            extension=Extension(
                api_version="com.example/v1", kind="Foo", remaining={"position": 2}
            ),
        ),
    ]
    assert find_extensions_by_kind("com.example/v1", "Foo", extensions) == [
        Extension(api_version="com.example/v1", kind="Foo", remaining={"position": 1}),
        Extension(api_version="com.example/v1", kind="Foo", remaining={"position": 2}),
    ]


def test_find_extensions_by_kind_skips_unnamed_and_empty():
    match = Extension(api_version="com.example/v1", kind="Foo")
    extensions = [
        NamedExtension(name=None, extension=match),
        NamedExtension(name="empty", extension=None),
        NamedExtension(name="ok", extension=match),
    ]
    assert find_extensions_by_kind("com.example/v1", "Foo", extensions) == [match]


def test_find_extension_from_and_by_kind_from():
    ext = Extension(api_version="com.example/v1", kind="Foo")
    cluster = Cluster(extensions=[NamedExtension(name="mine", extension=ext)])
    assert find_extension_from("mine", cluster) is ext
    assert find_extensions_by_kind_from("com.example/v1", "Foo", cluster) == [ext]
    assert find_extension_from("mine", Context()) is None