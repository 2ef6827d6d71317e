import io
import os
import posixpath
from types import SimpleNamespace

import pytest

from kubesel.loader import (
    LoadedKubeconfig,
    NoKubeDirError,
    ParseError,
    ReadError,
    find_default_kube_dir_posix,
    find_default_kube_dir_windows,
    find_kubeconfig_files,
    load_from_file,
    load_from_stream,
    load_multiple_files,
)


def _clean(path):
    return posixpath.normpath(path.replace("\\", "/"))


def _fake_stat(files):
    def stat(path):
        key = _clean(path)
        if key not in files:
            raise FileNotFoundError(path)
        return SimpleNamespace(st_mode=files[key])

    return stat


_FULL_ENV = {
    "HOME": "C:/Home/Fake",
    "HOMEDRIVE": "C:/",
    "HOMEPATH": "HomePath/Fake",
    "USERPROFILE": "C:/UserProfile/Fake",
}

_WINDOWS_CASES = {
    "HOME used 1st when config file exists": (
        {
            "C:/Home/Fake/.kube/config": 0o777,
            "C:/HomePath/Fake/.kube/config": 0o777,
            "C:/UserProfile/Fake/.kube/config": 0o777,
        },
        _FULL_ENV,
        "C:/Home/Fake/.kube",
    ),
    "HOMEDRIVE HOMEPATH used 2nd when config file exists": (
        {
            "C:/HomePath/Fake/.kube/config": 0o777,
            "C:/UserProfile/Fake/.kube/config": 0o777,
        },
        _FULL_ENV,
        "C:/HomePath/Fake/.kube",
    ),
    "USERPROFILE used 3rd when config file exists": (
        {"C:/UserProfile/Fake/.kube/config": 0o777},
        _FULL_ENV,
        "C:/UserProfile/Fake/.kube",
    ),
    "HOME used 1st when dir exists and writeable": (
        {
            "C:/Home/Fake": 0o777,
            "C:/HomePath/Fake": 0o777,
            "C:/UserProfile/Fake": 0o777,
        },
        _FULL_ENV,
        "C:/Home/Fake/.kube",
    ),
    "USERPROFILE used 2nd when dir exists and writeable": (
        {
            "C:/Home/Fake": 0o000,
            "C:/HomePath/Fake": 0o777,
            "C:/UserProfile/Fake": 0o777,
        },
        _FULL_ENV,
        "C:/UserProfile/Fake/.kube",
    ),
    "HOMEDRIVE HOMEPATH used 3rd when dir exists and writeable": (
        {
            "C:/Home/Fake": 0o000,
            "C:/HomePath/Fake": 0o777,
            "C:/UserProfile/Fake": 0o000,
        },
        _FULL_ENV,
        "C:/HomePath/Fake/.kube",
    ),
    "HOME used 1st when dir exists": (
        {
            "C:/Home/Fake": 0o000,
            "C:/HomePath/Fake": 0o000,
            "C:/UserProfile/Fake": 0o000,
        },
        _FULL_ENV,
        "C:/Home/Fake/.kube",
    ),
    "USERPROFILE used 2nd when dir exists": (
        {
            "C:/HomePath/Fake": 0o000,
            "C:/UserProfile/Fake": 0o000,
        },
        _FULL_ENV,
        "C:/UserProfile/Fake/.kube",
    ),
    "HOMEDRIVE HOMEPATH used 3rd when dir exists": (
        {"C:/HomePath/Fake": 0o000},
        _FULL_ENV,
        "C:/HomePath/Fake/.kube",
    ),
}


@pytest.mark.parametrize(
    "files, env, expected",
    list(_WINDOWS_CASES.values()),
    ids=list(_WINDOWS_CASES.keys()),
)
def test_find_default_kube_dir_windows(files, env, expected):
    actual = find_default_kube_dir_windows(env, _fake_stat(files))
    assert _clean(actual) == expected


@pytest.mark.parametrize(
    "files, env",
    [
        ({}, _FULL_ENV),
        (
            {
                "C:/Home/Fake": 0o000,
                "C:/HomePath/Fake": 0o000,
                "C:/UserProfile/Fake": 0o000,
            },
            {},
        ),
    ],
    ids=["no existing candidate", "no environment vars"],
)
def test_find_default_kube_dir_windows_errors(files, env):
    with pytest.raises(NoKubeDirError):
        find_default_kube_dir_windows(env, _fake_stat(files))


def test_find_default_kube_dir_posix_found_in_home():
    actual = find_default_kube_dir_posix({"HOME": "/home/fake"})
    assert _clean(actual) == "/home/fake/.kube"


def test_find_default_kube_dir_posix_errors_without_home():
    with pytest.raises(NoKubeDirError, match="HOME"):
        find_default_kube_dir_posix({})


def test_find_kubeconfig_files_splits_variable():
    env = {"KUBECONFIG": os.pathsep.join(["a.yaml", "", "b.yaml"])}
    assert find_kubeconfig_files(env) == ["a.yaml", "b.yaml"]


def test_find_kubeconfig_files_empty_variable():
    assert find_kubeconfig_files({"KUBECONFIG": ""}) == []


def test_load_from_stream_parses_config():
    stream = io.StringIO("current-context: foo\nclusters:\n  - name: c1\n")
    loaded = load_from_stream(stream)
    assert loaded.errors == []
    assert loaded.config.current_context == "foo"
    assert [c.name for c in loaded.config.clusters] == ["c1"]


def test_load_from_stream_invalid_yaml():
    loaded = load_from_stream(io.StringIO("a: [\n"))
    assert len(loaded.errors) == 1
    assert isinstance(loaded.errors[0], ParseError)


def test_load_from_stream_wrong_types():
    loaded = load_from_stream(io.StringIO("clusters: 5\n"))
    assert len(loaded.errors) == 1
    assert isinstance(loaded.errors[0], ParseError)


def test_load_from_stream_read_failure():
    class Broken:
        def read(self):
            raise OSError("boom")

    loaded = load_from_stream(Broken())
    assert len(loaded.errors) == 1
    assert isinstance(loaded.errors[0], ReadError)


def test_load_from_file_missing(tmp_path):
    loaded = load_from_file(str(tmp_path / "missing.yaml"))
    assert loaded.path == ""
    assert isinstance(loaded.errors[0], ReadError)


def test_load_from_file_sets_path(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("current-context: foo\n")
    loaded = load_from_file(str(path))
    assert loaded == LoadedKubeconfig(
        path=str(path), config=loaded.config, errors=[]
    )
    assert loaded.config.current_context == "foo"


def test_load_multiple_files_merges_first_wins(tmp_path):
    first = tmp_path / "first.yaml"
    first.write_text(
        "current-context: one\nclusters:\n  - name: a\n    cluster:\n      server: s1\n"
    )
    second = tmp_path / "second.yaml"
    second.write_text(
        "current-context: two\nclusters:\n"
        "  - name: a\n    cluster:\n      server: s2\n"
        "  - name: b\n    cluster:\n      server: s3\n"
    )
    collection = load_multiple_files([str(first), str(second)])
    assert [c.path for c in collection.configs] == [str(first), str(second)]
    assert collection.merged.current_context == "one"
    assert [(c.name, c.cluster.server) for c in collection.merged.clusters] == [
        ("a", "s1"),
        ("b", "s3"),
    ]