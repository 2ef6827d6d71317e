# kubesel

`kubesel` is a small library for working with kubectl configuration files.
It gives each shell session its own kubeconfig file, so that switching the
cluster, user or namespace in one terminal does not affect any other.

## Modules

- `kubesel.kubeconfig`: dataclass models of the kubeconfig schema (`Config`,
  `NamedCluster`, `Cluster`, `NamedContext`, `Context`, `NamedAuthInfo`,
  `AuthInfo`, `AuthProviderConfig`, `ExecConfig`, `ExecEnvVar`,
  `NamedExtension`, `Preferences`, `Extension`). Every field is optional, so
  an absent value can be told apart from an empty one. Keys the model does not
  know are kept in each object's `remaining` mapping. Every object has
  `clone()`, `clone_into(target)`, `to_dict()` and `from_dict(data)`; a value
  of the wrong type raises `KubeconfigTypeError`. `Extension.matches(api_version,
  kind)` checks an extension's apiVersion and kind.
- `kubesel.codec`: `config_from_yaml`, `config_to_yaml`, `config_from_json`
  and `config_to_json`.
- `kubesel.merge`: `merge_config(first, other)`, following kubectl's rules:
  the first definition wins and values are never merged. Named entries without
  a name are dropped.
- `kubesel.kcutils`: `find_context`, `find_cluster`, `find_auth_info`,
  `find_extension`, `find_extensions_by_kind`, `find_extension_from`,
  `find_extensions_by_kind_from` and `extensions_from`, plus
  `encode_extension(value, extension)` and `decode_extension(extension,
  target_type)` for storing dataclasses in an extension's unstructured data
  (keys come from a field's `json` metadata, or its name).
- `kubesel.loader`: finds kubeconfig files the way kubectl does
  (`find_kubeconfig_files` splits `KUBECONFIG`, falling back to
  `~/.kube/config`; on Windows the `.kube` directory is looked for under
  `HOME`, `HOMEDRIVE`/`HOMEPATH` and `USERPROFILE`) and loads them.
  `load_from_file` and `load_from_stream` never raise: problems are recorded
  as `ReadError` or `ParseError` in `LoadedKubeconfig.errors`.
  `load_multiple_files` loads files concurrently and merges them in order.
- `kubesel.owner`: `Owner` (a process id and the system boot time) and
  `owner_for_process(pid)`, which raises `OwnerProcessNotExistError` for a
  process that does not exist.
- `kubesel.managed`: `ManagedKubeconfig`, a kubeconfig whose single
  `kubesel` context is controlled through the `cluster_name`,
  `auth_info_name` and `namespace` properties and written atomically with
  `save()`; also `is_managed_context`, `is_managed_kubeconfig`,
  `managed_kubeconfig_from_loaded` and `new_managed_kubeconfig`.
- `kubesel.core`: `Kubesel`, which ties the loaded kubeconfig files to the
  session directory, and `garbage_collect`, which removes session files whose
  owner has exited or whose machine has rebooted since.
- `kubesel.errors`: `KubeselError` and its subclasses `AlreadyManagedError`,
  `ManagedKubeconfigCorruptError`, `UnmanagedError` and
  `OwnerProcessNotExistError`.
- `kubesel.textcomponent`: a small composable text renderer (`Text`,
  `NEWLINE`, `Sequence`, `LinePrefix`, `Trim`, `Renderer`).

## Installation

```
pip install .
```

## Usage

Reading and merging kubeconfig files:

```python
from kubesel.loader import find_kubeconfig_files, load_multiple_files

collection = load_multiple_files(find_kubeconfig_files())
for loaded in collection.configs:
    for error in loaded.errors:
        print(loaded.path, error)

merged = collection.merged
print([c.name for c in merged.contexts or []])
```

Working with a session:

```python
import os

from kubesel.core import Kubesel, GarbageCollectOptions
from kubesel.errors import UnmanagedError
from kubesel.owner import owner_for_process

kubesel = Kubesel.load()
print(kubesel.cluster_names)

try:
    managed = kubesel.managed_kubeconfig()
except UnmanagedError:
    managed = kubesel.create_managed_kubeconfig(owner_for_process(os.getppid()))

managed.cluster_name = kubesel.cluster_names[0]
managed.namespace = "default"
managed.save()
print("export KUBECONFIG=" + managed.path)

result = kubesel.garbage_collect(GarbageCollectOptions(max_files_to_check=50))
print(result.files_deleted, result.errors)
```

`cluster_names`, `auth_info_names` and `context_names` are properties
computed once; `context_names` leaves out kubesel's own context.
`managed_kubeconfig()` returns the first loaded file that lies inside the
session directory, and raises `UnmanagedError` if there is none.

Rendering text:

```python
from kubesel.textcomponent import LinePrefix, Renderer, Text

renderer = Renderer()
renderer.render(LinePrefix(prefix=Text("> "), child=Text("foo\nbar")))
print(renderer.getvalue())  # "> foo\n> bar"
```

Session files are kept in `$XDG_DATA_HOME/kubesel/sessions`. If
`XDG_DATA_HOME` is not set, this is `~/.local/share/kubesel/sessions`
(on Windows, under `%LOCALAPPDATA%`).

## What it does not do

This is a library only. It has no `kubesel` command, no shell integration
that sets `KUBECONFIG` for you, and no interactive picker for clusters,
users or namespaces; a program using the library has to provide these.

## Tests

```
pip install '.[test]'
pytest
```