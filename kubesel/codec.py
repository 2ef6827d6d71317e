"""Reading and writing kubeconfig documents as YAML or JSON."""

from __future__ import annotations

import json

import yaml

from kubesel.kubeconfig import Config

__all__ = [
    "config_from_yaml",
    "config_to_yaml",
    "config_from_json",
    "config_to_json",
]


def config_from_yaml(data: str | bytes) -> Config:
    """Parse a kubeconfig YAML document.

    An empty document gives an empty Config. A document whose fields have the
    wrong types raises KubeconfigTypeError; malformed YAML raises
    ``yaml.YAMLError``.
    """
    return Config.from_dict(yaml.safe_load(data))


def config_to_yaml(config: Config) -> str:
    """Serialise a Config as a YAML document, keeping its key order."""
    return yaml.safe_dump(
        config.to_dict(),
        sort_keys=False,
        default_flow_style=False,
        allow_unicode=True,
    )


def config_from_json(data: str | bytes) -> Config:
    """Parse a kubeconfig JSON document.

    Malformed JSON raises ``json.JSONDecodeError``.
    """
    return Config.from_dict(json.loads(data))


def config_to_json(config: Config) -> str:
    """Serialise a Config as a JSON document."""
    return json.dumps(config.to_dict())