"""Shared YAML dump helpers for vector files."""

from __future__ import annotations

from pathlib import Path

import yaml


class PlainDumper(yaml.SafeDumper):
    pass


def _str_representer(dumper: yaml.SafeDumper, data: str) -> yaml.ScalarNode:
    # Hex strings such as "0x00..." must not be read back as integers.
    style = "'" if data.startswith(("0x", "0X")) else None
    return dumper.represent_scalar("tag:yaml.org,2002:str", data, style=style)


PlainDumper.add_representer(str, _str_representer)


def prune(obj):  # drop None values; readers treat missing and null alike
    if isinstance(obj, dict):
        return {k: prune(v) for k, v in obj.items() if v is not None}
    if isinstance(obj, list):
        return [prune(v) for v in obj]
    return obj


def dump_yaml(data: dict) -> str:
    return yaml.dump(data, Dumper=PlainDumper, sort_keys=False, width=4096)


def write_yaml(path: Path, data: dict) -> None:
    path.write_text(dump_yaml(data))
