#!/usr/bin/env python3
"""
Test import moduli user-provisioner
"""
import importlib

import pytest

import uprov

MODULES = [
    "uprov.cli",
    "uprov.config",
    "uprov.exceptions",
    "uprov.provision",
    "uprov.records",
    "uprov.system",
    "uprov.utils",
    "uprov.verify",
]


@pytest.mark.parametrize("module", MODULES)
def test_module_imports(module):
    assert importlib.import_module(module)


def test_version_metadata():
    assert uprov.__version__.startswith("1.0")
    assert "CSV" in uprov.__description__


def test_cli_commands_registered():
    from uprov.cli import app
    names = {cmd.name or cmd.callback.__name__ for cmd in app.registered_commands}
    assert {"provision", "deprovision", "config", "version"} <= names
    groups = {group.name for group in app.registered_groups}
    assert "verify" in groups
