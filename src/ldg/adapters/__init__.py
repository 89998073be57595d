# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Result adapters for the living documentation generator."""

from ldg.adapters.cucumber_json import CucumberJsonAdapter
from ldg.adapters.junit import JUnitAdapter
from ldg.adapters.nunit import NUnitAdapter
from ldg.adapters.nunit2 import NUnit2Adapter
from ldg.adapters.trx import TrxAdapter
from ldg.adapters.xunit import XUnitAdapter

__all__ = [
    "CucumberJsonAdapter",
    "JUnitAdapter",
    "NUnit2Adapter",
    "NUnitAdapter",
    "TrxAdapter",
    "XUnitAdapter",
]
