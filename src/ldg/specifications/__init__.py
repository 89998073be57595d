# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Specification adapters for the living documentation generator."""

from ldg.specifications.gherkin_adapter import GherkinAdapter

__all__ = ["GherkinAdapter"]
