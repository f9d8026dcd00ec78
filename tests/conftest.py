"""
Shared fixtures: settings and compiler factories

Every factory-built compiler ignores the site-wide abbreviations file so
tests do not depend on the working directory.
"""

import pytest

from mdplus.config.settings import AppSettings
from mdplus.lib.collaborators import PageContext
from mdplus.lib.compiler import DocumentCompiler


@pytest.fixture
def settings_make():
    def make(**overrides) -> AppSettings:
        overrides.setdefault("abbreviations_file", "")
        return AppSettings(**overrides)
    return make


@pytest.fixture
def compiler_make(settings_make):
    def make(page=None, files=None, permission=None, macros=None, now=None, **overrides) -> DocumentCompiler:
        return DocumentCompiler(
            page=page or PageContext(),
            files=files,
            permission=permission,
            macros=macros,
            settings=settings_make(**overrides),
            now=now,
        )
    return make


@pytest.fixture
def compiler(compiler_make) -> DocumentCompiler:
    return compiler_make()
