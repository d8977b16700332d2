"""Tests for lazy import system in relayfeed.__init__."""

from __future__ import annotations

import importlib
import sys

import pytest


class TestLazyImports:
    """Test PEP 562 lazy loading in relayfeed.__init__."""

    def test_lazy_import_does_not_eagerly_load(self) -> None:
        """Verify that importing relayfeed does not eagerly load subpackages."""
        saved = {name: mod for name, mod in sys.modules.items() if name.startswith("relayfeed")}
        for name in saved:
            del sys.modules[name]
        try:
            importlib.import_module("relayfeed")

            assert "relayfeed.client" not in sys.modules
            assert "relayfeed.core" not in sys.modules
            assert "relayfeed.models" not in sys.modules
            assert "relayfeed.nips" not in sys.modules
        finally:
            for name in [n for n in sys.modules if n.startswith("relayfeed")]:
                del sys.modules[name]
            sys.modules.update(saved)

    def test_lazy_import_resolves_on_access(self) -> None:
        from relayfeed import Timeline
        from relayfeed.client.timeline import Timeline as DirectTimeline

        assert Timeline is DirectTimeline

    def test_lazy_import_caches_after_first_access(self) -> None:
        import relayfeed

        _ = relayfeed.RelayEndpoint

        assert "RelayEndpoint" in vars(relayfeed)

    def test_lazy_import_invalid_attribute(self) -> None:
        import relayfeed

        with pytest.raises(AttributeError, match="no_such_thing"):
            _ = getattr(relayfeed, "no_such_thing")  # noqa: B009

    def test_all_exports_are_in_lazy_imports(self) -> None:
        """Verify that __all__ and _LAZY_IMPORTS are in sync."""
        import relayfeed

        assert set(relayfeed.__all__) == set(relayfeed._LAZY_IMPORTS)

    def test_every_export_resolves(self) -> None:
        import relayfeed

        for name in relayfeed.__all__:
            assert getattr(relayfeed, name) is not None

    def test_dir_returns_all(self) -> None:
        import relayfeed

        assert dir(relayfeed) == relayfeed.__all__

    def test_version_is_accessible(self) -> None:
        import relayfeed

        assert isinstance(relayfeed.__version__, str)
        assert relayfeed.__version__
