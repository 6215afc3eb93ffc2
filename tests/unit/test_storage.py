"""Unit tests for sdkstubs.storage — registry, manifest backend and merging."""
from __future__ import annotations

import importlib.metadata
import json
import logging
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from sdkstubs.errors import (
    BackendNotFoundError,
    StorageError,
    StorageNotFoundError,
    StubVersionMismatchError,
)
from sdkstubs.generator import GenerationContext
from sdkstubs.levels import LanguageLevel
from sdkstubs.storage import (
    BackendRegistry,
    ManifestBackend,
    backend_registry,
    get_backend,
    load_manifest,
    merge_stubs,
    read_version,
)
from sdkstubs.storage.base import StubStorageBackend, version_file


def _context(level: LanguageLevel = LanguageLevel.PYTHON312) -> GenerationContext:
    return GenerationContext(
        level=level,
        default_level=LanguageLevel.default(),
        module_type_id="PYTHON_MODULE",
        stub_version="1",
    )


def _write_storage(directory: Path, files: dict[str, bytes], levels=(LanguageLevel.PYTHON312,)) -> Path:
    backend = ManifestBackend()
    with backend.open_writer(directory, "sdk-stubs", backend.stub_version, "PYTHON_MODULE") as writer:
        for relative, content in files.items():
            for level in levels:
                writer.add(relative, content, _context(level))
    return backend.storage_path(directory, "sdk-stubs")


class DummyBackend(StubStorageBackend):
    @property
    def format_version(self) -> int:
        return 3

    def storage_path(self, directory, storage_name):
        return directory / storage_name

    def open_writer(self, directory, storage_name, stub_version, module_type_id):
        raise NotImplementedError

    def merge(self, sources, target_dir, storage_name, empty_test_data, stub_version):
        raise NotImplementedError


class NotABackend:
    pass


# ===========================================================================
# BackendRegistry
# ===========================================================================


class TestBackendRegistry:
    def _registry(self) -> BackendRegistry:
        return BackendRegistry(group="sdk_stubs.test-backends")

    def test_register_decorator_returns_class(self) -> None:
        registry = self._registry()
        decorated = registry.register("dummy")(DummyBackend)
        assert decorated is DummyBackend
        assert "dummy" in registry
        assert len(registry) == 1

    def test_create_instantiates(self) -> None:
        registry = self._registry()
        registry.register_class("dummy", DummyBackend)
        assert isinstance(registry.create("dummy"), DummyBackend)

    def test_duplicate_name_rejected(self) -> None:
        registry = self._registry()
        registry.register_class("dummy", DummyBackend)
        with pytest.raises(ValueError, match="already registered"):
            registry.register_class("dummy", DummyBackend)

    def test_non_backend_rejected(self) -> None:
        with pytest.raises(TypeError):
            self._registry().register_class("bad", NotABackend)  # type: ignore[arg-type]

    def test_unknown_name(self) -> None:
        registry = self._registry()
        registry.register_class("dummy", DummyBackend)
        with pytest.raises(BackendNotFoundError) as info:
            registry.get("missing")
        assert info.value.backend_name == "missing"
        assert info.value.available == ["dummy"]

    def test_unknown_name_is_key_error(self) -> None:
        with pytest.raises(KeyError):
            self._registry().get("missing")

    def test_deregister(self) -> None:
        registry = self._registry()
        registry.register_class("dummy", DummyBackend)
        registry.deregister("dummy")
        assert "dummy" not in registry
        with pytest.raises(BackendNotFoundError):
            registry.deregister("dummy")

    def test_entrypoints_loaded_once(self) -> None:
        registry = self._registry()
        ep = MagicMock()
        ep.name = "from-ep"
        ep.load.return_value = DummyBackend
        with patch.object(importlib.metadata, "entry_points", return_value=[ep]) as entry_points:
            assert registry.get("from-ep") is DummyBackend
            registry.load_entrypoints()
        entry_points.assert_called_once_with(group="sdk_stubs.test-backends")

    def test_failing_entrypoint_is_skipped(self, caplog: pytest.LogCaptureFixture) -> None:
        registry = self._registry()
        ep = MagicMock()
        ep.name = "broken"
        ep.load.side_effect = ImportError("no module")
        with patch.object(importlib.metadata, "entry_points", return_value=[ep]):
            with caplog.at_level(logging.ERROR, logger="sdkstubs.storage.registry"):
                registry.load_entrypoints()
        assert "broken" not in registry
        assert "broken" in caplog.text

    def test_invalid_entrypoint_class_is_skipped(self, caplog: pytest.LogCaptureFixture) -> None:
        registry = self._registry()
        ep = MagicMock()
        ep.name = "invalid"
        ep.load.return_value = NotABackend
        with patch.object(importlib.metadata, "entry_points", return_value=[ep]):
            with caplog.at_level(logging.WARNING, logger="sdkstubs.storage.registry"):
                registry.load_entrypoints()
        assert "invalid" not in registry
        assert "could not be registered" in caplog.text

    def test_manifest_is_registered_globally(self) -> None:
        assert backend_registry.get("manifest") is ManifestBackend
        assert isinstance(get_backend("manifest"), ManifestBackend)


# ===========================================================================
# ManifestBackend
# ===========================================================================


class TestManifestWriter:
    def test_close_writes_storage_and_version(self, tmp_path: Path) -> None:
        path = _write_storage(tmp_path, {"os.py": b"import sys\n"})
        assert path == tmp_path / "sdk-stubs.json"
        document = load_manifest(path)
        assert document["stub_version"] == "1"
        assert len(document["entries"]) == 1
        assert version_file(tmp_path, "sdk-stubs").read_text(encoding="utf-8") == "1\n"

    def test_identical_content_shares_one_entry(self, tmp_path: Path) -> None:
        path = _write_storage(tmp_path, {"a.py": b"same", "b.py": b"same"})
        (entry,) = load_manifest(path)["entries"].values()
        assert entry["path"] == "a.py"

    def test_levels_are_collected_in_order(self, tmp_path: Path) -> None:
        path = _write_storage(
            tmp_path,
            {"a.py": b"x"},
            levels=(LanguageLevel.PYTHON313, LanguageLevel.PYTHON27, LanguageLevel.PYTHON39),
        )
        (entry,) = load_manifest(path)["entries"].values()
        assert entry["levels"] == ["2.7", "3.9", "3.13"]

    def test_exception_discards_storage(self, tmp_path: Path) -> None:
        backend = ManifestBackend()
        with pytest.raises(RuntimeError):
            with backend.open_writer(tmp_path, "sdk-stubs", "1", "PYTHON_MODULE") as writer:
                writer.add("a.py", b"x", _context())
                raise RuntimeError("interrupted")
        assert not (tmp_path / "sdk-stubs.json").exists()
        assert read_version(tmp_path, "sdk-stubs") is None

    def test_add_after_close_fails(self, tmp_path: Path) -> None:
        writer = ManifestBackend().open_writer(tmp_path, "sdk-stubs", "1", "PYTHON_MODULE")
        writer.close()
        with pytest.raises(StorageError):
            writer.add("a.py", b"x", _context())

    def test_load_manifest_rejects_foreign_json(self, tmp_path: Path) -> None:
        path = tmp_path / "other.json"
        path.write_text(json.dumps({"hello": "world"}), encoding="utf-8")
        with pytest.raises(StorageError):
            load_manifest(path)

    def test_load_manifest_rejects_corrupt_file(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.json"
        path.write_text("{", encoding="utf-8")
        with pytest.raises(StorageError, match="Corrupt"):
            load_manifest(path)

    @pytest.mark.parametrize(
        "entries",
        [None, {"abc": {"levels": ["3.12"]}}, {"abc": {"path": "a.py"}}, {"abc": "a.py"}],
    )
    def test_load_manifest_rejects_malformed_entries(self, tmp_path: Path, entries) -> None:
        document = {"format": "sdk-stubs-manifest", "stub_version": "1"}
        if entries is not None:
            document["entries"] = entries
        path = tmp_path / "sdk-stubs.json"
        path.write_text(json.dumps(document), encoding="utf-8")
        with pytest.raises(StorageError, match="Corrupt"):
            load_manifest(path)

    def test_stub_version_is_stable(self) -> None:
        assert ManifestBackend().stub_version == ManifestBackend().stub_version == "1"


# ===========================================================================
# merge_stubs
# ===========================================================================


class TestMergeStubs:
    def test_merge_unions_entries_and_levels(self, tmp_path: Path) -> None:
        first = tmp_path / "py311"
        second = tmp_path / "py312"
        _write_storage(first, {"os.py": b"shared", "old.py": b"only-311"}, levels=(LanguageLevel.PYTHON311,))
        _write_storage(second, {"os.py": b"shared", "new.py": b"only-312"}, levels=(LanguageLevel.PYTHON312,))
        out = tmp_path / "out"
        out.mkdir()

        merged = merge_stubs([str(first), str(second)], out, "sdk-stubs", None, "1")

        assert merged == out / "sdk-stubs.json"
        entries = load_manifest(merged)["entries"]
        assert len(entries) == 3
        by_path = {entry["path"]: entry["levels"] for entry in entries.values()}
        assert by_path == {"os.py": ["3.11", "3.12"], "old.py": ["3.11"], "new.py": ["3.12"]}
        assert read_version(out, "sdk-stubs") == "1"

    def test_missing_source(self, tmp_path: Path) -> None:
        with pytest.raises(StorageNotFoundError):
            merge_stubs([str(tmp_path / "missing")], tmp_path, "sdk-stubs", None, "1")

    def test_version_mismatch(self, tmp_path: Path) -> None:
        source = tmp_path / "src"
        _write_storage(source, {"a.py": b"x"})
        version_file(source, "sdk-stubs").write_text("0\n", encoding="utf-8")
        with pytest.raises(StubVersionMismatchError) as info:
            merge_stubs([source], tmp_path, "sdk-stubs", None, "1")
        assert info.value.found == "0"
        assert info.value.expected == "1"

    def test_missing_version_file(self, tmp_path: Path) -> None:
        source = tmp_path / "src"
        _write_storage(source, {"a.py": b"x"})
        version_file(source, "sdk-stubs").unlink()
        with pytest.raises(StubVersionMismatchError):
            merge_stubs([source], tmp_path, "sdk-stubs", None, "1")

    def test_malformed_source_is_storage_error(self, tmp_path: Path) -> None:
        source = tmp_path / "src"
        storage = _write_storage(source, {"a.py": b"x"})
        document = json.loads(storage.read_text(encoding="utf-8"))
        for entry in document["entries"].values():
            del entry["levels"]
        storage.write_text(json.dumps(document), encoding="utf-8")
        with pytest.raises(StorageError, match="malformed entry"):
            merge_stubs([source], tmp_path / "out", "sdk-stubs", None, "1")

    def test_empty_test_data_must_exist(self, tmp_path: Path) -> None:
        source = tmp_path / "src"
        _write_storage(source, {"a.py": b"x"})
        with pytest.raises(StorageError, match="Empty test data"):
            merge_stubs([source], tmp_path / "out", "sdk-stubs", tmp_path / "missing", "1")

    def test_empty_test_data_passes_when_unrelated(self, tmp_path: Path) -> None:
        source = tmp_path / "src"
        _write_storage(source, {"a.py": b"x"})
        empty = tmp_path / "empty"
        empty.mkdir()
        (empty / "main.py").write_text("print('hi')\n", encoding="utf-8")
        merged = merge_stubs([source], tmp_path / "out", "sdk-stubs", empty, "1")
        assert merged.exists()

    def test_empty_test_data_overlap_detected(self, tmp_path: Path) -> None:
        source = tmp_path / "src"
        _write_storage(source, {"a.py": b"x"})
        project = tmp_path / "project"
        project.mkdir()
        (project / "a.py").write_bytes(b"x")
        with pytest.raises(StorageError, match="unexpectedly indexes"):
            merge_stubs([source], tmp_path / "out", "sdk-stubs", project, "1")

    def test_backend_instance_is_used_directly(self, tmp_path: Path) -> None:
        backend = MagicMock(spec=StubStorageBackend)
        backend.merge.return_value = tmp_path / "merged"
        result = merge_stubs(("b", "a"), tmp_path, "name", None, "9", backend=backend)
        assert result == tmp_path / "merged"
        backend.merge.assert_called_once_with(["b", "a"], tmp_path, "name", None, "9")
