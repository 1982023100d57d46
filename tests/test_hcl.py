"""Tests for dockstage.hcl."""

from __future__ import annotations

from pathlib import Path

import pytest

from dockstage.hcl import DEFAULT_FILENAME, defaults_path, load, locate, scan
from dockstage.projects import ImageProject, Project
from dockstage.specop import Ensure
from dockstage.stages import CompileStage, PackageStage
from dockstage.workspace import Workspace


def _write_hcl(tmp_path: Path, subdir: str, filename: str, content: str) -> Path:
    d = tmp_path / subdir
    d.mkdir(parents=True, exist_ok=True)
    f = d / filename
    f.write_text(content)
    return f


class TestLoad:
    def test_load_single_file(self, tmp_path):
        f = _write_hcl(
            tmp_path,
            ".",
            "test.hcl",
            """
            blueprint "compile" {
                ensure "compile" {}
            }
        """,
        )
        result = load(f)
        assert result["blueprint"][0]["compile"]["ensure"] == [{"compile": {}}]

    def test_load_renders_template(self, tmp_path):
        f = _write_hcl(
            tmp_path,
            ".",
            "test.hcl",
            """
            project "p" {
                description = "{{ greeting }}"
            }
        """,
        )
        result = load(f, context={"greeting": "hello"})
        assert result["project"][0]["p"]["description"] == "hello"

    def test_load_undefined_template_variable(self, tmp_path):
        f = _write_hcl(tmp_path, ".", "test.hcl", 'project "p" { description = "{{ nope }}" }\n')
        with pytest.raises(ValueError, match="test.hcl"):
            load(f)

    def test_load_invalid_hcl(self, tmp_path):
        f = _write_hcl(tmp_path, ".", "test.hcl", 'project "p" {\n')
        with pytest.raises(ValueError, match="test.hcl"):
            load(f)

    def test_interpolation_left_for_resolver(self, tmp_path):
        f = _write_hcl(tmp_path, ".", "test.hcl", 'project "p" { source = "${CWD}" }\n')
        assert load(f)["project"][0]["p"]["source"] == "${CWD}"


class TestScan:
    def test_scan_returns_workspace(self, tmp_path):
        _write_hcl(tmp_path, ".", "test.hcl", 'project "dev-image" { description = "test" }\n')
        ws = scan(tmp_path)
        assert isinstance(ws, Workspace)
        assert "dev-image" in ws

    def test_default_project_type(self, tmp_path):
        _write_hcl(tmp_path, ".", "test.hcl", 'project "dev-image" {}\n')
        assert isinstance(scan(tmp_path)["dev-image"], ImageProject)

    def test_custom_project_type(self, tmp_path):
        _write_hcl(tmp_path, ".", "test.hcl", 'project "dev-image" {}\n')
        proj = scan(tmp_path, project_type=Project)["dev-image"]
        assert type(proj) is Project

    def test_scan_single_file(self, tmp_path):
        f = _write_hcl(tmp_path, ".", "build.hcl", 'project "dev-image" {}\n')
        _write_hcl(tmp_path, ".", "other.hcl", 'project "other" {}\n')
        ws = scan(f)
        assert list(ws) == ["dev-image"]

    def test_scan_recurse(self, tmp_path):
        _write_hcl(tmp_path, ".", "top.hcl", 'project "top" {}\n')
        _write_hcl(tmp_path, "sub", "nested.hcl", 'project "nested" {}\n')
        assert "nested" in scan(tmp_path, recurse=True)
        assert "nested" not in scan(tmp_path, recurse=False)

    def test_scan_missing_dir(self, tmp_path):
        assert len(scan(tmp_path / "nonexistent")) == 0

    def test_project_config_block(self, tmp_path):
        _write_hcl(
            tmp_path,
            ".",
            "test.hcl",
            """
            blueprint "compile" {
                ensure "compile" {
                    args = ["--locked"]
                }
            }
            project "dev-image" {
                source = "/srv/advices"
                config = {
                    image         = "advices"
                    artifact_name = "advices"
                }
                use = ["compile"]
            }
        """,
        )
        proj = scan(tmp_path)["dev-image"]
        assert proj.source == Path("/srv/advices")
        assert proj.config.builder_tag == "advices:builder"
        op = proj.blueprints[0].ops[0]
        assert isinstance(op, Ensure)
        assert isinstance(op.spec, CompileStage)
        assert op.spec.args == ["--locked"]


class TestDefaults:
    def test_defaults_file_shipped(self):
        assert defaults_path().is_file()

    def test_both_targets_exposed(self):
        ws = scan(defaults_path())
        assert sorted(ws) == ["dev-image", "minimal-image"]

    def test_dev_image_compiles_only(self):
        proj = scan(defaults_path())["dev-image"]
        specs = [op.spec for bp in proj.blueprints for op in bp]
        assert [type(s) for s in specs] == [CompileStage]

    def test_minimal_image_compiles_then_packages(self):
        proj = scan(defaults_path())["minimal-image"]
        specs = [op.spec for bp in proj.blueprints for op in bp]
        assert [type(s) for s in specs] == [CompileStage, PackageStage]

    def test_source_defaults_to_cwd(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        proj = scan(defaults_path())["dev-image"]
        assert proj.source == tmp_path


class TestLocate:
    def test_explicit(self, tmp_path):
        assert locate(tmp_path / "x.hcl") == tmp_path / "x.hcl"

    def test_local_file(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / DEFAULT_FILENAME).write_text("")
        assert locate() == tmp_path / DEFAULT_FILENAME

    def test_falls_back_to_defaults(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert locate() == defaults_path()
