"""
Optional steps (dependencies, git hooks, indexing, dashboard) run in isolation
against an already-fetched component tree.
"""

from __future__ import annotations

import shutil
from pathlib import Path

import httpx
import pytest

from autonomy_installer.errors import NonFatalWarning
from autonomy_installer.ledger import AuxServiceStarted, HooksInstalled, IndexCreated
from autonomy_installer.lib import service
from autonomy_installer.pipeline import InstallContext, run_pipeline
from autonomy_installer.steps import AuxServiceStep, InitialIndexStep, InstallDependenciesStep, InstallGitHooksStep

from conftest import make_plan


def _context(target: Path, **overrides) -> InstallContext:
    ctx = InstallContext.for_plan(make_plan(target, **overrides))
    ctx.detect_layout()
    return ctx


class TestDisabled:
    @pytest.mark.parametrize(
        "step",
        [InstallDependenciesStep(), InstallGitHooksStep(), InitialIndexStep(), AuxServiceStep()],
        ids=lambda s: s.step_id,
    )
    def test_disabled_step_is_a_no_op(self, installed_tree: Path, step):
        before = sorted(installed_tree.rglob("*"))
        ctx = _context(installed_tree)
        step.run(ctx)
        assert len(ctx.ledger) == 0
        assert sorted(installed_tree.rglob("*")) == before


class TestGitHooks:
    def test_new_hooks_are_recorded(self, installed_tree: Path):
        if shutil.which("bash") is None:
            pytest.skip("bash not installed")
        (installed_tree / ".git" / "hooks").mkdir(parents=True)
        (installed_tree / ".git" / "hooks" / "pre-push.sample").write_text("#!/bin/sh\n")
        script = installed_tree / ".autonomous-system" / "scripts" / "install-rag-hooks.sh"
        script.parent.mkdir()
        script.write_text("printf '#!/bin/sh\\n' > .git/hooks/post-commit\n")
        ctx = _context(installed_tree, install_git_hooks=True)

        InstallGitHooksStep().run(ctx)

        assert ctx.ledger.entries == (HooksInstalled(paths=(installed_tree / ".git" / "hooks" / "post-commit",)),)

    def test_missing_installer_is_a_warning(self, installed_tree: Path):
        ctx = _context(installed_tree, install_git_hooks=True)
        with pytest.raises(NonFatalWarning, match="installer not found"):
            InstallGitHooksStep().run(ctx)


class TestInitialIndex:
    def test_index_output_is_recorded(self, installed_tree: Path):
        entry = installed_tree / ".autonomous-system" / "rag" / "index_codebase.py"
        entry.parent.mkdir()
        entry.write_text("from pathlib import Path\nPath('.rag-index').mkdir()\n")
        ctx = _context(installed_tree, run_initial_index=True)

        InitialIndexStep().run(ctx)

        assert (installed_tree / ".rag-index").is_dir()
        assert ctx.ledger.entries == (IndexCreated(path=installed_tree / ".rag-index"),)

    def test_failing_indexer_does_not_stop_the_pipeline(self, installed_tree: Path):
        entry = installed_tree / ".autonomous-system" / "rag" / "index_codebase.py"
        entry.parent.mkdir()
        entry.write_text("raise SystemExit(3)\n")
        ctx = _context(installed_tree, run_initial_index=True)

        result = run_pipeline(ctx, [InitialIndexStep()])

        assert result.ran_steps == ["80_initial_index"]
        assert any("Initial indexing failed (3)" in w for w in result.warnings)


class TestAuxService:
    @pytest.fixture
    def spawned(self, monkeypatch):
        calls = []
        monkeypatch.setattr("autonomy_installer.steps.step_90_aux_service.npm_install", lambda *a, **kw: None)

        def _start(argv, *, cwd, log_path, env=None):
            calls.append((list(argv), cwd, env))
            return 4242

        monkeypatch.setattr(service, "start_background", _start)
        monkeypatch.setattr(service, "probe", lambda url: False)
        return calls

    def test_running_service_is_not_started_again(self, installed_tree: Path, spawned, monkeypatch):
        monkeypatch.setattr(service, "probe", lambda url: True)
        ctx = _context(installed_tree, provision_service=True)

        AuxServiceStep().run(ctx)

        assert spawned == []
        assert not any(isinstance(e, AuxServiceStarted) for e in ctx.ledger.entries)

    def test_started_service_is_recorded(self, installed_tree: Path, spawned, monkeypatch):
        monkeypatch.setattr(service, "wait_until_ready", lambda url: True)
        ctx = _context(installed_tree, provision_service=True, service_port=3100)

        AuxServiceStep().run(ctx)

        project = installed_tree / ".autonomous-dashboard"
        assert (project / "package.json").is_file()
        assert spawned == [(["npm", "start"], project, {"PORT": "3100"})]
        assert ctx.ledger.entries[-1] == AuxServiceStarted(pid=4242, path=project)

    def test_not_ready_is_a_warning_and_still_recorded(self, installed_tree: Path, spawned, monkeypatch):
        monkeypatch.setattr(service, "wait_until_ready", lambda url: False)
        ctx = _context(installed_tree, provision_service=True)

        with pytest.raises(NonFatalWarning, match="did not answer"):
            AuxServiceStep().run(ctx)

        assert isinstance(ctx.ledger.entries[-1], AuxServiceStarted)

    def test_no_start_only_materializes(self, installed_tree: Path, spawned):
        ctx = _context(installed_tree, provision_service=True, start_service=False)
        AuxServiceStep().run(ctx)
        assert spawned == []
        assert (installed_tree / ".autonomous-dashboard" / "package.json").is_file()


class TestReadiness:
    def _responses(self, monkeypatch, *outcomes):
        seen = []
        pending = list(outcomes)

        def _get(url, timeout):
            seen.append(url)
            outcome = pending.pop(0)
            if isinstance(outcome, Exception):
                raise outcome
            return httpx.Response(outcome)

        monkeypatch.setattr(httpx, "get", _get)
        return seen

    def test_ready_after_connection_refused(self, monkeypatch):
        seen = self._responses(monkeypatch, httpx.ConnectError("refused"), 200)
        sleeps = []
        assert service.wait_until_ready("http://localhost:3000/", sleep=sleeps.append)
        assert len(seen) == 2
        assert sleeps == [service.READY_INTERVAL_S]

    def test_server_errors_are_not_ready(self, monkeypatch):
        self._responses(monkeypatch, 503, 503, 503)
        sleeps = []
        assert not service.wait_until_ready("http://localhost:3000/", attempts=3, interval_s=0.5, sleep=sleeps.append)
        # No sleep after the final attempt.
        assert sleeps == [0.5, 0.5]

    def test_client_error_still_counts_as_up(self, monkeypatch):
        self._responses(monkeypatch, 404)
        assert service.probe("http://localhost:3000/missing")
