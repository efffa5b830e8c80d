import io

import pytest
from botocore.exceptions import ClientError
from rich.console import Console

import dynamo_jobs.app.cli.main as cli
from conftest import make_job, minutes
from dynamo_jobs.configs import loader
from dynamo_jobs.core.models.job_models import JobStatus


@pytest.fixture(autouse=True)
def _isolated(monkeypatch, tmp_path):
    monkeypatch.delenv(loader.CONFIG_ENV_VAR, raising=False)
    monkeypatch.setattr(loader, "CONFIG_FILE", tmp_path / "absent.yaml")
    out = io.StringIO()
    monkeypatch.setattr(cli, "console", Console(file=out, width=200, color_system=None))
    return out


def _output(_isolated):
    return _isolated.getvalue()


def test_count_prints_size(repo, _isolated):
    repo.create_or_update(make_job("job-1"))
    repo.create_or_update(make_job("job-2"))

    assert cli.main(["count"], repo=repo) == 0
    assert _output(_isolated).strip() == "2"


def test_list_by_type_shows_latest(repo, _isolated):
    repo.create_or_update(make_job("x1", job_type="X", started=minutes(1)))
    repo.create_or_update(make_job("x2", job_type="X", started=minutes(2)))
    repo.create_or_update(make_job("y1", job_type="Y", started=minutes(3)))

    assert cli.main(["list", "--type", "X", "--limit", "1"], repo=repo) == 0

    out = _output(_isolated)
    assert "x2" in out
    assert "x1" not in out
    assert "y1" not in out


def test_stale_lists_running_jobs_only(repo, _isolated):
    repo.create_or_update(make_job("hung", last_updated=minutes(0)))
    repo.create_or_update(make_job("done", last_updated=minutes(0), stopped=minutes(1), status=JobStatus.OK))

    assert cli.main(["stale", "--minutes", "5"], repo=repo) == 0

    out = _output(_isolated)
    assert "hung" in out
    assert "done" not in out


def test_prune_removes_stopped_jobs(repo, _isolated):
    repo.create_or_update(make_job("done", stopped=minutes(1), status=JobStatus.OK))
    repo.create_or_update(make_job("running"))

    assert cli.main(["prune", "done", "running", "ghost"], repo=repo) == 0

    assert repo.find_one("done") is None
    assert repo.find_one("running") is not None
    lines = _output(_isolated).splitlines()
    assert lines[0] == "✓ done removed"
    assert lines[1].startswith("- running kept")
    assert lines[2].startswith("- ghost kept")


def test_list_rejects_negative_limit(repo):
    with pytest.raises(SystemExit):
        cli.main(["list", "--limit", "-1"], repo=repo)


def test_store_errors_exit_non_zero(_isolated):
    class _FailingRepo:
        def size(self):
            raise ClientError(
                {"Error": {"Code": "ResourceNotFoundException", "Message": "no table"}}, "Scan"
            )

    assert cli.main(["--table", "scheduler-jobs", "count"], repo=_FailingRepo()) == 1
    assert "scheduler-jobs" in _output(_isolated)


def test_invalid_config_exits_with_two(tmp_path, _isolated):
    path = tmp_path / "config.yaml"
    path.write_text("page_size: 0\n", encoding="utf-8")

    assert cli.main(["--config", str(path), "count"], repo=object()) == 2
    assert "page_size" in _output(_isolated)


def test_command_is_required():
    with pytest.raises(SystemExit):
        cli.main([])
