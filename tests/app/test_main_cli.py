from __future__ import annotations

import pytest

from cleanup_profiles.config import CleanupConfig
from cleanup_profiles.domain.email_cleanup import EmailCleanupResult
from cleanup_profiles.domain.merging import ProfileCleanupResult
from cleanup_profiles.ui import cli as cli_module


class JobRecorder:
    def __init__(self, failing: str | None = None) -> None:
        self.failing = failing
        self.runs: list[tuple[str, CleanupConfig]] = []

    def profiles(self, *, config: CleanupConfig) -> ProfileCleanupResult:
        self.runs.append(("profiles", config))
        result = ProfileCleanupResult()
        if self.failing == "profiles":
            result.errors.append(RuntimeError("merge failed"))
        return result

    def emails(self, *, config: CleanupConfig) -> EmailCleanupResult:
        self.runs.append(("emails", config))
        if self.failing == "emails":
            raise RuntimeError("database went away")
        return EmailCleanupResult()

    @property
    def jobs(self) -> list[str]:
        return [job for job, _ in self.runs]


@pytest.fixture
def recorder(clean_env: pytest.MonkeyPatch) -> JobRecorder:
    clean_env.setenv("DB_ENDPOINT", "sh:secret@tcp(db.example:3306)/sortinghat")
    clean_env.setenv("API_URL", "https://api.example.test")
    clean_env.setenv("JWT_TOKEN", "jwt")
    recorder = JobRecorder()
    clean_env.setattr(cli_module, "run_profile_cleanup", recorder.profiles)
    clean_env.setattr(cli_module, "run_email_cleanup", recorder.emails)
    return recorder


def test_main_runs_requested_job(recorder: JobRecorder) -> None:
    cli_module.main(["profiles"])

    assert recorder.jobs == ["profiles"]


def test_main_all_runs_profiles_then_emails(recorder: JobRecorder) -> None:
    cli_module.main(["all"])

    assert recorder.jobs == ["profiles", "emails"]


def test_main_selects_jobs_from_environment(
    recorder: JobRecorder, clean_env: pytest.MonkeyPatch
) -> None:
    clean_env.setenv("CLEANUP_EMAILS", "1")

    cli_module.main([])

    assert recorder.jobs == ["emails"]


def test_main_without_jobs_does_nothing(recorder: JobRecorder) -> None:
    cli_module.main([])

    assert recorder.runs == []


def test_main_flags_override_environment(
    recorder: JobRecorder, clean_env: pytest.MonkeyPatch
) -> None:
    clean_env.setenv("N_CPUS", "1")

    cli_module.main(["emails", "--threads", "1", "--delete-orphaned", "--skip-validate-domain"])

    _, config = recorder.runs[0]
    assert config.threads == 1
    assert config.delete_orphaned
    assert not config.validate_domain


def test_main_rejects_negative_threads(recorder: JobRecorder) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["profiles", "--threads", "-1"])

    assert excinfo.value.code == 2
    assert recorder.runs == []


def test_main_rejects_invalid_configuration(
    recorder: JobRecorder, clean_env: pytest.MonkeyPatch
) -> None:
    clean_env.setenv("DUPLICATE_KEY_POLICY", "newest")

    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["profiles"])

    assert excinfo.value.code == 2
    assert recorder.runs == []


def test_main_rejects_unknown_job(recorder: JobRecorder) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["everything"])

    assert excinfo.value.code == 2


@pytest.mark.parametrize("failing", ["profiles", "emails"])
def test_main_exits_nonzero_after_running_every_job(
    recorder: JobRecorder, failing: str
) -> None:
    recorder.failing = failing

    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["all"])

    assert excinfo.value.code == 1
    assert recorder.jobs == ["profiles", "emails"]


@pytest.mark.parametrize(
    ("job", "unset"),
    [
        ("profiles", "API_URL"),
        ("all", "DB_ENDPOINT"),
        ("emails", "DB_ENDPOINT"),
    ],
)
def test_main_rejects_missing_job_settings_before_running(
    recorder: JobRecorder, clean_env: pytest.MonkeyPatch, job: str, unset: str
) -> None:
    clean_env.delenv(unset)

    with pytest.raises(SystemExit) as excinfo:
        cli_module.main([job])

    assert excinfo.value.code == 2
    assert recorder.runs == []


def test_main_rejects_missing_api_credentials(
    recorder: JobRecorder, clean_env: pytest.MonkeyPatch
) -> None:
    clean_env.delenv("JWT_TOKEN")

    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["profiles"])

    assert excinfo.value.code == 2


def test_main_rejects_undecodable_auth0_data(
    recorder: JobRecorder, clean_env: pytest.MonkeyPatch
) -> None:
    clean_env.delenv("JWT_TOKEN")
    clean_env.setenv("AUTH0_DATA", "not base64!")

    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["profiles"])

    assert excinfo.value.code == 2
    assert recorder.runs == []


def test_email_job_does_not_need_api_settings(
    recorder: JobRecorder, clean_env: pytest.MonkeyPatch
) -> None:
    clean_env.delenv("API_URL")
    clean_env.delenv("JWT_TOKEN")

    cli_module.main(["emails"])

    assert recorder.jobs == ["emails"]
