"""Unit tests for the ``flask tokens`` command group."""

from __future__ import annotations

from authcore.api.deps import get_services


def test_sweep_prints_summary(app):
    result = app.test_cli_runner().invoke(args=["tokens", "sweep"])

    assert result.exit_code == 0, result.output
    assert "Sweep summary:" in result.output
    for task in ("revocations", "sessions", "single_use_markers"):
        assert task in result.output


def test_revoke_user_revokes_all_sessions(app, subject):
    with app.app_context():
        sessions = get_services().sessions
        sessions.issue_pair(subject)
        sessions.issue_pair(subject)

    result = app.test_cli_runner().invoke(args=["tokens", "revoke-user", subject.id, "--reason", "compromised"])

    assert result.exit_code == 0, result.output
    assert f"Revoked 2 session(s) for user {subject.id}." in result.output
    with app.app_context():
        assert get_services().sessions.list_active_sessions(subject.id) == []


def test_stats_prints_counts(app, subject):
    with app.app_context():
        get_services().sessions.issue_pair(subject)

    result = app.test_cli_runner().invoke(args=["tokens", "stats"])

    assert result.exit_code == 0, result.output
    assert "Token stats:" in result.output
    for name in ("active_sessions", "pending_single_use_tokens", "revoked_tokens"):
        assert name in result.output
    assert result.output.splitlines()[1].split() == ["active_sessions", "1"]
