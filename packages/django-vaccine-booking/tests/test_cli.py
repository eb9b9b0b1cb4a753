"""Tests for vaccinectl CLI commands."""

from datetime import timedelta

import pytest
from click.testing import CliRunner
from rich.console import Console

from django_vaccine_booking.models import ClinicDay, MemberStatus, PoolStatus
from django_vaccine_booking.services import (
    book_slot,
    get_active_pool,
    get_pool_members,
    join_pool,
    update_pool_member_status,
)
from django_vaccine_booking.terminal_ui import cli as cli_module
from django_vaccine_booking.terminal_ui.cli import cli
from django_vaccine_booking.terminal_ui.formatters import short_uuid


@pytest.fixture
def runner(monkeypatch):
    """CliRunner with a wide console so tables are not truncated."""
    monkeypatch.setattr(cli_module, "console", Console(width=200))
    return CliRunner()


class TestCliCommandGroup:
    """Tests for the Click CLI command groups."""

    def test_cli_has_list_command(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["list", "--help"])

        assert result.exit_code == 0
        assert "clinic-days" in result.output

    def test_list_pools_has_status_filter(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["list", "pools", "--help"])

        assert result.exit_code == 0
        assert "--status" in result.output

    def test_pool_group_commands(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["pool", "--help"])

        assert result.exit_code == 0
        for command in ("open", "full", "complete"):
            assert command in result.output

    def test_sweep_has_dry_run(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["sweep", "--help"])

        assert result.exit_code == 0
        assert "--dry-run" in result.output


@pytest.mark.django_db
class TestListCommands:
    """Tests for list and show commands against data."""

    def test_list_vaccines(self, runner, prefilled, vial):
        result = runner.invoke(cli, ["list", "vaccines"])

        assert result.exit_code == 0
        assert "Flu Standard Dose" in result.output
        assert "Moderna COVID-19 (Vial)" in result.output

    def test_list_vaccines_hides_inactive(self, runner, prefilled):
        prefilled.is_active = False
        prefilled.save()

        assert "Flu Standard Dose" not in runner.invoke(cli, ["list", "vaccines"]).output
        assert "Flu Standard Dose" in runner.invoke(cli, ["list", "vaccines", "--all"]).output

    def test_list_clinic_days(self, runner, clinic_day, prefilled):
        result = runner.invoke(cli, ["list", "clinic-days", "--vaccine", short_uuid(prefilled.pk)])

        assert result.exit_code == 0
        assert clinic_day.clinic_date.isoformat() in result.output
        assert "09:00-12:00" in result.output

    def test_list_bookings(self, runner, prefilled, clinic_day, patient):
        book_slot(prefilled, clinic_day, patient)

        result = runner.invoke(cli, ["list", "bookings", "--status", "confirmed"])

        assert result.exit_code == 0
        assert "Jane Doe" in result.output

    def test_list_waitlist(self, runner, prefilled, patient):
        from django_vaccine_booking.services import add_to_waitlist

        add_to_waitlist(prefilled, patient)

        result = runner.invoke(cli, ["list", "waitlist"])

        assert result.exit_code == 0
        assert "Jane Doe" in result.output

    def test_list_pools(self, runner, vial, patient):
        join_pool(vial, patient)

        result = runner.invoke(cli, ["list", "pools", "--status", "filling"])

        assert result.exit_code == 0
        assert "filling" in result.output

    def test_show_pool(self, runner, open_pool):
        result = runner.invoke(cli, ["show", "pool", short_uuid(open_pool.pk)])

        assert result.exit_code == 0
        assert "Patient 0" in result.output
        assert "open" in result.output

    def test_show_unknown_pool(self, runner, db):
        result = runner.invoke(cli, ["show", "pool", "deadbeef"])

        assert result.exit_code == 1
        assert "not found" in result.output

    def test_dashboard(self, runner, prefilled):
        result = runner.invoke(cli, ["dashboard"])

        assert result.exit_code == 0
        assert "Doses in stock" in result.output


@pytest.mark.django_db
class TestPoolCommands:
    """Tests for pool transition commands."""

    def test_open_pool(self, runner, vial, vial_day, patient):
        join_pool(vial, patient)
        pool = get_active_pool(vial)

        result = runner.invoke(
            cli, ["pool", "open", str(pool.pk), "--date", vial_day.clinic_date.isoformat()]
        )

        assert result.exit_code == 0
        pool.refresh_from_db()
        assert pool.status == PoolStatus.OPEN
        assert pool.clinic_day == vial_day

    def test_invalid_transition_exits_nonzero(self, runner, vial, patient):
        join_pool(vial, patient)
        pool = get_active_pool(vial)

        result = runner.invoke(cli, ["pool", "full", str(pool.pk)])

        assert result.exit_code == 1
        assert "Cannot move pool" in result.output
        pool.refresh_from_db()
        assert pool.status == PoolStatus.FILLING

    def test_full_then_complete(self, runner, open_pool):
        assert runner.invoke(cli, ["pool", "full", str(open_pool.pk)]).exit_code == 0
        assert runner.invoke(cli, ["pool", "complete", str(open_pool.pk)]).exit_code == 0

        open_pool.refresh_from_db()
        assert open_pool.status == PoolStatus.COMPLETED


@pytest.mark.django_db
class TestOperatorCommands:
    """Tests for sweep, seed and verify."""

    def test_sweep_dry_run_changes_nothing(self, runner, open_pool):
        from freezegun import freeze_time

        with freeze_time(open_pool.confirmation_deadline + timedelta(hours=1)):
            result = runner.invoke(cli, ["sweep", "--dry-run"])

        assert result.exit_code == 0
        assert "3 member(s) would be marked" in result.output
        assert all(m.status == MemberStatus.PENDING for m in get_pool_members(open_pool))

    def test_sweep(self, runner, open_pool):
        from freezegun import freeze_time

        update_pool_member_status(get_pool_members(open_pool)[0], MemberStatus.CONFIRMED)
        with freeze_time(open_pool.confirmation_deadline + timedelta(hours=1)):
            result = runner.invoke(cli, ["sweep"])

        assert result.exit_code == 0
        assert "Marked 2 member(s)" in result.output

    def test_seed_is_idempotent(self, runner, db):
        first = runner.invoke(cli, ["seed"])
        second = runner.invoke(cli, ["seed"])

        assert first.exit_code == 0
        assert "Created 5 vaccines" in first.output
        assert "Already initialized" in second.output

    def test_verify_passes_on_consistent_data(self, runner, prefilled, clinic_day, patient):
        book_slot(prefilled, clinic_day, patient)

        result = runner.invoke(cli, ["verify"])

        assert result.exit_code == 0
        assert "checks passed" in result.output

    def test_verify_reports_drift(self, runner, prefilled, clinic_day, patient):
        book_slot(prefilled, clinic_day, patient)
        ClinicDay.objects.filter(pk=clinic_day.pk).update(booked_doses=3)

        result = runner.invoke(cli, ["verify"])

        assert result.exit_code == 1
        assert "FAIL" in result.output
        assert "matches bookings" in result.output
