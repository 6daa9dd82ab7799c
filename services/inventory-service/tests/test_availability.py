from __future__ import annotations

from app.domain.availability import compute_availability, compute_stats
from app.domain.catalog import Service, get_catalog

from conftest import make_account

NETFLIX_ONLY = (Service("netflix", "Netflix", 150),)


def test_full_account_reports_no_availability():
    inventory = {"netflix": [make_account(current_users=5, max_users=5)]}
    [summary] = compute_availability(inventory, NETFLIX_ONLY)
    assert summary.available is False
    assert summary.available_accounts == 0
    assert summary.available_slots == 0
    assert summary.total_slots == 5
    assert summary.price == 150


def test_slot_totals_across_accounts():
    inventory = {
        "netflix": [
            make_account(account_id="a", current_users=2, max_users=5),
            make_account(account_id="b", current_users=4, max_users=4),
            make_account(account_id="c", current_users=0, max_users=3),
        ]
    }
    [summary] = compute_availability(inventory, NETFLIX_ONLY)
    assert summary.total_accounts == 3
    assert summary.available_accounts == 2
    assert summary.used_slots == 6
    assert summary.total_slots == 12
    assert summary.available_slots == 6
    assert summary.available is True


def test_drifted_counters_never_produce_negative_slots():
    inventory = {"netflix": [make_account(current_users=9, max_users=5), make_account(account_id="x", current_users=-2)]}
    [summary] = compute_availability(inventory, NETFLIX_ONLY)
    assert summary.used_slots == 5
    assert summary.available_slots == 5
    assert summary.available_slots >= 0


def test_catalog_drives_availability_and_inventory_drives_stats():
    inventory = {"netflix": [make_account()], "legacy_service": [make_account("legacy_service")]}
    summaries = compute_availability(inventory, get_catalog())
    assert [summary.service_id for summary in summaries] == [service.service_id for service in get_catalog()]
    assert "legacy_service" not in {summary.service_id for summary in summaries}

    stats = compute_stats(inventory)
    assert stats.total_accounts == 2
    assert stats.services == 2
    assert stats.per_service["legacy_service"].count == 1


def test_services_without_accounts_are_listed_as_unavailable():
    summaries = {summary.service_id: summary for summary in compute_availability({}, get_catalog())}
    assert summaries["spotify"].total_accounts == 0
    assert summaries["spotify"].available is False


def test_availability_is_deterministic():
    inventory = {"netflix": [make_account(current_users=3)], "spotify": [make_account("spotify", current_users=5)]}
    assert compute_availability(inventory, get_catalog()) == compute_availability(inventory, get_catalog())
    assert compute_stats(inventory) == compute_stats(inventory)


def test_stats_count_available_accounts_per_service():
    inventory = {
        "netflix": [make_account(account_id="a", current_users=5), make_account(account_id="b", current_users=1)],
        "spotify": [],
    }
    stats = compute_stats(inventory)
    assert stats.per_service["netflix"].count == 2
    assert stats.per_service["netflix"].available == 1
    assert stats.per_service["spotify"].count == 0
