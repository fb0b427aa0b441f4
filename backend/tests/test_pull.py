from datetime import timedelta

from sqlalchemy import select

from aquapack.config import settings
from aquapack.models.enums import SyncAction
from aquapack.models.hydro import Site
from aquapack.models.sync import SyncLog
from aquapack.schemas.sync import SyncPullRequest, SyncPushRequest
from aquapack.services.entities import SiteHandler
from aquapack.services.sync import SyncService

from tests.conftest import T0, iso, pump_test_data, site_data

LAG = timedelta(seconds=settings.SYNC_PULL_LAG_SECONDS)


def pull_request(**fields) -> SyncPullRequest:
    return SyncPullRequest.model_validate(fields)


async def add_foreign_site(db, seed, clock) -> Site:
    handler = SiteHandler(db)
    site = await handler.create(
        handler.parse_create(site_data(seed.other_project.id, code="TU-01")),
        device_id="D9",
        local_id="s-9",
        created_by=seed.outsider.id,
        now=clock.now(),
    )
    await db.commit()
    return site


async def test_first_pull_returns_everything_in_assigned_projects(db, seed, clock, stored_site):
    await add_foreign_site(db, seed, clock)
    clock.advance(minutes=1)
    db.expunge_all()

    result = await SyncService(db, clock).pull(pull_request(deviceId="D1"), seed.caller)

    assert result.timestamp == T0 + timedelta(minutes=1) - LAG
    assert [s["id"] for s in result.sites] == [str(stored_site.id)]
    assert result.sites[0]["syncStatus"] == "SYNCED"
    assert result.sites[0]["project"] == {
        "id": str(seed.project.id),
        "name": "Naivasha Basin",
        "code": "NAI-01",
    }
    assert result.boreholes == []
    assert result.water_levels == []
    assert result.pump_tests == []
    assert result.water_quality == []


async def test_repull_with_returned_timestamp_is_empty(db, seed, clock, stored_site):
    svc = SyncService(db, clock)
    clock.advance(minutes=1)
    first = await svc.pull(pull_request(), seed.caller)

    clock.advance(minutes=1)
    second = await svc.pull(pull_request(lastSyncTimestamp=iso(first.timestamp)), seed.caller)

    assert len(first.sites) == 1
    assert second.sites == []
    assert second.timestamp > first.timestamp


async def test_changes_after_checkpoint_are_returned_once(db, seed, clock, stored_site):
    svc = SyncService(db, clock)
    clock.advance(minutes=1)
    checkpoint = (await svc.pull(pull_request(), seed.caller)).timestamp

    clock.advance(minutes=1)
    await svc.push(
        SyncPushRequest.model_validate({
            "deviceId": "D1",
            "entities": [
                {
                    "localId": "s-1",
                    "entityType": "site",
                    "data": {"name": "Kiboko Upper", "updatedAt": iso(T0)},
                },
            ],
        }),
        seed.caller,
    )
    clock.advance(minutes=1)
    delta = await svc.pull(pull_request(lastSyncTimestamp=iso(checkpoint)), seed.caller)
    after = await svc.pull(pull_request(lastSyncTimestamp=iso(delta.timestamp)), seed.caller)

    assert [s["name"] for s in delta.sites] == ["Kiboko Upper"]
    assert after.sites == []


async def test_pull_is_bounded_by_its_timestamp(db, seed, clock, stored_site):
    # A row stamped after the snapshot time belongs to the next pull.
    stored_site.updated_at = T0 + timedelta(hours=1)
    await db.commit()

    result = await SyncService(db, clock).pull(pull_request(), seed.caller)

    assert result.timestamp == T0 - LAG
    assert result.sites == []


async def test_rows_inside_the_lag_window_wait_for_the_next_pull(db, seed, clock, stored_site):
    svc = SyncService(db, clock)
    clock.advance(minutes=1)
    first = await svc.pull(pull_request(), seed.caller)

    # Stamped just before the pull, committed after it.
    stored_site.updated_at = clock.now() - LAG / 2
    await db.commit()
    clock.advance(minutes=1)
    second = await svc.pull(pull_request(lastSyncTimestamp=iso(first.timestamp)), seed.caller)

    assert first.timestamp == clock.now() - timedelta(minutes=1) - LAG
    assert [s["id"] for s in second.sites] == [str(stored_site.id)]


async def test_requested_projects_are_intersected_with_assignments(db, seed, clock, stored_site):
    await add_foreign_site(db, seed, clock)
    svc = SyncService(db, clock)
    clock.advance(minutes=1)

    foreign_only = await svc.pull(
        pull_request(projectIds=[str(seed.other_project.id)]), seed.caller,
    )
    both = await svc.pull(
        pull_request(projectIds=[str(seed.project.id), str(seed.other_project.id)]), seed.caller,
    )

    assert foreign_only.sites == []
    assert [s["id"] for s in both.sites] == [str(stored_site.id)]


async def test_pump_tests_include_children(db, seed, clock, stored_site):
    svc = SyncService(db, clock)
    await svc.push(
        SyncPushRequest.model_validate({
            "deviceId": "D1",
            "entities": [
                {"localId": "pt-1", "entityType": "pumpTest", "data": pump_test_data(stored_site.id)},
            ],
        }),
        seed.caller,
    )
    clock.advance(minutes=1)
    db.expunge_all()

    result = await svc.pull(pull_request(), seed.caller)

    pump_test = result.pump_tests[0]
    assert pump_test["siteId"] == str(stored_site.id)
    assert len(pump_test["entries"]) == 2
    assert pump_test["steps"][0]["targetDischarge"] == 2.0
    assert pump_test["updatedAt"] == "2024-01-01T10:00:00Z"


async def test_pull_is_logged(db, seed, clock, stored_site):
    clock.advance(minutes=1)
    await SyncService(db, clock).pull(pull_request(deviceId="D1"), seed.caller)

    log = (await db.execute(select(SyncLog))).scalar_one()
    assert log.action == SyncAction.PULL
    assert log.device_id == "D1"
    assert (log.entity_count, log.success_count, log.failure_count) == (1, 1, 0)
    assert log.user_id == seed.user.id
