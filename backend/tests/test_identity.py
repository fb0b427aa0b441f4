from aquapack.models.enums import EntityKind
from aquapack.services.identity import IdentityMap


async def test_resolves_device_local_id(db, stored_site):
    found = await IdentityMap(db).resolve("D1", "s-1", EntityKind.SITE)
    assert found is not None
    assert found.id == stored_site.id


async def test_local_ids_are_scoped_per_device(db, stored_site):
    assert await IdentityMap(db).resolve("D2", "s-1", EntityKind.SITE) is None


async def test_local_ids_are_scoped_per_kind(db, stored_site):
    assert await IdentityMap(db).resolve("D1", "s-1", EntityKind.BOREHOLE) is None


async def test_missing_ids_mean_no_prior_identity(db, stored_site):
    identity = IdentityMap(db)
    assert await identity.resolve(None, "s-1", EntityKind.SITE) is None
    assert await identity.resolve("D1", None, EntityKind.SITE) is None
    assert await identity.resolve("D1", "", EntityKind.SITE) is None
