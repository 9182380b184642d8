"""Unit tests for soft-delete models

Tests cover:
- mark_deleted / restore keep is_deleted and deleted_at in step
- expired_predicate boundaries
- Photo rows follow their owner on delete
"""

from datetime import timedelta

from foms.models import Cable, Midpoint, MidpointStatus, Photo, Vault, VaultStatus


class TestSoftDeleteMixin:
    """Test the soft-delete transitions"""

    def test_new_vault_is_not_deleted(self, make_vault):
        vault = make_vault()

        assert vault.is_deleted is False
        assert vault.deleted_at is None
        assert vault.status == VaultStatus.PENDING
        assert vault.color == "Blue"

    def test_mark_deleted_sets_flag_and_timestamp(self, now):
        cable = Cable(name="C-1")

        cable.mark_deleted(now)

        assert cable.is_deleted is True
        assert cable.deleted_at == now

    def test_second_mark_deleted_keeps_original_timestamp(self, now):
        """Deleting twice must not extend the retention window"""
        midpoint = Midpoint(name="MP-1")
        midpoint.mark_deleted(now - timedelta(days=3))

        midpoint.mark_deleted(now)

        assert midpoint.deleted_at == now - timedelta(days=3)

    def test_restore_clears_flag_and_timestamp(self, now):
        vault = Vault(name="V-1", longitude=0.0, latitude=0.0)
        vault.mark_deleted(now)

        vault.restore()

        assert vault.is_deleted is False
        assert vault.deleted_at is None

    def test_mark_deleted_without_time_uses_current_utc(self):
        cable = Cable(name="C-2")

        cable.mark_deleted()

        assert cable.deleted_at is not None
        assert cable.deleted_at.utcoffset() == timedelta(0)


class TestExpiredPredicate:
    """Test the SQL filter used by the purge engine"""

    def test_only_rows_deleted_strictly_before_cutoff_match(self, db_session, make_cable, now):
        old = make_cable(deleted_days_ago=11, name="old")
        make_cable(deleted_days_ago=10, name="exactly-at-cutoff")
        make_cable(deleted_days_ago=5, name="recent")
        make_cable(name="live")

        cutoff = now - timedelta(days=10)
        matches = db_session.query(Cable).filter(Cable.expired_predicate(cutoff)).all()

        assert [c.id for c in matches] == [old.id]

    def test_flag_without_timestamp_never_matches(self, db_session, now):
        cable = Cable(name="inconsistent", is_deleted=True, deleted_at=None)
        db_session.add(cable)
        db_session.commit()

        matches = db_session.query(Cable).filter(Cable.expired_predicate(now)).all()

        assert matches == []


class TestPhotoOwnership:
    """Test photo rows follow their owner"""

    def test_deleting_vault_deletes_its_photos(self, db_session, make_vault):
        vault = make_vault(photos=["a.jpg", "b.jpg"])
        other = make_vault(photos=["c.jpg"], name="V-200")

        db_session.delete(vault)
        db_session.commit()

        remaining = db_session.query(Photo).all()
        assert [p.file_name for p in remaining] == ["c.jpg"]
        assert remaining[0].vault_id == other.id

    def test_midpoint_photos_and_owner_ref(self, db_session, make_midpoint):
        midpoint = make_midpoint(photos=["m.jpg"])

        photo = db_session.query(Photo).one()

        assert photo.owner_ref() == {"vault_id": None, "midpoint_id": midpoint.id}
        assert midpoint.status == MidpointStatus.NEW
