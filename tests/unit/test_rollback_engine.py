"""Tests for the rollback engine."""

from datetime import UTC, datetime

import pytest

from action_ledger.exceptions import (
    BatchCommitFailedError,
    LogNotFoundError,
    MissingRestoreDataError,
    MissingTargetIdError,
    NotReversibleError,
    StoreUnavailableError,
    UnsupportedActionError,
)
from action_ledger.rollback.handlers import BaseInverseHandler, InversePlan

ROOT = "classes/defaultClass"
LOGS = f"{ROOT}/logs"
SUBJECTS = f"{ROOT}/subjects"
EVENTS = f"{ROOT}/events"
SLOTS = f"{ROOT}/fixedTimetable"


def _entries(store, tag):
    return [body for body in store.dump(LOGS).values() if body["actionTag"] == tag]


class TestRollbackOutcomes:
    @pytest.mark.asyncio
    async def test_add_is_undone_by_delete(self, ledger, store, sample_subject):
        await store.set(SUBJECTS, "s1", {"name": "Math", "teacher": "Tanaka"})
        await store.set(SUBJECTS, "s2", {"name": "Art", "teacher": "Sato"})
        log_id = await ledger.log("add_subject", {"after": sample_subject}, "teacher-7")

        summary = await ledger.rollback(log_id, "admin-1")

        assert store.dump(SUBJECTS) == {"s2": {"name": "Art", "teacher": "Sato"}}
        assert summary.collection == SUBJECTS
        assert summary.deleted_ids == ["s1"]
        assert summary.restored_ids == []

    @pytest.mark.asyncio
    async def test_update_overwrites_with_before(self, ledger, store):
        await store.set(SUBJECTS, "s1", {"name": "Maths", "teacher": "Sato", "room": "B2"})
        log_id = await ledger.log(
            "update_subject",
            {
                "before": {"id": "s1", "name": "Math", "teacher": "Tanaka"},
                "after": {"id": "s1", "name": "Maths", "teacher": "Sato"},
            },
        )

        await ledger.rollback(log_id)

        assert store.dump(SUBJECTS) == {"s1": {"name": "Math", "teacher": "Tanaka"}}

    @pytest.mark.asyncio
    async def test_upsert_without_before_deletes(self, ledger, store):
        await store.set(EVENTS, "e9", {"title": "Open Day"})
        log_id = await ledger.log("upsert_event", {"before": None, "after": {"id": "e9"}})

        summary = await ledger.rollback(log_id)

        assert store.dump(EVENTS) == {}
        assert summary.deleted_ids == ["e9"]

    @pytest.mark.asyncio
    async def test_timestamps_restored_as_datetimes(self, ledger, store):
        start = datetime(2024, 5, 1, 9, 0, tzinfo=UTC)
        log_id = await ledger.log(
            "delete_event", {"before": {"id": "e1", "title": "Sports Day", "startDate": start}}
        )

        await ledger.rollback(log_id)

        restored = store.dump(EVENTS)["e1"]
        assert restored == {"title": "Sports Day", "startDate": start}
        assert isinstance(restored["startDate"], datetime)

    @pytest.mark.asyncio
    async def test_timestamp_shaped_text_restored_verbatim(self, ledger, store):
        before = {
            "id": "e2",
            "note": "2024-02-30T00:00:00.000Z",
            "memo": "2024-01-01T00:00:00.000Z\n",
        }
        log_id = await ledger.log("delete_event", {"before": before})

        await ledger.rollback(log_id)

        assert store.dump(EVENTS)["e2"] == {
            "note": "2024-02-30T00:00:00.000Z",
            "memo": "2024-01-01T00:00:00.000Z\n",
        }

    @pytest.mark.asyncio
    async def test_batch_update_restores_each_slot(self, ledger, store, sample_slots):
        for slot in sample_slots:
            await store.set(SLOTS, slot["id"], {"subjectId": "pe", "day": slot["id"][:-2]})
        await store.set(SLOTS, "Friday-6", {"subjectId": "music", "day": "Friday"})
        log_id = await ledger.log(
            "batch_update_fixed_timetable",
            {
                "before": sample_slots + [{"subjectId": "lost"}],
                "after": [{"id": s["id"], "subjectId": "pe"} for s in sample_slots],
            },
        )

        summary = await ledger.rollback(log_id)

        slots = store.dump(SLOTS)
        assert slots["Monday-1"] == {"subjectId": "math", "day": "Monday"}
        assert slots["Monday-2"] == {"subjectId": None, "day": "Monday"}
        assert slots["Tuesday-1"] == {"subjectId": "art", "day": "Tuesday"}
        assert slots["Friday-6"] == {"subjectId": "music", "day": "Friday"}
        assert len(slots) == 4
        assert summary.restored_ids == ["Monday-1", "Monday-2", "Tuesday-1"]
        assert summary.skipped_count == 1

    @pytest.mark.asyncio
    async def test_reset_restores_previous_values(self, ledger, store):
        await store.set(SLOTS, "Friday-1", {"subjectId": None})
        log_id = await ledger.log(
            "reset_fixed_timetable", {"before": [{"id": "Friday-1", "subjectId": "music"}]}
        )

        await ledger.rollback(log_id)

        assert store.dump(SLOTS) == {"Friday-1": {"subjectId": "music"}}

    @pytest.mark.asyncio
    async def test_success_is_logged(self, ledger, store, sample_subject):
        log_id = await ledger.log("add_subject", {"after": sample_subject})

        summary = await ledger.rollback(log_id, "admin-1")

        [doc] = _entries(store, "rollback_action")
        assert doc["actorId"] == "admin-1"
        assert doc["details"]["meta"]["originalLogId"] == log_id
        assert doc["details"]["meta"]["originalAction"] == "add_subject"
        assert doc["details"]["meta"]["deletedDocIds"] == ["s1"]
        assert summary.rollback_log_id in store.dump(LOGS)

    @pytest.mark.asyncio
    async def test_default_rollback_actor(self, ledger, store, sample_subject):
        log_id = await ledger.log("add_subject", {"after": sample_subject})
        await ledger.rollback(log_id)
        [doc] = _entries(store, "rollback_action")
        assert doc["actorId"] == "system_rollback"

    @pytest.mark.asyncio
    async def test_legacy_entry_without_kind(self, ledger, store):
        await store.set(SUBJECTS, "s1", {"name": "Math"})
        await store.set(
            LOGS,
            "legacy-1",
            {
                "actionTag": "add_subject",
                "timestamp": datetime(2023, 1, 1, tzinfo=UTC),
                "actorId": "teacher-7",
                "details": {"before": None, "after": {"id": "s1"}, "meta": {}},
            },
        )

        summary = await ledger.rollback("legacy-1")

        assert summary.deleted_ids == ["s1"]
        assert store.dump(SUBJECTS) == {}


class TestRollbackRejections:
    @pytest.mark.asyncio
    async def test_missing_log_entry(self, ledger, store):
        with pytest.raises(LogNotFoundError):
            await ledger.rollback("does-not-exist")

        [failure] = _entries(store, "rollback_action_failed")
        assert failure["details"]["meta"]["originalLogId"] == "does-not-exist"
        assert failure["details"]["meta"]["originalAction"] is None
        assert failure["details"]["meta"]["error"].startswith("LogNotFoundError")

    @pytest.mark.asyncio
    async def test_rollback_of_rollback(self, ledger, store, sample_subject):
        log_id = await ledger.log("add_subject", {"after": sample_subject})
        summary = await ledger.rollback(log_id)

        with pytest.raises(NotReversibleError):
            await ledger.rollback(summary.rollback_log_id)

    @pytest.mark.asyncio
    async def test_rollback_of_failed_rollback(self, ledger, store):
        with pytest.raises(LogNotFoundError):
            await ledger.rollback("ghost")
        [failure_id] = [
            doc_id
            for doc_id, body in store.dump(LOGS).items()
            if body["actionTag"] == "rollback_action_failed"
        ]

        with pytest.raises(NotReversibleError):
            await ledger.rollback(failure_id)

    @pytest.mark.asyncio
    async def test_open_ended_action(self, ledger, store):
        await store.set(SLOTS, "Monday-1", {"subjectId": "math"})
        log_id = await ledger.log("apply_template_future", {"meta": {"from": "2024-05-01"}})

        with pytest.raises(NotReversibleError) as exc_info:
            await ledger.rollback(log_id)

        assert "future" in str(exc_info.value)
        assert store.dump(SLOTS) == {"Monday-1": {"subjectId": "math"}}
        [failure] = _entries(store, "rollback_action_failed")
        assert failure["details"]["meta"]["originalAction"] == "apply_template_future"

    @pytest.mark.asyncio
    async def test_stored_kind_overridden_by_open_ended_pattern(self, ledger, store):
        await store.set(
            LOGS,
            "old-1",
            {
                "actionTag": "reset_fixed_timetable_future",
                "timestamp": datetime(2023, 1, 1, tzinfo=UTC),
                "actorId": "teacher-7",
                "kind": "reset",
                "details": {"before": [{"id": "Monday-1", "subjectId": "math"}]},
            },
        )

        with pytest.raises(NotReversibleError):
            await ledger.rollback("old-1")

    @pytest.mark.asyncio
    async def test_unsupported_action(self, ledger):
        log_id = await ledger.log("generate_ai_summary", {"meta": {"date": "2024-05-01"}})

        with pytest.raises(UnsupportedActionError) as exc_info:
            await ledger.rollback(log_id)
        assert exc_info.value.log_id == log_id

    @pytest.mark.asyncio
    async def test_unmapped_collection(self, ledger):
        log_id = await ledger.log("add_homework", {"after": {"id": "h1"}})

        with pytest.raises(UnsupportedActionError, match="No collection is mapped"):
            await ledger.rollback(log_id)

    @pytest.mark.asyncio
    async def test_missing_target_id(self, ledger):
        log_id = await ledger.log("add_subject", {"after": {"name": "Math"}})

        with pytest.raises(MissingTargetIdError):
            await ledger.rollback(log_id)

    @pytest.mark.asyncio
    async def test_delete_without_before(self, ledger):
        log_id = await ledger.log("delete_subject", {"before": None}, target_id="s1")

        with pytest.raises(MissingRestoreDataError):
            await ledger.rollback(log_id)

    @pytest.mark.asyncio
    async def test_batch_commit_is_atomic(self, ledger, store):
        await store.set(SLOTS, "Monday-1", {"subjectId": "pe"})
        log_id = await ledger.log(
            "batch_update_fixed_timetable",
            {
                "before": [
                    {"id": "Monday-1", "subjectId": "math"},
                    {"id": "Monday-2", "subjectId": "art"},
                ],
                "after": [],
            },
        )

        with pytest.raises(BatchCommitFailedError) as exc_info:
            await ledger.rollback(log_id)

        assert exc_info.value.log_id == log_id
        assert store.dump(SLOTS) == {"Monday-1": {"subjectId": "pe"}}
        assert _entries(store, "rollback_action") == []

    @pytest.mark.asyncio
    async def test_store_unavailable_propagates(self, ledger, store, sample_subject):
        log_id = await ledger.log("add_subject", {"after": sample_subject})
        store.online = False

        with pytest.raises(StoreUnavailableError):
            await ledger.rollback(log_id)

        store.online = True
        assert _entries(store, "rollback_action_failed") == []


class TestCustomInverse:
    @pytest.mark.asyncio
    async def test_register_inverse_for_tag(self, ledger, store):
        class UnarchiveHandler(BaseInverseHandler):
            @property
            def kinds(self):
                return []

            def plan(self, entry, route):
                plan = InversePlan()
                plan.update(route.collection, entry.target_id, {"archived": False})
                return plan

        await store.set(SUBJECTS, "s1", {"name": "Math", "archived": True})
        ledger.register_inverse("archive_subject", UnarchiveHandler())
        log_id = await ledger.log("archive_subject", {}, target_id="s1")

        summary = await ledger.rollback(log_id)

        assert store.dump(SUBJECTS)["s1"] == {"name": "Math", "archived": False}
        assert summary.restored_ids == ["s1"]


class TestRollbackMetrics:
    @pytest.mark.asyncio
    async def test_counters(self, ledger, sample_subject):
        log_id = await ledger.log("add_subject", {"after": sample_subject})
        await ledger.rollback(log_id)
        with pytest.raises(LogNotFoundError):
            await ledger.rollback("ghost")

        metrics = ledger.get_metrics()
        assert metrics.rollbacks == 1
        assert metrics.rollback_failures == 1
        # original + rollback_action + rollback_action_failed
        assert metrics.logged_actions == 3
        assert "action_ledger_rollbacks 1" in metrics.to_prometheus()
