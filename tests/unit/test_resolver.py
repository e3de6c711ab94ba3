"""Tests for the collection resolver."""

import pytest

from action_ledger.config.loader import load_config_from_dict
from action_ledger.core.action import ActionKind
from action_ledger.exceptions import UnsupportedActionError
from action_ledger.resolver import CollectionResolver, EntityRoute

ROOT = "classes/defaultClass"


@pytest.fixture
def resolver() -> CollectionResolver:
    return CollectionResolver.from_config(load_config_from_dict({}).collections)


class TestResolveCollection:
    @pytest.mark.parametrize(
        ("tag", "path"),
        [
            ("add_subject", f"{ROOT}/subjects"),
            ("delete_event", f"{ROOT}/events"),
            ("update_fixed_slot", f"{ROOT}/fixedTimetable"),
            ("batch_update_fixed_timetable", f"{ROOT}/fixedTimetable"),
            ("upsert_general_announcement", f"{ROOT}/generalAnnouncements"),
            ("upsert_announcement", f"{ROOT}/dailyAnnouncements"),
            ("update_settings", f"{ROOT}/settings"),
        ],
    )
    def test_default_routes(self, resolver, tag, path):
        assert resolver.resolve_collection(tag) == path

    def test_unmatched_tag_raises(self, resolver):
        with pytest.raises(UnsupportedActionError) as exc_info:
            resolver.resolve("toggle_assignment_completion")
        assert exc_info.value.action_tag == "toggle_assignment_completion"

    def test_find_returns_none_for_unmatched(self, resolver):
        assert resolver.find("add_inquiry") is None

    def test_first_matching_route_wins(self):
        resolver = CollectionResolver(
            [
                EntityRoute("a", ("event",), "first"),
                EntityRoute("b", ("event",), "second"),
            ]
        )
        assert resolver.resolve_collection("add_event") == "first"

    def test_routes_are_injected(self):
        config = load_config_from_dict(
            {
                "collections": {
                    "root": "schools/{class_id}",
                    "class_id": "3-B",
                    "routes": [
                        {"entity": "assignment", "keywords": ["assignment"], "path": "assignments"}
                    ],
                }
            }
        )
        resolver = CollectionResolver.from_config(config.collections)
        assert resolver.resolve_collection("add_assignment") == "schools/3-B/assignments"
        with pytest.raises(UnsupportedActionError):
            resolver.resolve("add_subject")


class TestEntityRoute:
    def test_target_id_from_id_field(self, resolver):
        route = resolver.resolve("add_subject")
        assert route.target_id_for(ActionKind.ADD, None, {"id": "s1"}) == "s1"

    def test_update_prefers_before(self, resolver):
        route = resolver.resolve("update_event")
        target = route.target_id_for(ActionKind.UPDATE, {"id": "old"}, {"id": "new"})
        assert target == "old"

    def test_update_falls_back_to_after(self, resolver):
        route = resolver.resolve("upsert_event")
        assert route.target_id_for(ActionKind.UPSERT, None, {"id": "e2"}) == "e2"

    def test_daily_announcement_uses_document_id(self, resolver):
        route = resolver.resolve("delete_announcement")
        before = {"id": "2024-05-01_1", "date": "2024-05-01", "period": 1}
        assert route.target_id_for(ActionKind.DELETE, before, None) == "2024-05-01_1"

    def test_daily_announcement_never_falls_back_to_date(self, resolver):
        route = resolver.resolve("delete_announcement")
        assert route.target_id_for(ActionKind.DELETE, {"date": "2024-05-01"}, None) is None

    def test_general_announcement_falls_back_to_date(self, resolver):
        route = resolver.resolve("delete_general_announcement")
        assert route.target_id_for(ActionKind.DELETE, {"date": "2024-05-01"}, None) == "2024-05-01"

    def test_id_field_order_beats_snapshot_order(self, resolver):
        route = resolver.resolve("update_general_announcement")
        target = route.target_id_for(
            ActionKind.UPDATE, {"date": "2024-05-01"}, {"id": "g7", "date": "2024-05-01"}
        )
        assert target == "g7"

    def test_id_fields_from_config(self):
        config = load_config_from_dict(
            {
                "collections": {
                    "routes": [
                        {
                            "entity": "note",
                            "keywords": ["note"],
                            "path": "notes",
                            "id_fields": ["slug", "id"],
                        },
                    ]
                }
            }
        )
        [route] = CollectionResolver.from_config(config.collections).routes
        assert route.id_fields == ("slug", "id")
        assert route.target_id({"id": "n1", "slug": "intro"}) == "intro"

    def test_settings_singleton_default(self, resolver):
        route = resolver.resolve("update_settings")
        assert route.target_id_for(ActionKind.UPDATE, {"periodsPerDay": 6}, None) == "timetable"

    def test_bulk_kinds_have_no_single_target(self, resolver):
        route = resolver.resolve("batch_update_fixed_timetable")
        assert route.target_id_for(ActionKind.BATCH_UPDATE, [], []) is None

    def test_missing_id(self, resolver):
        route = resolver.resolve("add_subject")
        assert route.target_id_for(ActionKind.ADD, None, {"name": "Math"}) is None
