"""Tests for the entity sync modules."""

import threading
from datetime import datetime, timezone
from urllib.parse import parse_qs, urlparse

import pytest
import requests

from tasksync.application.resources import TaskResource
from tasksync.core.domain.events import EntityRemoved, EntityStored
from tasksync.core.exceptions import InvalidRecordError, OfflineError
from tasksync.core.ports.local_store import GROUPS, META, TASKS, WORKSPACES

from conftest import API_URL, make_response


class TestWriteTemplate:
    """Tests for the shared optimistic write path (via groups)."""

    def test_online_create_returns_server_record(self, service, session, store):
        session.script(make_response(201, {"id": "G1", "name": "Inbox", "order": 0}))

        result = service.groups.create_group({"id": "G1", "name": "Inbox"})

        assert result == {"id": "G1", "name": "Inbox", "order": 0}
        assert store.get(GROUPS, "G1")["order"] == 0
        assert service.queue.depth() == 0

    def test_offline_create_is_local_and_queued(self, service, session, store, connectivity):
        connectivity.set_online(False)

        result = service.groups.create_group({"id": "G1", "name": "Inbox"})

        assert result == {"id": "G1", "name": "Inbox"}
        assert store.get(GROUPS, "G1") == {"id": "G1", "name": "Inbox"}
        [item] = service.queue.pending()
        assert (item.method, item.url, item.body) == ("POST", f"{API_URL}/groups", result)
        assert session.calls == []

    def test_create_assigns_id(self, service, connectivity, store):
        connectivity.set_online(False)

        result = service.groups.create_group({"name": "Inbox"})

        assert result["id"]
        assert store.get(GROUPS, result["id"])["name"] == "Inbox"

    def test_server_assigned_id_replaces_local_copy(self, service, session, store, event_bus):
        session.script(make_response(201, {"id": "srv-1", "name": "Team", "type": "team"}))

        result = service.workspaces.create_workspace("Team", "team", "u1")

        assert result["id"] == "srv-1"
        assert store.get_all(WORKSPACES) == [{"id": "srv-1", "name": "Team", "type": "team"}]
        [local_id] = [e.entity_id for e in event_bus.get_history(EntityRemoved)]
        assert local_id == session.calls[0]["json"]["id"]
        assert store.get(WORKSPACES, local_id) is None

    def test_same_id_confirmation_keeps_one_record(self, service, session, store, event_bus):
        session.script(make_response(201, {"id": "G1", "name": "Inbox"}))

        service.groups.create_group({"id": "G1", "name": "Inbox"})

        assert store.get_all(GROUPS) == [{"id": "G1", "name": "Inbox"}]
        assert event_bus.get_history(EntityRemoved) == []

    def test_create_does_not_mutate_input(self, service, connectivity):
        connectivity.set_online(False)
        group = {"name": "Inbox"}
        service.groups.create_group(group)
        assert group == {"name": "Inbox"}

    def test_update_offline(self, service, connectivity, store):
        connectivity.set_online(False)

        service.groups.update_group("G1", {"name": "Later"})

        assert store.get(GROUPS, "G1") == {"name": "Later", "id": "G1"}
        assert service.queue.pending()[0].url == f"{API_URL}/groups/G1"

    def test_update_rejects_mismatched_id(self, service, session, store):
        with pytest.raises(InvalidRecordError):
            service.groups.update_group("G1", {"id": "G2", "name": "Later"})

        assert store.get_all(GROUPS) == []
        assert session.calls == []
        assert service.queue.depth() == 0

    def test_update_accepts_numeric_matching_id(self, service, connectivity, store):
        connectivity.set_online(False)

        service.groups.update_group("7", {"id": 7, "name": "Later"})

        assert store.get(GROUPS, "7") == {"id": "7", "name": "Later"}

    def test_delete_removes_locally_first(self, service, connectivity, store, event_bus):
        store.put(GROUPS, {"id": "G1"})
        connectivity.set_online(False)

        assert service.groups.delete_group("G1") == {}

        assert store.get(GROUPS, "G1") is None
        assert service.queue.pending()[0].method == "DELETE"
        assert event_bus.get_history(EntityRemoved)[0].entity_id == "G1"

    def test_no_content_returns_optimistic(self, service, session):
        session.script(make_response(204))
        assert service.groups.update_group("G1", {"name": "x"}) == {"name": "x", "id": "G1"}

    def test_server_error_falls_back_to_queue(self, service, session, store):
        session.script(make_response(500), make_response(500))

        result = service.groups.update_group("G1", {"name": "x"})

        assert result == {"name": "x", "id": "G1"}
        assert service.queue.depth() == 1
        assert store.get(GROUPS, "G1")["name"] == "x"

    def test_network_error_falls_back_to_queue(self, service, session):
        session.script(requests.exceptions.ConnectionError("blip"))

        service.groups.update_group("G1", {"name": "x"})

        # The queue replays at once while online; the second attempt succeeds
        assert [c["method"] for c in session.calls] == ["PUT", "PUT"]
        assert service.queue.depth() == 0

    def test_rejected_write_is_dropped(self, service, session):
        session.script(make_response(400), make_response(400))

        service.groups.update_group("G1", {"name": ""})

        assert service.queue.depth() == 0

    def test_non_object_record(self, service):
        with pytest.raises(InvalidRecordError):
            service.groups.create_group(["not", "a", "record"])

    def test_stored_events(self, service, session, event_bus):
        session.script(make_response(200, {"id": "G1", "name": "srv"}))

        service.groups.update_group("G1", {"name": "local"})

        flags = [e.optimistic for e in event_bus.get_history(EntityStored)]
        assert flags == [True, False]

    def test_get_groups_per_workspace(self, service, session):
        session.script(make_response(200, [{"id": "G1"}]))

        assert service.groups.get_groups("W1") == [{"id": "G1"}]
        assert session.calls[0]["url"] == f"{API_URL}/groups?workspaceId=W1"
        assert service.fetcher.get_meta("groups_req_workspaceId=W1") is not None

    def test_global_cache_key(self, service):
        assert service.labels.cache_key() == "labels_req_global"


class TestTaskPartition:
    """Tests for distributing a flat task list."""

    def test_buckets(self):
        groups = [{"id": "G1", "name": "Today"}, {"id": "G2", "name": "Later"}]
        tasks = [
            {"id": "T1", "groupId": "G1"},
            {"id": "T2"},
            {"id": "T3", "isTemplate": True, "groupId": "G1"},
            {"id": "T4", "groupId": "missing"},
            {"id": "T5", "groupId": "G2"},
        ]

        data = TaskResource.partition_tasks(tasks, groups)

        assert [t["id"] for t in data.groups[0]["tasks"]] == ["T1"]
        assert [t["id"] for t in data.groups[1]["tasks"]] == ["T5"]
        assert [t["id"] for t in data.dump_tasks] == ["T2", "T4"]
        assert [t["id"] for t in data.templates] == ["T3"]

    def test_groups_are_copies(self):
        groups = [{"id": "G1", "tasks": ["stale"]}]

        data = TaskResource.partition_tasks([{"id": "T1", "groupId": "G1"}], groups)

        assert groups == [{"id": "G1", "tasks": ["stale"]}]
        assert data.groups[0]["tasks"] == [{"id": "T1", "groupId": "G1"}]

    def test_numeric_group_ids(self):
        data = TaskResource.partition_tasks([{"id": "T1", "groupId": 7}], [{"id": 7}])
        assert data.groups[0]["tasks"][0]["id"] == "T1"

    def test_non_list_input(self):
        data = TaskResource.partition_tasks(None, None)
        assert data.groups == []
        assert data.dump_tasks == []


class TestTaskResource:
    """Tests for the task read model and writes."""

    @pytest.fixture
    def api_server(self, session):
        payloads = {
            "/tasks": [
                {"id": "T1", "groupId": "G1"},
                {"id": "T2"},
                {"id": "T3", "isTemplate": True},
            ],
            "/labels": [{"id": "L1", "name": "urgent"}],
            "/groups": [{"id": "G1", "name": "Today"}],
        }

        def responder(method, path, kwargs):
            if method == "GET" and path in payloads:
                return make_response(200, payloads[path], {"ETag": f'"{path}"'})
            return make_response(200)

        session.responder = responder
        return payloads

    def test_get_initial_data(self, service, session, api_server):
        start = datetime(2024, 1, 1, tzinfo=timezone.utc)
        end = datetime(2024, 1, 8, tzinfo=timezone.utc)

        data = service.tasks.get_initial_data(start, end, workspace_id="W1")

        assert [t["id"] for t in data.groups[0]["tasks"]] == ["T1"]
        assert [t["id"] for t in data.dump_tasks] == ["T2"]
        assert [t["id"] for t in data.templates] == ["T3"]
        assert data.available_labels == [{"id": "L1", "name": "urgent"}]

        task_call = next(c for c in session.calls if c["path"] == "/tasks")
        query = parse_qs(urlparse(task_call["url"]).query)
        assert query["startDate"] == [start.isoformat()]
        assert query["endDate"] == [end.isoformat()]
        assert query["workspaceId"] == ["W1"]

    def test_get_initial_data_offline_uses_local_stores(
        self, service, session, api_server, connectivity
    ):
        service.tasks.get_initial_data("2024-01-01", "2024-01-08")
        calls = len(session.calls)
        connectivity.set_online(False)

        data = service.tasks.get_initial_data("2024-01-01", "2024-01-08")

        assert len(session.calls) == calls
        assert [t["id"] for t in data.groups[0]["tasks"]] == ["T1"]
        assert data.available_labels == [{"id": "L1", "name": "urgent"}]

    def test_second_load_is_conditional(self, service, session, api_server):
        service.tasks.get_initial_data("2024-01-01", "2024-01-08")
        service.tasks.get_initial_data("2024-01-01", "2024-01-08")

        task_calls = [c for c in session.calls if c["path"] == "/tasks"]
        assert "If-None-Match" not in task_calls[0]["headers"]
        assert task_calls[1]["headers"]["If-None-Match"] == '"/tasks"'

    def test_task_writes(self, service, connectivity, store):
        connectivity.set_online(False)

        service.tasks.create_task({"id": "T1", "title": "Buy milk"})
        service.tasks.update_task("T1", {"id": "T1", "title": "Buy oat milk"})
        service.tasks.delete_task("T1")

        assert store.get(TASKS, "T1") is None
        assert [i.method for i in service.queue.pending()] == ["POST", "PUT", "DELETE"]


class TestWorkspaceResource:
    """Tests for workspaces and membership."""

    def test_create_workspace(self, service, connectivity, store):
        connectivity.set_online(False)

        result = service.workspaces.create_workspace("Home", "personal", "U1")

        assert result["name"] == "Home"
        assert result["ownerId"] == "U1"
        assert store.get(WORKSPACES, result["id"])["type"] == "personal"

    def test_membership_urls(self, service, session):
        service.workspaces.remove_member("W1", "U2")
        service.workspaces.assign_owner("W1", "U3")
        service.workspaces.leave_workspace("W1")

        assert [(c["method"], c["path"], c["json"]) for c in session.calls] == [
            ("DELETE", "/workspaces/W1/members/U2", None),
            ("PUT", "/workspaces/W1/owner", {"ownerId": "U3"}),
            ("POST", "/workspaces/W1/leave", None),
        ]

    def test_membership_is_not_persisted(self, service, connectivity, store):
        connectivity.set_online(False)

        assert service.workspaces.leave_workspace("W1") == {}

        assert store.get_all(WORKSPACES) == []
        assert service.queue.pending()[0].url == f"{API_URL}/workspaces/W1/leave"

    def test_get_workspaces(self, service, session, store):
        session.script(make_response(200, [{"id": "W1"}]))
        assert service.workspaces.get_workspaces() == [{"id": "W1"}]
        assert store.get(WORKSPACES, "W1") == {"id": "W1"}


class TestSettingsResource:
    """Tests for serialized settings updates."""

    def test_get_general_settings(self, service, session):
        session.script(make_response(200, {"darkMode": True}, {"ETag": '"s1"'}))
        assert service.settings.get_general_settings() == {"darkMode": True}

    def test_sequential_updates_merge(self, service, session):
        service.settings.update_general_settings({"darkMode": True})
        result = service.settings.update_general_settings({"startWeekOn": "Monday"})

        assert result == {"darkMode": True, "startWeekOn": "Monday"}
        assert [c["json"] for c in session.calls] == [
            {"darkMode": True},
            {"startWeekOn": "Monday"},
        ]

    def test_concurrent_updates_keep_both_fields(self, service, session):
        first_sent = threading.Event()
        release = threading.Event()

        def responder(method, path, kwargs):
            if kwargs.get("json") == {"darkMode": True}:
                first_sent.set()
                release.wait(timeout=5)
            return make_response(200)

        session.responder = responder

        first = threading.Thread(
            target=service.settings.update_general_settings, args=({"darkMode": True},)
        )
        second = threading.Thread(
            target=service.settings.update_general_settings, args=({"startWeekOn": "Monday"},)
        )
        first.start()
        assert first_sent.wait(timeout=5)
        second.start()
        release.set()
        first.join(timeout=5)
        second.join(timeout=5)

        meta = service.fetcher.get_meta("settings_general")
        assert meta.value == {"darkMode": True, "startWeekOn": "Monday"}

    def test_many_concurrent_updates(self, service):
        threads = [
            threading.Thread(
                target=service.settings.update_general_settings, args=({f"field{i}": i},)
            )
            for i in range(10)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=5)

        meta = service.fetcher.get_meta("settings_general")
        assert meta.value == {f"field{i}": i for i in range(10)}

    def test_update_merges_onto_cached_settings(self, service, session, store):
        session.script(make_response(200, {"darkMode": False, "lang": "en"}, {"ETag": '"s1"'}))
        service.settings.get_general_settings()

        result = service.settings.update_general_settings({"darkMode": True})

        assert result == {"darkMode": True, "lang": "en"}
        meta = service.fetcher.get_meta("settings_general")
        assert meta.validator is None

    def test_offline_update_is_queued_with_partial_body(self, service, connectivity):
        connectivity.set_online(False)

        result = service.settings.update_general_settings({"darkMode": True})

        assert result == {"darkMode": True}
        [item] = service.queue.pending()
        assert (item.method, item.url, item.body) == (
            "PUT", f"{API_URL}/settings/general", {"darkMode": True}
        )

    def test_offline_read_after_update(self, service, connectivity):
        connectivity.set_online(False)
        service.settings.update_general_settings({"darkMode": True})

        assert service.settings.get_general_settings() == {"darkMode": True}

    def test_server_copy_wins_when_returned(self, service, session):
        session.script(make_response(200, {"darkMode": True, "serverField": 1}))

        result = service.settings.update_general_settings({"darkMode": True})

        assert result == {"darkMode": True, "serverField": 1}
        assert service.fetcher.get_meta("settings_general").value == result

    def test_rejects_non_object(self, service):
        with pytest.raises(InvalidRecordError):
            service.settings.update_general_settings("darkMode")


class TestCalendarResource:
    """Tests for calendar accounts."""

    def test_offline_read_fallback(self, service, connectivity):
        connectivity.set_online(False)
        assert service.calendars.get_calendars() == {"accounts": []}

    def test_add_calendar_offline(self, service, connectivity, store):
        connectivity.set_online(False)

        assert service.calendars.add_calendar({"provider": "google"}) == {"accounts": []}

        assert service.queue.pending()[0].url == f"{API_URL}/calendars"
        assert store.get(META, "calendars_data") is None

    def test_update_and_delete_online(self, service, session):
        session.script(
            make_response(200, {"accounts": [{"id": "C1", "color": "red"}]}),
            make_response(200, {"accounts": []}),
        )

        updated = service.calendars.update_calendar("C1", {"color": "red"})
        deleted = service.calendars.delete_calendar("C1")

        assert updated == {"accounts": [{"id": "C1", "color": "red"}]}
        assert deleted == {"accounts": []}

    def test_sync_sub_calendars_offline(self, service, session, connectivity):
        connectivity.set_online(False)

        assert service.calendars.sync_sub_calendars("C1") == {"accounts": []}
        assert session.calls == []
        assert service.queue.depth() == 0

    def test_sync_sub_calendars_online(self, service, session):
        session.script(make_response(200, {"accounts": [{"id": "C1"}]}))

        assert service.calendars.sync_sub_calendars("C1") == {"accounts": [{"id": "C1"}]}
        assert session.calls[0]["path"] == "/calendars/C1/sync"

    def test_sync_sub_calendars_failure(self, service, session):
        session.script(make_response(502))

        assert service.calendars.sync_sub_calendars("C1") == {"accounts": []}
        assert service.queue.depth() == 0

    def test_get_events_online(self, service, session):
        session.script(make_response(200, [{"id": "E1"}]))
        start = datetime(2024, 1, 1, tzinfo=timezone.utc)

        events = service.calendars.get_events(start, "2024-01-07T00:00:00+00:00")

        assert events == [{"id": "E1"}]
        call = session.calls[0]
        assert call["path"] == "/calendars/events"
        assert parse_qs(urlparse(call["url"]).query) == {
            "start": ["2024-01-01T00:00:00+00:00"],
            "end": ["2024-01-07T00:00:00+00:00"],
        }

    def test_get_events_offline_or_failing_is_empty(self, service, session, connectivity):
        session.script(make_response(500), requests.exceptions.ConnectionError("down"))

        assert service.calendars.get_events("2024-01-01", "2024-01-07") == []
        assert service.calendars.get_events("2024-01-01", "2024-01-07") == []

        connectivity.set_online(False)
        assert service.calendars.get_events("2024-01-01", "2024-01-07") == []
        assert len(session.calls) == 2

    def test_update_event_patches_provider_event(self, service, session):
        session.script(make_response(200, {"id": "E1"}))

        changes = {"start": "2024-01-02T09:00:00Z"}
        assert service.calendars.update_event("A1", "team@group.calendar", "E1", changes)

        call = session.calls[0]
        assert call["method"] == "PATCH"
        assert call["url"] == f"{API_URL}/calendars/A1/calendars/team%40group.calendar/events/E1"
        assert call["json"] == changes

    def test_event_writes_are_never_queued(self, service, session, connectivity):
        session.script(make_response(404))

        assert not service.calendars.delete_event("A1", "primary", "E1")
        assert session.calls[0]["method"] == "DELETE"

        connectivity.set_online(False)
        assert not service.calendars.update_event("A1", "primary", "E1", {"title": "x"})
        assert not service.calendars.delete_event("A1", "primary", "E1")
        assert len(session.calls) == 1
        assert service.queue.depth() == 0


class TestNotificationResource:
    """Tests for notifications and invitations."""

    def test_get_notifications(self, service, session):
        session.script(make_response(200, [{"id": "N1"}]))
        assert service.notifications.get_notifications() == [{"id": "N1"}]

    def test_mark_read_offline_is_queued(self, service, connectivity):
        connectivity.set_online(False)

        service.notifications.mark_notification_read("N1")

        item = service.queue.pending()[0]
        assert (item.method, item.url) == ("PUT", f"{API_URL}/notifications/N1/read")

    def test_invite(self, service, session):
        service.notifications.invite_user("a@example.com", "W1")

        assert session.calls[0]["path"] == "/invitations"
        assert session.calls[0]["json"] == {"email": "a@example.com", "workspaceId": "W1"}

    def test_invite_offline(self, service, session, connectivity):
        connectivity.set_online(False)

        with pytest.raises(OfflineError):
            service.notifications.invite_user("a@example.com", "W1")
        assert session.calls == []

    @pytest.mark.parametrize("failure", [
        make_response(500),
        requests.exceptions.ConnectionError("down"),
    ])
    def test_invite_failure_is_not_queued(self, service, session, failure):
        session.script(failure)

        with pytest.raises(OfflineError):
            service.notifications.invite_user("a@example.com", "W1")
        assert service.queue.depth() == 0

    @pytest.mark.parametrize("accept, action", [(True, "accept"), (False, "decline")])
    def test_respond_to_invite(self, service, session, accept, action):
        service.notifications.respond_to_invite("I1", accept)

        call = session.calls[0]
        assert (call["method"], call["path"]) == ("POST", f"/invitations/I1/{action}")

    def test_respond_to_invite_offline(self, service, session, connectivity):
        connectivity.set_online(False)

        with pytest.raises(OfflineError):
            service.notifications.respond_to_invite("I1", True)
        assert session.calls == []

    def test_respond_to_invite_rejected_is_not_queued(self, service, session):
        session.script(make_response(410))

        with pytest.raises(OfflineError):
            service.notifications.respond_to_invite("I1", False)
        assert service.queue.depth() == 0
