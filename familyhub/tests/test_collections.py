import itertools
import json
import unittest

from familyhub.calendar_events import CalendarEventService
from familyhub.documents import DocumentRepository
from familyhub.errors import BadRequest, NotFound
from familyhub.finances import BudgetService, TransactionService
from familyhub.portfolio import PortfolioService
from familyhub.projects import ProjectService
from familyhub.storage import InMemoryDiskClient
from familyhub.todos import TodoListService

TOKEN = "test-token"
SCOPE = "/family/bob"


def make_clock():
    """Deterministic, strictly increasing timestamps."""
    counter = itertools.count(1)
    return lambda: f"2024-01-01T00:00:{next(counter):02d}.000Z"


class PortfolioServiceTests(unittest.TestCase):
    def setUp(self):
        self.disk = InMemoryDiskClient()
        self.service = PortfolioService(DocumentRepository(self.disk), clock=make_clock())

    def test_empty_catalog(self):
        self.assertEqual(self.service.list(TOKEN), [])
        self.assertEqual(self.service.catalog(TOKEN), {"items": []})

    def test_create_appends_one_record(self):
        before = len(self.service.list(TOKEN))
        item = self.service.create(
            TOKEN, None, {"title": "Site", "id": "spoofed", "createdAt": "1999"}
        )

        records = self.service.list(TOKEN)
        self.assertEqual(len(records), before + 1)
        self.assertNotEqual(item["id"], "spoofed")
        self.assertEqual(item["createdAt"], item["updatedAt"])
        self.assertEqual(item["status"], "planned")
        self.assertEqual(item["tags"], [])
        stored = json.loads(self.disk.files["/portfolio/portfolio.json"])
        self.assertEqual(stored, {"items": [item]})

    def test_ids_are_unique(self):
        ids = {self.service.create(TOKEN, None, {"title": f"t{i}"})["id"] for i in range(5)}
        self.assertEqual(len(ids), 5)

    def test_update_changes_only_patched_fields(self):
        item = self.service.create(TOKEN, None, {"title": "Site", "description": "old"})

        updated = self.service.update(TOKEN, None, item["id"], {"description": "new"})

        self.assertEqual(updated["description"], "new")
        self.assertEqual(updated["title"], "Site")
        self.assertEqual(updated["createdAt"], item["createdAt"])
        self.assertGreater(updated["updatedAt"], item["updatedAt"])
        self.assertEqual(self.service.list(TOKEN), [updated])

    def test_update_cannot_change_identity(self):
        item = self.service.create(TOKEN, None, {"title": "Site"})
        updated = self.service.update(TOKEN, None, item["id"], {"id": "x", "createdAt": "y"})
        self.assertEqual(updated["id"], item["id"])
        self.assertEqual(updated["createdAt"], item["createdAt"])

    def test_snake_case_keys_cannot_change_identity(self):
        item = self.service.create(
            TOKEN, None, {"title": "Site", "created_at": "1999", "updated_at": "1999"}
        )
        self.assertNotEqual(item["createdAt"], "1999")
        self.assertNotIn("created_at", item)

        updated = self.service.update(
            TOKEN, None, item["id"], {"created_at": "1999-01-01", "ID": "x", "title": "New"}
        )
        self.assertEqual(updated["id"], item["id"])
        self.assertEqual(updated["createdAt"], item["createdAt"])
        self.assertNotEqual(updated["updatedAt"], "1999")
        self.assertEqual(updated["title"], "New")

    def test_unmodelled_fields_survive_create_and_update(self):
        item = self.service.create(TOKEN, None, {"title": "Site", "client": "ACME"})
        self.assertEqual(item["client"], "ACME")

        updated = self.service.update(TOKEN, None, item["id"], {"featured": True})

        self.assertEqual(updated["client"], "ACME")
        self.assertTrue(updated["featured"])
        self.assertEqual(self.service.list(TOKEN), [updated])

    def test_stored_extra_fields_survive_update(self):
        self.service.documents.write_document(
            TOKEN,
            "/portfolio/portfolio.json",
            {
                "items": [
                    {
                        "id": "1",
                        "title": "Site",
                        "createdAt": "2024-01-01T00:00:00.000Z",
                        "updatedAt": "2024-01-01T00:00:00.000Z",
                        "client": {"name": "ACME", "since": 2020},
                    }
                ]
            },
        )

        updated = self.service.update(TOKEN, None, "1", {"featured": True})

        self.assertEqual(updated["client"], {"name": "ACME", "since": 2020})
        self.assertEqual(updated["title"], "Site")

    def test_update_missing_record(self):
        with self.assertRaises(NotFound):
            self.service.update(TOKEN, None, "nope", {"title": "x"})
        self.assertNotIn("/portfolio/portfolio.json", self.disk.files)

    def test_invalid_status_rejected(self):
        with self.assertRaises(BadRequest):
            self.service.create(TOKEN, None, {"title": "x", "status": "abandoned"})
        with self.assertRaises(BadRequest):
            self.service.create(TOKEN, None, {"description": "no title"})

    def test_delete_twice(self):
        item = self.service.create(TOKEN, None, {"title": "Site"})
        self.service.delete(TOKEN, None, item["id"])
        self.assertEqual(self.service.list(TOKEN), [])
        with self.assertRaises(NotFound):
            self.service.delete(TOKEN, None, item["id"])


class TodoListServiceTests(unittest.TestCase):
    def setUp(self):
        self.disk = InMemoryDiskClient()
        self.service = TodoListService(DocumentRepository(self.disk), clock=make_clock())

    def test_lists_start_empty_and_live_in_member_folder(self):
        self.assertEqual(self.service.list(TOKEN, SCOPE), [])
        todo_list = self.service.create(TOKEN, SCOPE, {"name": "Groceries", "items": [{"x": 1}]})
        self.assertEqual(todo_list["items"], [])
        self.assertEqual(todo_list["color"], "blue")
        self.assertIn("/family/bob/todos/lists.json", self.disk.files)

    def test_item_lifecycle(self):
        todo_list = self.service.create(TOKEN, SCOPE, {"name": "Chores"})

        item = self.service.add_item(
            TOKEN, SCOPE, todo_list["id"], {"title": "Dishes", "priority": "high"}, "bob"
        )
        self.assertFalse(item["completed"])
        self.assertEqual(item["createdBy"], "bob")
        self.assertEqual(item["category"], "general")
        self.assertNotIn("completedAt", item)

        toggled = self.service.toggle_item(TOKEN, SCOPE, todo_list["id"], item["id"])
        self.assertTrue(toggled["completed"])
        self.assertIn("completedAt", toggled)

        untoggled = self.service.toggle_item(TOKEN, SCOPE, todo_list["id"], item["id"])
        self.assertFalse(untoggled["completed"])
        self.assertNotIn("completedAt", untoggled)

        renamed = self.service.update_item(
            TOKEN, SCOPE, todo_list["id"], item["id"], {"title": "All dishes"}
        )
        self.assertEqual(renamed["title"], "All dishes")
        self.assertEqual(renamed["priority"], "high")

        stored_list = self.service.get(TOKEN, SCOPE, todo_list["id"])
        self.assertEqual(stored_list["items"], [renamed])
        self.assertGreater(stored_list["updatedAt"], todo_list["updatedAt"])

        self.service.delete_item(TOKEN, SCOPE, todo_list["id"], item["id"])
        self.assertEqual(self.service.get(TOKEN, SCOPE, todo_list["id"])["items"], [])
        with self.assertRaises(NotFound):
            self.service.delete_item(TOKEN, SCOPE, todo_list["id"], item["id"])

    def test_item_server_fields_ignore_key_spelling(self):
        todo_list = self.service.create(TOKEN, SCOPE, {"name": "Chores"})
        item = self.service.add_item(
            TOKEN, SCOPE, todo_list["id"], {"title": "Dishes", "created_by": "mallory"}, "bob"
        )
        self.assertEqual(item["createdBy"], "bob")

        updated = self.service.update_item(
            TOKEN,
            SCOPE,
            todo_list["id"],
            item["id"],
            {"created_by": "mallory", "created_at": "1999", "createdBy": "eve"},
        )
        self.assertEqual(updated["createdBy"], "bob")
        self.assertEqual(updated["createdAt"], item["createdAt"])

    def test_item_operations_keep_extra_fields_on_siblings(self):
        todo_list = self.service.create(TOKEN, SCOPE, {"name": "Chores"})
        first = self.service.add_item(
            TOKEN, SCOPE, todo_list["id"], {"title": "Dishes", "room": "kitchen"}, "bob"
        )
        second = self.service.add_item(TOKEN, SCOPE, todo_list["id"], {"title": "Laundry"}, "bob")

        toggled = self.service.toggle_item(TOKEN, SCOPE, todo_list["id"], second["id"])

        self.assertTrue(toggled["completed"])
        items = {i["id"]: i for i in self.service.get(TOKEN, SCOPE, todo_list["id"])["items"]}
        self.assertEqual(items[first["id"]]["room"], "kitchen")

    def test_invalid_priority_rejected(self):
        todo_list = self.service.create(TOKEN, SCOPE, {"name": "Chores"})
        with self.assertRaises(BadRequest):
            self.service.add_item(
                TOKEN, SCOPE, todo_list["id"], {"title": "x", "priority": "urgent"}, "bob"
            )

    def test_item_operations_on_missing_list(self):
        with self.assertRaises(NotFound):
            self.service.add_item(TOKEN, SCOPE, "nope", {"title": "x"}, "bob")

    def test_update_list_keeps_items(self):
        todo_list = self.service.create(TOKEN, SCOPE, {"name": "Chores"})
        item = self.service.add_item(TOKEN, SCOPE, todo_list["id"], {"title": "x"}, "bob")
        updated = self.service.update(TOKEN, SCOPE, todo_list["id"], {"name": "Home", "items": []})
        self.assertEqual(updated["name"], "Home")
        self.assertEqual(updated["items"], [item])

    def test_scope_is_required(self):
        with self.assertRaises(BadRequest):
            self.service.list(TOKEN, None)


class OtherCollectionTests(unittest.TestCase):
    def setUp(self):
        self.disk = InMemoryDiskClient()
        self.repo = DocumentRepository(self.disk)

    def test_budgets_read_only_list(self):
        budgets = BudgetService(self.repo)
        self.assertEqual(budgets.list(TOKEN, SCOPE), [])
        self.repo.write_document(TOKEN, "/family/bob/finances/budgets.json", [{"id": "b1"}])
        self.assertEqual(budgets.list(TOKEN, SCOPE), [{"id": "b1"}])
        self.assertFalse(hasattr(budgets, "create"))

    def test_transactions_keep_free_form_fields(self):
        transactions = TransactionService(self.repo)
        created = transactions.create(TOKEN, SCOPE, {"amount": 12.5, "kind": "expense"})
        self.assertEqual(transactions.list(TOKEN, SCOPE), [created])
        self.assertEqual(created["amount"], 12.5)

    def test_calendar_events_require_title(self):
        events = CalendarEventService(self.repo)
        with self.assertRaises(BadRequest):
            events.create(TOKEN, SCOPE, {"date": "2024-01-01"})
        event = events.create(TOKEN, SCOPE, {"title": "Dentist"})
        moved = events.update(TOKEN, SCOPE, event["id"], {"date": "2024-02-02"})
        self.assertEqual(moved["title"], "Dentist")
        events.delete(TOKEN, SCOPE, event["id"])
        self.assertEqual(events.list(TOKEN, SCOPE), [])

    def test_projects_track_last_updated(self):
        projects = ProjectService(self.repo, clock=make_clock())
        project = projects.create(TOKEN, None, {"name": "Shed"})
        stored = json.loads(self.disk.files["/projects/projects.json"])
        self.assertEqual(stored["projects"], [project])
        self.assertIsNotNone(stored["lastUpdated"])
        self.assertEqual(project["status"], "planning")

    def test_malformed_document_lists_empty(self):
        self.repo.write_document(TOKEN, "/portfolio/portfolio.json", ["not", "wrapped"])
        self.assertEqual(PortfolioService(self.repo).list(TOKEN), [])


if __name__ == "__main__":
    unittest.main()
