"""
Per-member to-do lists, stored as one array of lists at
``/family/<member>/todos/lists.json``. Items live inside their list.
"""

from __future__ import annotations

from typing import Optional

from familyhub.collection import SERVER_FIELDS, CollectionService, caller_fields
from familyhub.errors import NotFound
from familyhub.paths import TODO_LISTS_TEMPLATE
from familyhub.records import TodoItem, TodoList, normalize_document

# Set from the session and the completion state, never by the caller.
ITEM_SERVER_FIELDS = SERVER_FIELDS + ("createdBy", "completedAt")


class TodoListService(CollectionService):
    path_template = TODO_LISTS_TEMPLATE
    record_type = TodoList
    record_name = "Todo list"

    def normalize(self, record: dict) -> dict:
        # Items are validated one by one so their own extra fields survive.
        items = [normalize_document(TodoItem, item) for item in record.get("items") or []]
        normalized = super().normalize({**record, "items": items})
        normalized["items"] = items
        return normalized

    def prepare_new(self, data: dict) -> dict:
        # New lists always start empty.
        return super().prepare_new({**data, "items": []})

    def update(self, token: str, scope: Optional[str], record_id: str, patch: dict) -> dict:
        # Items change through the item operations only.
        patch = caller_fields(patch, ("items",))
        return super().update(token, scope, record_id, patch)

    def _with_list(self, token: str, scope: str, list_id: str, change):
        """Runs ``change(todo_list_dict, now)`` on one list inside the locked rewrite."""

        def apply(records: list):
            for index, record in enumerate(records):
                if record.get("id") == list_id:
                    now = self.clock()
                    result = change(record, now)
                    record["updatedAt"] = now
                    records[index] = self.normalize(record)
                    return result
            raise NotFound("Todo list not found")

        return self.mutate(token, scope, apply)

    def add_item(self, token: str, scope: str, list_id: str, data: dict, created_by: str) -> dict:
        def add(todo_list: dict, now: str) -> dict:
            item = {
                **caller_fields(data, ITEM_SERVER_FIELDS),
                "id": self.id_factory(),
                "createdBy": created_by,
                "createdAt": now,
                "updatedAt": now,
            }
            if item.get("completed"):
                item["completedAt"] = now
            item = normalize_document(TodoItem, item)
            todo_list.setdefault("items", []).append(item)
            return item

        return self._with_list(token, scope, list_id, add)

    def update_item(self, token: str, scope: str, list_id: str, item_id: str, patch: dict) -> dict:
        changes = caller_fields(patch, ITEM_SERVER_FIELDS)

        def update(todo_list: dict, now: str) -> dict:
            item = _find_item(todo_list, item_id)
            was_completed = bool(item.get("completed"))
            item.update(changes)
            item["updatedAt"] = now
            _stamp_completion(item, was_completed, now)
            return _replace_item(todo_list, item)

        return self._with_list(token, scope, list_id, update)

    def toggle_item(self, token: str, scope: str, list_id: str, item_id: str) -> dict:
        def toggle(todo_list: dict, now: str) -> dict:
            item = _find_item(todo_list, item_id)
            was_completed = bool(item.get("completed"))
            item["completed"] = not was_completed
            item["updatedAt"] = now
            _stamp_completion(item, was_completed, now)
            return _replace_item(todo_list, item)

        return self._with_list(token, scope, list_id, toggle)

    def delete_item(self, token: str, scope: str, list_id: str, item_id: str) -> None:
        def delete(todo_list: dict, now: str) -> None:
            items = todo_list.get("items", [])
            remaining = [i for i in items if i.get("id") != item_id]
            if len(remaining) == len(items):
                raise NotFound("Todo item not found")
            todo_list["items"] = remaining

        self._with_list(token, scope, list_id, delete)


def _find_item(todo_list: dict, item_id: str) -> dict:
    for item in todo_list.get("items", []):
        if item.get("id") == item_id:
            return dict(item)
    raise NotFound("Todo item not found")


def _replace_item(todo_list: dict, item: dict) -> dict:
    item = normalize_document(TodoItem, item)
    todo_list["items"] = [item if i.get("id") == item["id"] else i for i in todo_list["items"]]
    return item


def _stamp_completion(item: dict, was_completed: bool, now: str) -> None:
    if item.get("completed") and not was_completed:
        item["completedAt"] = now
    elif not item.get("completed"):
        item.pop("completedAt", None)
