# tests/test_projects.py

from __future__ import annotations

from datetime import date, timedelta

import pytest

from focusdesk.storage.database import Database
from focusdesk.tasks.project_store import ProjectStore
from focusdesk.tasks.recurring_store import RecurringTaskStore
from focusdesk.tasks.task_models import Category, Priority, ProjectPatch, ProjectStatus
from focusdesk.tasks.task_store import TaskStore

from .conftest import NOW


@pytest.fixture()
def projects(db: Database) -> ProjectStore:
    return ProjectStore(db)


@pytest.fixture()
def recurring(db: Database, tasks: TaskStore) -> RecurringTaskStore:
    return RecurringTaskStore(db, tasks)


def test_create_and_list_projects(projects: ProjectStore) -> None:
    older = projects.create("Thesis", deadline=date(2024, 9, 1), now=NOW - timedelta(days=1))
    newer = projects.create("Garden", now=NOW)

    assert older.status == ProjectStatus.ACTIVE
    assert older.deadline == date(2024, 9, 1)
    assert [p.id for p in projects.list()] == [newer.id, older.id]


def test_project_name_required(projects: ProjectStore) -> None:
    with pytest.raises(ValueError):
        projects.create(" ")


def test_completing_project_stamps_completed_at(projects: ProjectStore) -> None:
    project = projects.create("Thesis")

    done = projects.update(project.id, ProjectPatch(status="COMPLETED"), now=NOW)
    assert done is not None
    assert done.status == ProjectStatus.COMPLETED
    assert done.completed_at == NOW
    assert [p.id for p in projects.list(ProjectStatus.COMPLETED)] == [project.id]

    reopened = projects.update(project.id, ProjectPatch(status=ProjectStatus.ACTIVE))
    assert reopened is not None
    assert reopened.completed_at is None


def test_project_partial_update(projects: ProjectStore) -> None:
    project = projects.create("Thesis", description="chapter 1")

    updated = projects.update(project.id, ProjectPatch(deadline="2024-10-01"))

    assert updated is not None
    assert updated.deadline == date(2024, 10, 1)
    assert updated.description == "chapter 1"
    assert projects.update("nope", ProjectPatch(name="x")) is None


def test_deleting_project_keeps_its_tasks(projects: ProjectStore, tasks: TaskStore) -> None:
    project = projects.create("Thesis")
    task = tasks.create("Write intro", project_id=project.id)
    assert [t.id for t in tasks.list(project_id=project.id)] == [task.id]

    assert projects.delete(project.id) is True

    assert projects.get_by_id(project.id) is None
    kept = tasks.get_by_id(task.id)
    assert kept is not None
    assert kept.project_id is None
    assert projects.delete(project.id) is False


def test_recurring_template_instantiates_task(
    recurring: RecurringTaskStore, tasks: TaskStore
) -> None:
    template = recurring.create("Weekly review", description="inbox zero", priority=Priority.P2)

    task = recurring.instantiate(template.id, now=NOW)

    assert task is not None
    assert task.title == "Weekly review"
    assert task.description == "inbox zero"
    assert task.priority == Priority.P2
    assert task.category == Category.TODAY
    assert recurring.get_by_id(template.id) is not None

    second = recurring.instantiate(template.id, category=Category.WEEK)
    assert second is not None and second.id != task.id
    assert len(tasks.list()) == 2


def test_recurring_missing_and_delete(recurring: RecurringTaskStore) -> None:
    assert recurring.instantiate("nope") is None

    template = recurring.create("Standup")
    assert [t.id for t in recurring.list()] == [template.id]
    assert recurring.delete(template.id) is True
    assert recurring.list() == []
