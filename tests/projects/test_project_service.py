from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime

import pytest

from src.yourobc.yourobc.core.enums import Priority, ProjectStatus, TaskStatus
from src.yourobc.yourobc.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from src.yourobc.yourobc.projects.model import Project, Task
from src.yourobc.yourobc.projects.service import ProjectService, progress_percentage


class FakeProjects:
    def __init__(self):
        self._next_id = 1
        self.rows: dict[int, Project] = {}

    def create(self, *, owner_id, values):
        project_id = self._next_id
        self._next_id += 1
        self.rows[project_id] = Project(project_id=project_id, public_id=f"prj-{project_id}", owner_id=owner_id, **values)
        return project_id

    def get(self, project_id, *, include_deleted=False):
        project = self.rows.get(int(project_id))
        if project and project.deleted_at is not None and not include_deleted:
            return None
        return project

    def list_projects(self, *, owner_id=None, status=None, search=None, limit=200):
        return list(self.rows.values())

    def update(self, project_id, *, changes, updated_by):
        self.rows[project_id] = replace(self.rows[project_id], **changes)
        return True

    def soft_delete(self, project_id, *, deleted_by):
        self.rows[project_id] = replace(self.rows[project_id], deleted_at=datetime(2026, 10, 16))
        return True

    def restore(self, project_id, *, restored_by):
        self.rows[project_id] = replace(self.rows[project_id], deleted_at=None)
        return True


class FakeTasks:
    def __init__(self):
        self._next_id = 1
        self.rows: dict[int, Task] = {}

    def create(self, *, owner_id, values):
        task_id = self._next_id
        self._next_id += 1
        self.rows[task_id] = Task(task_id=task_id, public_id=f"tsk-{task_id}", owner_id=owner_id, **values)
        return task_id

    def get(self, task_id):
        task = self.rows.get(int(task_id))
        return task if task and task.deleted_at is None else None

    def list_tasks(self, *, project_id=None, assigned_to=None, status=None, due_before=None, limit=200):
        return [t for t in self.rows.values() if due_before is None or t.is_overdue(due_before)]

    def update(self, task_id, *, changes, updated_by):
        self.rows[task_id] = replace(self.rows[task_id], **changes)
        return True

    def soft_delete(self, task_id, *, deleted_by):
        self.rows[task_id] = replace(self.rows[task_id], deleted_at=datetime(2026, 10, 16))
        return True

    def progress_counts(self, project_id):
        live = [
            t
            for t in self.rows.values()
            if t.project_id == project_id and t.deleted_at is None and t.status != TaskStatus.CANCELLED
        ]
        return len(live), sum(1 for t in live if t.status == TaskStatus.COMPLETED)


@pytest.fixture
def projects():
    return FakeProjects()


@pytest.fixture
def tasks():
    return FakeTasks()


@pytest.fixture
def svc(projects, tasks, audit):
    return ProjectService(projects, tasks, audit=audit)


@pytest.mark.parametrize("counted, completed, expected", [(0, 0, 0), (3, 1, 33), (3, 2, 66), (4, 4, 100)])
def test_progress_percentage_rounds_down(counted, completed, expected):
    assert progress_percentage(counted, completed) == expected


def test_create_project_validation(svc, staff):
    with pytest.raises(ValidationError):
        svc.create_project(actor=staff, title="  ")
    with pytest.raises(ValidationError):
        svc.create_project(actor=staff, title="x" * 201)
    with pytest.raises(ValidationError):
        svc.create_project(actor=staff, title="Expo", start_date=date(2026, 11, 1), due_date=date(2026, 10, 1))
    with pytest.raises(ValidationError):
        svc.create_project(actor=staff, title="Expo", budget="-5")

    project = svc.get_project(svc.create_project(actor=staff, title=" Expo setup ", priority=Priority.HIGH))
    assert project.title == "Expo setup"
    assert project.status == ProjectStatus.PLANNING


def test_progress_follows_task_completion(svc, staff, now):
    project_id = svc.create_project(actor=staff, title="Expo setup")
    task_ids = [svc.create_task(actor=staff, title=f"Step {n}", project_id=project_id) for n in range(3)]

    svc.complete_task(actor=staff, task_id=task_ids[0], now=now)
    assert svc.get_project(project_id).progress == 33

    svc.cancel_task(actor=staff, task_id=task_ids[1])
    assert svc.get_project(project_id).progress == 50

    svc.delete_task(actor=staff, task_id=task_ids[2])
    assert svc.get_project(project_id).progress == 100


def test_assignee_may_work_the_task(svc, staff, other_staff, now):
    task_id = svc.create_task(actor=staff, title="Book flight")

    with pytest.raises(AuthorizationError):
        svc.start_task(actor=other_staff, task_id=task_id)

    svc.assign_task(actor=staff, task_id=task_id, user_id=other_staff.user_id)
    svc.start_task(actor=other_staff, task_id=task_id, now=now)
    svc.complete_task(actor=other_staff, task_id=task_id, notes=" done ", now=now)

    task = svc.get_task(task_id)
    assert task.status == TaskStatus.COMPLETED
    assert task.started_at == now
    assert task.completion_notes == "done"

    with pytest.raises(AuthorizationError):
        svc.update_task(actor=other_staff, task_id=task_id, changes={"title": "Changed"})
    with pytest.raises(ValidationError):
        svc.assign_task(actor=staff, task_id=task_id, user_id=3)


def test_task_status_rules(svc, staff):
    task_id = svc.create_task(actor=staff, title="Book flight")
    svc.cancel_task(actor=staff, task_id=task_id)

    with pytest.raises(ValidationError):
        svc.start_task(actor=staff, task_id=task_id)
    with pytest.raises(ValidationError):
        svc.complete_task(actor=staff, task_id=task_id)


def test_task_must_reference_existing_project(svc, staff):
    with pytest.raises(NotFoundError):
        svc.create_task(actor=staff, title="Orphan", project_id=99)


def test_moving_task_refreshes_both_projects(svc, staff, now):
    first = svc.create_project(actor=staff, title="First")
    second = svc.create_project(actor=staff, title="Second")
    done = svc.create_task(actor=staff, title="Done", project_id=first)
    svc.create_task(actor=staff, title="Open", project_id=first)
    svc.complete_task(actor=staff, task_id=done, now=now)
    assert svc.get_project(first).progress == 50

    svc.update_task(actor=staff, task_id=done, changes={"project_id": second})

    assert svc.get_project(first).progress == 0
    assert svc.get_project(second).progress == 100


def test_overdue_filter(svc, staff):
    svc.create_task(actor=staff, title="Late", due_date=date(2026, 10, 1))
    svc.create_task(actor=staff, title="Upcoming", due_date=date(2026, 12, 1))

    overdue = svc.list_tasks(overdue_only=True, today=date(2026, 10, 15))

    assert [t.title for t in overdue] == ["Late"]


def test_project_update_and_restore(svc, staff, other_staff, admin):
    project_id = svc.create_project(actor=staff, title="Expo")

    with pytest.raises(AuthorizationError):
        svc.update_project(actor=other_staff, project_id=project_id, changes={"title": "Mine"})
    with pytest.raises(ValidationError, match="Fields cannot be updated: progress"):
        svc.update_project(actor=staff, project_id=project_id, changes={"progress": 90})

    updated = svc.update_project(actor=admin, project_id=project_id, changes={"status": ProjectStatus.ACTIVE})
    assert updated.status == ProjectStatus.ACTIVE

    svc.delete_project(actor=staff, project_id=project_id)
    with pytest.raises(NotFoundError):
        svc.get_project(project_id)
    svc.restore_project(actor=staff, project_id=project_id)
    assert svc.get_project(project_id).deleted_at is None
